"""Configuration loading and validation for docqa."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_SETTINGS_PATH = Path("config/settings.yaml")


class SettingsError(ValueError):
    """Raised when settings validation fails."""


def _require_mapping(data: Dict[str, Any], key: str, path: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        raise SettingsError(f"Missing required field: {path}.{key}")
    if not isinstance(value, dict):
        raise SettingsError(f"Expected mapping for field: {path}.{key}")
    return value


def _require_value(data: Dict[str, Any], key: str, path: str) -> Any:
    if key not in data or data.get(key) is None:
        raise SettingsError(f"Missing required field: {path}.{key}")
    return data[key]


def _require_str(data: Dict[str, Any], key: str, path: str) -> str:
    value = _require_value(data, key, path)
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"Expected non-empty string for field: {path}.{key}")
    return value


def _require_int(data: Dict[str, Any], key: str, path: str) -> int:
    value = _require_value(data, key, path)
    if not isinstance(value, int) or isinstance(value, bool):
        raise SettingsError(f"Expected integer for field: {path}.{key}")
    return value


def _require_number(data: Dict[str, Any], key: str, path: str) -> float:
    value = _require_value(data, key, path)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise SettingsError(f"Expected number for field: {path}.{key}")
    return float(value)


def _require_bool(data: Dict[str, Any], key: str, path: str) -> bool:
    value = _require_value(data, key, path)
    if not isinstance(value, bool):
        raise SettingsError(f"Expected boolean for field: {path}.{key}")
    return value


def _require_list(data: Dict[str, Any], key: str, path: str) -> List[Any]:
    value = _require_value(data, key, path)
    if not isinstance(value, list):
        raise SettingsError(f"Expected list for field: {path}.{key}")
    return value


def _optional(data: Dict[str, Any], key: str, path: str, validator: Any, default: Any) -> Any:
    if data.get(key) is None:
        return default
    return validator(data, key, path)


@dataclass(frozen=True)
class LLMSettings:
    provider: str
    model: str
    temperature: float
    max_tokens: int
    streaming: bool = False


@dataclass(frozen=True)
class EmbeddingSettings:
    provider: str
    model: str
    dimensions: Optional[int] = None


@dataclass(frozen=True)
class VectorStoreSettings:
    provider: str
    persist_directory: str
    collection_name: str
    host: Optional[str] = None
    port: Optional[int] = None


@dataclass(frozen=True)
class RetrievalSettings:
    top_k: int = 4
    min_score: float = 0.0


@dataclass(frozen=True)
class IngestionSettings:
    chunk_size: int
    chunk_overlap: int
    splitter: str
    batch_size: int = 10
    embedding_workers: int = 1


@dataclass(frozen=True)
class NormalizationSettings:
    remove_tags: List[str] = field(default_factory=lambda: ["script", "style"])
    remove_selectors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CrawlerSettings:
    max_depth: int = 2
    exclude_dirs: List[str] = field(default_factory=list)
    timeout: float = 10.0
    prevent_outside: bool = True


@dataclass(frozen=True)
class ObservabilitySettings:
    log_level: str


@dataclass(frozen=True)
class Settings:
    llm: LLMSettings
    embedding: EmbeddingSettings
    vector_store: VectorStoreSettings
    retrieval: RetrievalSettings
    ingestion: IngestionSettings
    observability: ObservabilitySettings
    normalization: NormalizationSettings = field(default_factory=NormalizationSettings)
    crawler: CrawlerSettings = field(default_factory=CrawlerSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        if not isinstance(data, dict):
            raise SettingsError("Settings root must be a mapping")

        llm = _require_mapping(data, "llm", "settings")
        embedding = _require_mapping(data, "embedding", "settings")
        vector_store = _require_mapping(data, "vector_store", "settings")
        retrieval = _require_mapping(data, "retrieval", "settings")
        ingestion = _require_mapping(data, "ingestion", "settings")
        observability = _require_mapping(data, "observability", "settings")

        normalization_settings = NormalizationSettings()
        if data.get("normalization") is not None:
            normalization = _require_mapping(data, "normalization", "settings")
            normalization_settings = NormalizationSettings(
                remove_tags=[
                    str(tag)
                    for tag in _optional(
                        normalization, "remove_tags", "normalization", _require_list,
                        normalization_settings.remove_tags,
                    )
                ],
                remove_selectors=[
                    str(selector)
                    for selector in _optional(
                        normalization, "remove_selectors", "normalization", _require_list, []
                    )
                ],
            )

        crawler_settings = CrawlerSettings()
        if data.get("crawler") is not None:
            crawler = _require_mapping(data, "crawler", "settings")
            crawler_settings = CrawlerSettings(
                max_depth=_optional(crawler, "max_depth", "crawler", _require_int, 2),
                exclude_dirs=[
                    str(item)
                    for item in _optional(crawler, "exclude_dirs", "crawler", _require_list, [])
                ],
                timeout=_optional(crawler, "timeout", "crawler", _require_number, 10.0),
                prevent_outside=_optional(
                    crawler, "prevent_outside", "crawler", _require_bool, True
                ),
            )

        settings = cls(
            llm=LLMSettings(
                provider=_require_str(llm, "provider", "llm"),
                model=_require_str(llm, "model", "llm"),
                temperature=_require_number(llm, "temperature", "llm"),
                max_tokens=_require_int(llm, "max_tokens", "llm"),
                streaming=_optional(llm, "streaming", "llm", _require_bool, False),
            ),
            embedding=EmbeddingSettings(
                provider=_require_str(embedding, "provider", "embedding"),
                model=_require_str(embedding, "model", "embedding"),
                dimensions=_optional(embedding, "dimensions", "embedding", _require_int, None),
            ),
            vector_store=VectorStoreSettings(
                provider=_require_str(vector_store, "provider", "vector_store"),
                persist_directory=_require_str(vector_store, "persist_directory", "vector_store"),
                collection_name=_require_str(vector_store, "collection_name", "vector_store"),
                host=_optional(vector_store, "host", "vector_store", _require_str, None),
                port=_optional(vector_store, "port", "vector_store", _require_int, None),
            ),
            retrieval=RetrievalSettings(
                top_k=_require_int(retrieval, "top_k", "retrieval"),
                min_score=_optional(retrieval, "min_score", "retrieval", _require_number, 0.0),
            ),
            ingestion=IngestionSettings(
                chunk_size=_require_int(ingestion, "chunk_size", "ingestion"),
                chunk_overlap=_require_int(ingestion, "chunk_overlap", "ingestion"),
                splitter=_require_str(ingestion, "splitter", "ingestion"),
                batch_size=_optional(ingestion, "batch_size", "ingestion", _require_int, 10),
                embedding_workers=_optional(
                    ingestion, "embedding_workers", "ingestion", _require_int, 1
                ),
            ),
            observability=ObservabilitySettings(
                log_level=_require_str(observability, "log_level", "observability"),
            ),
            normalization=normalization_settings,
            crawler=crawler_settings,
        )

        return settings


def validate_settings(settings: Settings) -> None:
    """Validate settings and raise SettingsError if invalid."""

    ingestion = settings.ingestion
    if ingestion.chunk_size <= 0:
        raise SettingsError("ingestion.chunk_size must be a positive integer")
    if ingestion.chunk_overlap < 0:
        raise SettingsError("ingestion.chunk_overlap must be a non-negative integer")
    if ingestion.chunk_overlap >= ingestion.chunk_size:
        raise SettingsError(
            f"ingestion.chunk_overlap ({ingestion.chunk_overlap}) must be less than "
            f"ingestion.chunk_size ({ingestion.chunk_size})"
        )
    if ingestion.batch_size <= 0:
        raise SettingsError("ingestion.batch_size must be a positive integer")
    if ingestion.embedding_workers <= 0:
        raise SettingsError("ingestion.embedding_workers must be a positive integer")
    if settings.retrieval.top_k <= 0:
        raise SettingsError("retrieval.top_k must be a positive integer")
    if not 0.0 <= settings.retrieval.min_score <= 1.0:
        raise SettingsError("retrieval.min_score must be between 0.0 and 1.0")
    if settings.crawler.max_depth < 0:
        raise SettingsError("crawler.max_depth must be a non-negative integer")


def load_settings(path: str | Path = DEFAULT_SETTINGS_PATH) -> Settings:
    """Load settings from a YAML file and validate required fields."""

    settings_path = Path(path)
    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)

    settings = Settings.from_dict(data or {})
    validate_settings(settings)
    return settings
