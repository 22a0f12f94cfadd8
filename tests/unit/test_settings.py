"""Unit tests for settings loading and validation."""

from pathlib import Path

import pytest
import yaml

from docqa.core.settings import (
    CrawlerSettings,
    NormalizationSettings,
    Settings,
    SettingsError,
    load_settings,
    validate_settings,
)


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_shipped_config_loads(config_dir: Path) -> None:
    settings = load_settings(config_dir / "settings.yaml")

    assert settings.ingestion.splitter == "sliding_window"
    assert settings.ingestion.chunk_overlap < settings.ingestion.chunk_size
    assert settings.vector_store.provider == "local"
    assert settings.normalization.remove_tags == ["script", "style"]
    assert settings.crawler.max_depth == 5


def test_optional_sections_default(settings_data) -> None:
    settings = Settings.from_dict(settings_data)

    assert settings.normalization == NormalizationSettings()
    assert settings.crawler == CrawlerSettings()
    assert settings.llm.streaming is False
    assert settings.embedding.dimensions is None
    assert settings.vector_store.host is None
    assert settings.ingestion.embedding_workers == 1


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(SettingsError, match="Settings file not found"):
        load_settings(tmp_path / "absent.yaml")


def test_missing_section_raises(tmp_path: Path, settings_data) -> None:
    del settings_data["retrieval"]
    with pytest.raises(SettingsError, match="settings.retrieval"):
        load_settings(_write(tmp_path, settings_data))


def test_wrong_type_raises(tmp_path: Path, settings_data) -> None:
    settings_data["ingestion"]["chunk_size"] = "big"
    with pytest.raises(SettingsError, match="ingestion.chunk_size"):
        load_settings(_write(tmp_path, settings_data))


def test_bool_is_not_an_int(settings_data) -> None:
    settings_data["retrieval"]["top_k"] = True
    with pytest.raises(SettingsError, match="retrieval.top_k"):
        Settings.from_dict(settings_data)


@pytest.mark.parametrize(
    ("section", "key", "value", "message"),
    [
        ("ingestion", "chunk_overlap", 200, "must be less than"),
        ("ingestion", "chunk_overlap", -1, "non-negative"),
        ("ingestion", "chunk_size", 0, "chunk_size"),
        ("ingestion", "batch_size", 0, "batch_size"),
        ("retrieval", "top_k", 0, "top_k"),
        ("retrieval", "min_score", 1.5, "min_score"),
    ],
)
def test_validation_rules(settings_data, section, key, value, message) -> None:
    settings_data[section][key] = value
    with pytest.raises(SettingsError, match=message):
        validate_settings(Settings.from_dict(settings_data))


def test_settings_error_is_value_error() -> None:
    assert issubclass(SettingsError, ValueError)
