"""Pytest configuration and shared fixtures.

This module contains pytest configuration and fixtures that are shared
across all test modules.
"""

import copy
import re
import zlib
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import pytest

from docqa.core.settings import Settings
from docqa.libs.embedding.base_embedding import BaseEmbedding
from docqa.libs.llm.base_llm import BaseLLM, ChatResponse, Message

PROJECT_ROOT = Path(__file__).parent.parent

BASE_SETTINGS: Dict[str, Any] = {
    "llm": {
        "provider": "openai",
        "model": "gpt-3.5-turbo",
        "temperature": 0.5,
        "max_tokens": 256,
    },
    "embedding": {"provider": "openai", "model": "text-embedding-3-small"},
    "vector_store": {
        "provider": "local",
        "persist_directory": "./data/vector-store",
        "collection_name": "test",
    },
    "retrieval": {"top_k": 4, "min_score": 0.0},
    "ingestion": {
        "chunk_size": 200,
        "chunk_overlap": 50,
        "splitter": "sliding_window",
        "batch_size": 10,
    },
    "observability": {"log_level": "DEBUG"},
}


class BagOfWordsEmbedding(BaseEmbedding):
    """Deterministic offline embedding: hashed word counts."""

    def __init__(self, dimension: int = 64) -> None:
        self.dimension = dimension
        self.calls: List[List[str]] = []

    def embed(self, texts: List[str], trace: Optional[Any] = None, **kwargs: Any) -> List[List[float]]:
        self.validate_texts(texts)
        self.calls.append(list(texts))
        vectors = []
        for text in texts:
            vector = [0.0] * self.dimension
            for word in re.findall(r"[a-z0-9]+", text.lower()):
                vector[zlib.crc32(word.encode()) % self.dimension] += 1.0
            vectors.append(vector)
        return vectors

    def get_dimension(self) -> int:
        return self.dimension


class RecordingLLM(BaseLLM):
    """LLM double that records prompts and replies with a fixed answer."""

    def __init__(self, reply: str = "It is blue.") -> None:
        self.reply = reply
        self.prompts: List[str] = []
        self.conversations: List[List[Message]] = []

    def chat(self, messages: List[Message], trace: Optional[Any] = None, **kwargs: Any) -> ChatResponse:
        self.validate_messages(messages)
        self.prompts.append(messages[-1].content)
        self.conversations.append(list(messages))
        return ChatResponse(content=self.reply, model="fake")

    def stream(self, messages: List[Message], trace: Optional[Any] = None, **kwargs: Any) -> Iterator[str]:
        self.prompts.append(messages[-1].content)
        self.conversations.append(list(messages))
        for word in self.reply.split(" "):
            yield word + " "


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory path."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the config directory path."""
    return project_root / "config"


@pytest.fixture
def settings_data() -> Dict[str, Any]:
    """A fresh copy of a complete, valid settings mapping."""
    return copy.deepcopy(BASE_SETTINGS)


@pytest.fixture
def make_settings(tmp_path: Path):
    """Build real :class:`Settings` with section-level overrides.

    The vector store always persists under ``tmp_path``.
    """
    def _make(**overrides: Dict[str, Any]) -> Settings:
        data = _merge(BASE_SETTINGS, {"vector_store": {"persist_directory": str(tmp_path / "index")}})
        return Settings.from_dict(_merge(data, overrides))

    return _make


@pytest.fixture
def test_settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def fake_embedding() -> BagOfWordsEmbedding:
    return BagOfWordsEmbedding()


@pytest.fixture
def fake_llm() -> RecordingLLM:
    return RecordingLLM()
