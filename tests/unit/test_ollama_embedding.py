"""Unit tests for the Ollama embedding provider.

Ollama is served by an ``httpx.MockTransport``; every failure must surface
as an :class:`OllamaEmbeddingError` tagged with the ``embedding`` stage.
"""

from __future__ import annotations

import json
from typing import Any, Callable, List
from unittest.mock import Mock, patch

import httpx
import pytest

from docqa.core.errors import ServiceError
from docqa.ingestion.models import Chunk
from docqa.ingestion.pipeline import IngestionPipeline
from docqa.libs.embedding.embedding_factory import EmbeddingFactory
from docqa.libs.embedding.ollama_embedding import OllamaEmbedding, OllamaEmbeddingError

_REAL_CLIENT = httpx.Client


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OLLAMA_BASE_URL", raising=False)


@pytest.fixture
def mock_settings() -> Any:
    settings = Mock()
    settings.embedding.provider = "ollama"
    settings.embedding.model = "nomic-embed-text"
    settings.embedding.dimensions = None
    return settings


def _serve(handler: Callable[[httpx.Request], httpx.Response]):
    transport = httpx.MockTransport(handler)
    return patch(
        "docqa.libs.embedding.ollama_embedding.httpx.Client",
        side_effect=lambda **kwargs: _REAL_CLIENT(transport=transport, **kwargs),
    )


def _length_vector(request: httpx.Request) -> httpx.Response:
    prompt = json.loads(request.content)["prompt"]
    return httpx.Response(200, json={"embedding": [float(len(prompt)), 1.0]})


def test_one_request_per_text_in_order(mock_settings: Any) -> None:
    prompts: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/api/embeddings"
        assert body["model"] == "nomic-embed-text"
        prompts.append(body["prompt"])
        return _length_vector(request)

    with _serve(handler):
        vectors = OllamaEmbedding(mock_settings).embed(["sky", "is blue"])

    assert prompts == ["sky", "is blue"]
    assert vectors == [[3.0, 1.0], [7.0, 1.0]]


def test_embed_query_returns_single_vector(mock_settings: Any) -> None:
    with _serve(_length_vector):
        assert OllamaEmbedding(mock_settings).embed_query("why?") == [4.0, 1.0]


def test_base_url_from_env(mock_settings: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OLLAMA_BASE_URL", "http://gpu-box:11434/")
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return _length_vector(request)

    with _serve(handler):
        OllamaEmbedding(mock_settings).embed(["a"])

    assert seen == ["http://gpu-box:11434/api/embeddings"]


def test_dimension_defaults_when_unconfigured(mock_settings: Any) -> None:
    assert OllamaEmbedding(mock_settings).get_dimension() == OllamaEmbedding.DEFAULT_DIMENSION

    mock_settings.embedding.dimensions = 1024
    assert OllamaEmbedding(mock_settings).get_dimension() == 1024


@pytest.mark.parametrize(
    ("handler", "message"),
    [
        (lambda request: httpx.Response(404, json={"error": "model not found"}), "status 404"),
        (lambda request: httpx.Response(200, json={"embeddings": []}), "Unexpected response format"),
        (lambda request: httpx.Response(200, content=b"<html>"), "Failed to parse"),
    ],
    ids=["http-status", "missing-field", "not-json"],
)
def test_bad_responses_are_embedding_stage_errors(mock_settings: Any, handler, message: str) -> None:
    with _serve(handler), pytest.raises(OllamaEmbeddingError, match=message) as exc_info:
        OllamaEmbedding(mock_settings).embed(["test"])

    assert isinstance(exc_info.value, ServiceError)
    assert exc_info.value.stage == "embedding"


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (httpx.ConnectError, "Failed to connect to Ollama server"),
        (httpx.ReadTimeout, "timed out"),
    ],
)
def test_transport_failures_are_embedding_stage_errors(mock_settings: Any, error, message: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error("boom", request=request)

    with _serve(handler), pytest.raises(OllamaEmbeddingError, match=message) as exc_info:
        OllamaEmbedding(mock_settings).embed(["test"])

    assert exc_info.value.stage == "embedding"


def test_pipeline_surfaces_provider_error_unchanged(test_settings, mock_settings: Any) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    pipeline = IngestionPipeline(test_settings, embedding=OllamaEmbedding(mock_settings))

    with _serve(handler), pytest.raises(OllamaEmbeddingError) as exc_info:
        pipeline.embed_chunks([Chunk(id="c0", content="The sky is blue.")])

    assert exc_info.value.stage == "embedding"


def test_factory_creates_ollama_with_overrides(mock_settings: Any) -> None:
    embedding = EmbeddingFactory.create(mock_settings, base_url="http://override:11434", timeout=5.0)

    assert isinstance(embedding, OllamaEmbedding)
    assert embedding.base_url == "http://override:11434"
    assert embedding.timeout == 5.0
