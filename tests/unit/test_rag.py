"""Tests for the RagPipeline facade wiring ingestion and answering together."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from docqa.core.errors import NotFoundError
from docqa.libs.vector_store.local_store import LocalVectorStore
from docqa.rag import RagPipeline


def _rag(settings, embedding, llm) -> RagPipeline:
    return RagPipeline(
        settings,
        embedding=embedding,
        vector_store=LocalVectorStore(settings=settings),
        llm=llm,
    )


@pytest.fixture
def sky_file(tmp_path: Path) -> Path:
    path = tmp_path / "sky.txt"
    path.write_text("The sky is blue. Grass is green.", encoding="utf-8")
    return path


def test_ingest_then_answer(test_settings, fake_embedding, fake_llm, sky_file) -> None:
    rag = _rag(test_settings, fake_embedding, fake_llm)

    result = rag.ingest(sky_file)
    answer = rag.answer("What color is the sky?")

    assert result.chunk_count == 1
    assert answer.grounded is True
    assert answer.sources[0].chunk.content == "The sky is blue. Grass is green."


def test_new_instance_loads_persisted_index(test_settings, fake_embedding, fake_llm, sky_file) -> None:
    _rag(test_settings, fake_embedding, fake_llm).ingest(sky_file)

    answer = _rag(test_settings, fake_embedding, fake_llm).answer("What color is the sky?")

    assert answer.grounded is True


def test_ingest_extends_persisted_index(test_settings, fake_embedding, fake_llm, sky_file, tmp_path) -> None:
    _rag(test_settings, fake_embedding, fake_llm).ingest(sky_file)
    other = tmp_path / "sea.md"
    other.write_text("The sea is deep.", encoding="utf-8")

    _rag(test_settings, fake_embedding, fake_llm).ingest(other)

    assert LocalVectorStore(settings=test_settings).load().count() == 2


def test_answer_without_index_raises(test_settings, fake_embedding, fake_llm) -> None:
    with pytest.raises(NotFoundError):
        _rag(test_settings, fake_embedding, fake_llm).answer("Anything?")


def test_stream_after_ingest(test_settings, fake_embedding, fake_llm, sky_file) -> None:
    rag = _rag(test_settings, fake_embedding, fake_llm)
    rag.ingest(sky_file)

    assert rag.stream("What color is the sky?").collect().text == "It is blue. "


def test_from_settings_uses_factories(test_settings, fake_embedding, fake_llm) -> None:
    with patch("docqa.rag.EmbeddingFactory.create", return_value=fake_embedding) as embedding_create, \
            patch("docqa.rag.LLMFactory.create", return_value=fake_llm) as llm_create:
        rag = RagPipeline.from_settings(test_settings)

    embedding_create.assert_called_once_with(test_settings)
    llm_create.assert_called_once_with(test_settings)
    assert isinstance(rag.vector_store, LocalVectorStore)
