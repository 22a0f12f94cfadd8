"""Unit tests for the end-to-end IngestionPipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import pytest

from docqa.core.errors import AcquisitionError, ServiceError
from docqa.ingestion.models import Chunk, Document
from docqa.ingestion.pipeline import IngestionPipeline
from docqa.libs.embedding.base_embedding import BaseEmbedding
from docqa.libs.vector_store.local_store import LocalVectorStore


class FailingEmbedding(BaseEmbedding):
    def __init__(self, fail_on_call: int) -> None:
        self.fail_on_call = fail_on_call
        self.calls = 0

    def embed(self, texts: List[str], trace: Optional[Any] = None, **kwargs: Any) -> List[List[float]]:
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise ServiceError("quota exceeded", stage="embedding")
        return [[1.0, float(len(t))] for t in texts]


class FlakyStore(LocalVectorStore):
    """Local store whose n-th add fails."""

    def __init__(self, fail_on_add: int, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.fail_on_add = fail_on_add
        self.adds = 0
        self.saved = False

    def add(self, batch, trace=None):
        self.adds += 1
        if self.adds == self.fail_on_add:
            raise RuntimeError("disk full")
        return super().add(batch, trace=trace)

    def save(self, location=None):
        self.saved = True
        return super().save(location)


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "sky.txt"
    path.write_text("The sky is blue. " * 40, encoding="utf-8")
    return path


@pytest.fixture
def small_batches(make_settings):
    return make_settings(ingestion={"chunk_size": 50, "chunk_overlap": 10, "batch_size": 2})


def test_run_indexes_and_saves(small_batches, fake_embedding, text_file, tmp_path) -> None:
    store = LocalVectorStore(settings=small_batches)
    pipeline = IngestionPipeline(small_batches, embedding=fake_embedding, vector_store=store)

    result = pipeline.run(text_file)

    assert result.chunk_count > 1
    assert store.count() == result.chunk_count
    assert result.location == str((tmp_path / "index").resolve())
    assert LocalVectorStore(settings=small_batches).load().count() == result.chunk_count
    assert all(len(batch) <= 2 for batch in fake_embedding.calls)
    assert [c.sequence_index for c in result.chunks] == list(range(result.chunk_count))


def test_html_documents_are_normalized(test_settings, fake_embedding) -> None:
    pipeline = IngestionPipeline(test_settings, embedding=fake_embedding)
    raw = Document(
        id="p",
        content="<script>alert(1)</script><p>Hello W\u00f6rld</p>",
        metadata={"content_type": "text/html"},
    )

    documents = pipeline.normalize([raw])

    assert documents[0].content == "Hello Wrld"
    assert documents[0].metadata["normalized"] is True


def test_missing_source_propagates(test_settings, fake_embedding, tmp_path) -> None:
    pipeline = IngestionPipeline(test_settings, embedding=fake_embedding)
    with pytest.raises(AcquisitionError):
        pipeline.run(tmp_path / "missing.txt")
    assert fake_embedding.calls == []


def test_empty_document_indexes_nothing(test_settings, fake_embedding, tmp_path) -> None:
    empty = tmp_path / "empty.txt"
    empty.write_text("\x00\x01", encoding="utf-8")
    store = LocalVectorStore(settings=test_settings)

    result = IngestionPipeline(test_settings, embedding=fake_embedding, vector_store=store).run(empty)

    assert result.chunks == []
    assert result.location is None
    assert fake_embedding.calls == []


def test_embedding_failure_leaves_index_untouched(small_batches, text_file) -> None:
    store = FlakyStore(fail_on_add=0, settings=small_batches)
    pipeline = IngestionPipeline(
        small_batches, embedding=FailingEmbedding(fail_on_call=2), vector_store=store
    )

    with pytest.raises(ServiceError) as exc_info:
        pipeline.run(text_file)

    assert exc_info.value.stage == "embedding"
    assert store.adds == 0
    assert store.saved is False


def test_add_failure_rolls_back(small_batches, fake_embedding, text_file) -> None:
    store = FlakyStore(fail_on_add=2, settings=small_batches)
    store.upsert([{"id": "existing", "vector": [1.0] * fake_embedding.dimension, "text": "keep"}])
    pipeline = IngestionPipeline(small_batches, embedding=fake_embedding, vector_store=store)

    with pytest.raises(ServiceError, match="disk full") as exc_info:
        pipeline.run(text_file)

    assert exc_info.value.stage == "indexing"
    assert store.count() == 1
    assert store.query([1.0] * fake_embedding.dimension, top_k=5)[0].chunk.id == "existing"
    assert store.saved is False


def test_threaded_embedding_matches_sequential(make_settings, fake_embedding) -> None:
    chunks = [Chunk(id=f"c{i}", content=f"word{i} sky blue {i}") for i in range(9)]
    sequential = IngestionPipeline(
        make_settings(ingestion={"batch_size": 2}), embedding=fake_embedding
    ).embed_chunks(chunks)
    threaded = IngestionPipeline(
        make_settings(ingestion={"batch_size": 2, "embedding_workers": 4}), embedding=fake_embedding
    ).embed_chunks(chunks)

    assert threaded == sequential
    assert list(sequential) == [c.id for c in chunks]


def test_embed_count_mismatch_is_service_error(test_settings) -> None:
    class ShortEmbedding(BaseEmbedding):
        def embed(self, texts, trace=None, **kwargs):
            return [[1.0]]

    pipeline = IngestionPipeline(test_settings, embedding=ShortEmbedding())
    chunks = [Chunk(id="a", content="one"), Chunk(id="b", content="two")]

    with pytest.raises(ServiceError, match="1 vectors for 2 chunks"):
        pipeline.embed_chunks(chunks)


def test_failed_reingest_restores_overwritten_chunks(small_batches, fake_embedding, text_file) -> None:
    store = FlakyStore(fail_on_add=0, settings=small_batches)
    IngestionPipeline(small_batches, embedding=fake_embedding, vector_store=store).run(text_file)
    ids = sorted(store._records)
    before = store.get(ids)

    # Same path, so the same chunk ids; new content overwrites them
    text_file.write_text("The grass is green. " * 40, encoding="utf-8")
    flaky = FlakyStore(fail_on_add=2, settings=small_batches).load()
    pipeline = IngestionPipeline(small_batches, embedding=fake_embedding, vector_store=flaky)

    with pytest.raises(ServiceError) as exc_info:
        pipeline.run(text_file)

    assert exc_info.value.stage == "indexing"
    assert flaky.count() == len(ids)
    assert flaky.get(ids) == before
    assert flaky.saved is False
    assert LocalVectorStore(settings=small_batches).load().get(ids) == before


def test_failed_reingest_removes_only_new_chunks(small_batches, fake_embedding, text_file) -> None:
    store = FlakyStore(fail_on_add=0, settings=small_batches)
    IngestionPipeline(small_batches, embedding=fake_embedding, vector_store=store).run(text_file)
    ids = sorted(store._records)

    # Longer text keeps the old chunk ids and adds new ones after them
    text_file.write_text("The sky is blue. " * 80, encoding="utf-8")
    flaky = FlakyStore(fail_on_add=len(ids) // 2 + 2, settings=small_batches).load()
    pipeline = IngestionPipeline(small_batches, embedding=fake_embedding, vector_store=flaky)

    with pytest.raises(ServiceError):
        pipeline.run(text_file)

    assert sorted(flaky._records) == ids


def test_multiline_text_keeps_word_boundaries(test_settings, fake_embedding, tmp_path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("first line ends here\nsecond line starts\n\nnew paragraph", encoding="utf-8")
    pipeline = IngestionPipeline(test_settings, embedding=fake_embedding)

    documents = pipeline.normalize(pipeline.load(path))

    assert documents[0].content == "first line ends here second line starts new paragraph"
    chunks = pipeline.split_document(documents[0])
    assert "here second" in chunks[0].content
