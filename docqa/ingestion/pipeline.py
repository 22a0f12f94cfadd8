"""Ingestion pipeline.

Wires the offline path end to end::

    source -> loader -> normalizer -> splitter -> embedding -> vector store

Components are created from :class:`Settings` through their factories unless
injected. Every chunk is embedded before the index is touched, so an
embedding failure leaves the index exactly as it was. An indexing failure
restores the records this run overwrote and drops the ones it added.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from docqa.core.errors import ServiceError
from docqa.core.settings import Settings
from docqa.ingestion.models import Chunk, Document, IngestionResult
from docqa.ingestion.normalizer import TextNormalizer
from docqa.libs.embedding.base_embedding import BaseEmbedding, EmbeddingVector
from docqa.libs.embedding.embedding_factory import EmbeddingFactory
from docqa.libs.loader.base_loader import PathLike
from docqa.libs.loader.loader_factory import LoaderFactory
from docqa.libs.splitter.base_splitter import BaseSplitter
from docqa.libs.splitter.splitter_factory import SplitterFactory
from docqa.libs.vector_store.base_vector_store import BaseVectorStore
from docqa.libs.vector_store.vector_store_factory import VectorStoreFactory

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Loads, cleans, chunks, embeds and indexes documents.

    Args:
        settings: Application settings.
        embedding: Optional embedding provider; defaults to
            ``EmbeddingFactory.create(settings)``.
        vector_store: Optional index; defaults to
            ``VectorStoreFactory.create(settings)``.
        splitter: Optional splitter; defaults to ``SplitterFactory.create``.
        normalizer: Optional normalizer; defaults to
            ``TextNormalizer.from_settings(settings)``.
    """

    def __init__(
        self,
        settings: Settings,
        embedding: Optional[BaseEmbedding] = None,
        vector_store: Optional[BaseVectorStore] = None,
        splitter: Optional[BaseSplitter] = None,
        normalizer: Optional[TextNormalizer] = None,
    ) -> None:
        self._settings = settings
        self._embedding = embedding
        self._vector_store = vector_store
        self._splitter = splitter
        self.normalizer = normalizer or TextNormalizer.from_settings(settings)

    @property
    def embedding(self) -> BaseEmbedding:
        if self._embedding is None:
            self._embedding = EmbeddingFactory.create(self._settings)
        return self._embedding

    @property
    def vector_store(self) -> BaseVectorStore:
        if self._vector_store is None:
            self._vector_store = VectorStoreFactory.create(self._settings)
        return self._vector_store

    @property
    def splitter(self) -> BaseSplitter:
        if self._splitter is None:
            self._splitter = self._create_splitter()
        return self._splitter

    def _create_splitter(self) -> BaseSplitter:
        """Create a splitter instance based on ingestion settings.

        Raises:
            ValueError: If ingestion settings are missing.
        """
        ingestion = getattr(self._settings, "ingestion", None)
        if ingestion is None:
            raise ValueError("settings.ingestion must be configured for ingestion pipeline")

        return SplitterFactory.create(
            self._settings,
            chunk_size=ingestion.chunk_size,
            chunk_overlap=ingestion.chunk_overlap,
        )

    def load(self, source: PathLike, crawl: bool = False) -> List[Document]:
        """Acquire documents from a file path or URL.

        Raises:
            AcquisitionError: If the source cannot be read.
        """
        loader = LoaderFactory.for_source(source, crawl=crawl, settings=self._settings)
        documents = loader.load_all(source)
        logger.info(f"Loaded {len(documents)} document(s) from {source}")
        return documents

    def normalize(self, documents: Sequence[Document]) -> List[Document]:
        return [self.normalizer.normalize_document(document) for document in documents]

    def split_document(self, document: Document) -> List[Chunk]:
        chunks = self.splitter.split_document(document)
        # Whitespace-only windows carry nothing to embed.
        return [chunk for chunk in chunks if chunk.content.strip()]

    def split_text(self, text: str, trace: Optional[Any] = None) -> List[str]:
        """Split raw text into chunk strings using the configured splitter."""
        ingestion = getattr(self._settings, "ingestion", None)
        if ingestion is None:
            raise ValueError("settings.ingestion must be configured for ingestion pipeline")

        return self.splitter.split_text(
            text,
            trace=trace,
            chunk_size=ingestion.chunk_size,
            chunk_overlap=ingestion.chunk_overlap,
        )

    def embed_chunks(self, chunks: Sequence[Chunk]) -> Dict[str, EmbeddingVector]:
        """Embed chunks in batches and return vectors keyed by chunk id.

        With ``ingestion.embedding_workers > 1`` batches are embedded on a
        thread pool; the result does not depend on completion order.

        Raises:
            ServiceError: If any batch fails. No partial result is returned.
        """
        if not chunks:
            return {}

        ingestion = self._settings.ingestion
        batch_size = ingestion.batch_size
        batches = [list(chunks[i:i + batch_size]) for i in range(0, len(chunks), batch_size)]
        workers = min(ingestion.embedding_workers, len(batches))

        logger.info(
            f"Embedding {len(chunks)} chunks in {len(batches)} batch(es) "
            f"with {workers} worker(s)"
        )

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self._embed_batch, batches))
        else:
            results = [self._embed_batch(batch) for batch in batches]

        vectors: Dict[str, EmbeddingVector] = {}
        for batch_vectors in results:
            vectors.update(batch_vectors)
        return vectors

    def _embed_batch(self, batch: List[Chunk]) -> Dict[str, EmbeddingVector]:
        try:
            vectors = self.embedding.embed([chunk.content for chunk in batch])
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Embedding batch failed: {e}", stage="embedding") from e

        if len(vectors) != len(batch):
            raise ServiceError(
                f"Embedding returned {len(vectors)} vectors for {len(batch)} chunks",
                stage="embedding",
            )
        return {chunk.id: vector for chunk, vector in zip(batch, vectors)}

    def index(self, chunks: Sequence[Chunk], vectors: Dict[str, EmbeddingVector]) -> str:
        """Add embedded chunks to the index and persist it.

        Records that already exist under the same ids are read first. On
        failure the ids this call introduced are removed and the overwritten
        records are written back, so the index holds what it held before.

        Returns:
            The location the index was saved to.

        Raises:
            ServiceError: With stage ``indexing`` if adding or saving fails.
        """
        store = self.vector_store
        batch_size = self._settings.ingestion.batch_size

        try:
            previous = store.get([chunk.id for chunk in chunks])
        except Exception as e:
            raise ServiceError(f"Reading existing index entries failed: {e}", stage="indexing") from e

        touched: List[str] = []
        try:
            for start in range(0, len(chunks), batch_size):
                batch = chunks[start:start + batch_size]
                # A failing batch may have been partially written
                touched.extend(chunk.id for chunk in batch)
                store.add([(chunk, vectors[chunk.id]) for chunk in batch])
        except Exception as e:
            self._rollback(store, touched, previous)
            raise ServiceError(f"Adding chunks to the index failed: {e}", stage="indexing") from e

        try:
            location = store.save()
        except Exception as e:
            raise ServiceError(f"Saving the index failed: {e}", stage="indexing") from e

        logger.info(f"Indexed {len(touched)} chunks, saved to {location}")
        return location

    @staticmethod
    def _rollback(
        store: BaseVectorStore,
        touched: List[str],
        previous: List[Dict[str, Any]],
    ) -> None:
        touched_ids = set(touched)
        restore = [record for record in previous if record["id"] in touched_ids]
        restored_ids = {record["id"] for record in restore}
        new_ids = [record_id for record_id in touched if record_id not in restored_ids]
        try:
            if new_ids:
                store.delete(new_ids)
            if restore:
                store.upsert(restore)
            logger.warning(
                f"Rolled back indexing failure: removed {len(new_ids)} new chunks, "
                f"restored {len(restore)} overwritten chunks"
            )
        except Exception as e:
            logger.error(f"Rollback of {len(touched)} chunks failed: {e}")

    def run(self, source: PathLike, crawl: bool = False) -> IngestionResult:
        """Ingest ``source`` into the configured index.

        Args:
            source: File path or http(s) URL.
            crawl: For URLs, crawl the site instead of loading a single page.

        Returns:
            Summary of the documents and chunks ingested.

        Raises:
            AcquisitionError: If the source cannot be read.
            ServiceError: If embedding or indexing fails.
        """
        documents = self.normalize(self.load(source, crawl=crawl))

        chunks: List[Chunk] = []
        for document in documents:
            chunks.extend(self.split_document(document))
        logger.info(f"Split {len(documents)} document(s) into {len(chunks)} chunks")

        result = IngestionResult(source=str(source), documents=documents, chunks=chunks)
        if not chunks:
            logger.warning(f"No text left to index for {source}")
            return result

        vectors = self.embed_chunks(chunks)
        result.location = self.index(chunks, vectors)
        return result
