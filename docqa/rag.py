"""Top-level question-answering facade.

:class:`RagPipeline` builds every component from :class:`Settings` and
exposes the two user-facing flows: ingesting a source and asking a question.

Example:
    >>> rag = RagPipeline.from_settings(load_settings())
    >>> rag.ingest("docs/handbook.pdf")
    >>> rag.answer("How many vacation days do I get?").text
"""

from __future__ import annotations

import logging
from typing import Optional

from docqa.core.errors import NotFoundError
from docqa.core.settings import Settings
from docqa.ingestion.models import IngestionResult
from docqa.ingestion.normalizer import TextNormalizer
from docqa.ingestion.pipeline import IngestionPipeline
from docqa.libs.embedding.base_embedding import BaseEmbedding
from docqa.libs.embedding.embedding_factory import EmbeddingFactory
from docqa.libs.llm.base_llm import BaseLLM
from docqa.libs.llm.llm_factory import LLMFactory
from docqa.libs.loader.base_loader import PathLike
from docqa.libs.splitter.base_splitter import BaseSplitter
from docqa.libs.vector_store.base_vector_store import BaseVectorStore
from docqa.libs.vector_store.vector_store_factory import VectorStoreFactory
from docqa.retrieval.answering import AnswerPipeline
from docqa.retrieval.models import Answer, ChatSession, StreamingAnswer

logger = logging.getLogger(__name__)


class RagPipeline:
    """Ingestion and answering over one shared index.

    The index is loaded from its persisted location the first time a
    question is asked, unless this instance already ingested into it.
    """

    def __init__(
        self,
        settings: Settings,
        embedding: BaseEmbedding,
        vector_store: BaseVectorStore,
        llm: BaseLLM,
        splitter: Optional[BaseSplitter] = None,
        normalizer: Optional[TextNormalizer] = None,
        prompt_template: Optional[str] = None,
    ) -> None:
        self.settings = settings
        self.vector_store = vector_store
        self.ingestion = IngestionPipeline(
            settings,
            embedding=embedding,
            vector_store=vector_store,
            splitter=splitter,
            normalizer=normalizer,
        )
        self.answering = AnswerPipeline.from_settings(
            settings,
            embedding=embedding,
            vector_store=vector_store,
            llm=llm,
            prompt_template=prompt_template,
        )
        self._index_ready = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "RagPipeline":
        """Create every component through its factory."""
        return cls(
            settings,
            embedding=EmbeddingFactory.create(settings),
            vector_store=VectorStoreFactory.create(settings),
            llm=LLMFactory.create(settings),
        )

    def ingest(self, source: PathLike, crawl: bool = False) -> IngestionResult:
        """Add ``source`` to the index and persist it.

        An existing persisted index is loaded first so new chunks extend it.
        """
        self._ensure_index(required=False)
        result = self.ingestion.run(source, crawl=crawl)
        self._index_ready = True
        return result

    def answer(
        self,
        question: str,
        top_k: Optional[int] = None,
        session: Optional[ChatSession] = None,
    ) -> Answer:
        """Answer ``question``, continuing ``session`` when given.

        Raises:
            NotFoundError: If nothing has been ingested yet.
            ServiceError: If a service call fails.
        """
        self._ensure_index()
        return self.answering.answer(question, top_k=top_k, session=session)

    def stream(
        self,
        question: str,
        top_k: Optional[int] = None,
        session: Optional[ChatSession] = None,
    ) -> StreamingAnswer:
        self._ensure_index()
        return self.answering.stream(question, top_k=top_k, session=session)

    def _ensure_index(self, required: bool = True) -> None:
        if self._index_ready or self.vector_store.count() > 0:
            self._index_ready = True
            return
        try:
            self.vector_store.load()
        except NotFoundError:
            if required:
                raise
            logger.info("No persisted index yet; starting a new one")
        self._index_ready = True
