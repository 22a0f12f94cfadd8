"""Retrieval-augmented answering.

Online path::

    question -> embed -> index query -> prompt -> language model -> answer

When retrieval finds nothing above ``retrieval.min_score`` the model is not
called at all and an ungrounded :class:`Answer` is returned. A
:class:`ChatSession` carries earlier turns into follow-up questions.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, List, Optional

from docqa.core.errors import ServiceError
from docqa.core.settings import Settings
from docqa.libs.embedding.base_embedding import BaseEmbedding
from docqa.libs.llm.base_llm import BaseLLM, Message
from docqa.libs.vector_store.base_vector_store import BaseVectorStore
from docqa.retrieval.models import Answer, ChatSession, QueryResult, StreamingAnswer

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_PATH = Path("config/prompts/qa.txt")

DEFAULT_PROMPT_TEMPLATE = (
    "Use the following pieces of context to answer the question at the end.\n"
    "If you don't know the answer, just say that you don't know, "
    "don't try to make up an answer.\n\n"
    "{context}\n\n"
    "Question: {question}\n"
    "Helpful Answer:"
)

CONTEXT_SEPARATOR = "\n\n"


def load_prompt_template(path: Path = DEFAULT_PROMPT_PATH) -> str:
    """Read the QA prompt template, or return the built-in one if ``path`` is absent."""
    if path.is_file():
        return path.read_text(encoding="utf-8")
    logger.debug(f"Prompt template {path} not found, using built-in template")
    return DEFAULT_PROMPT_TEMPLATE


def build_prompt(template: str, question: str, results: QueryResult) -> str:
    """Fill ``{context}`` and ``{question}`` in ``template``.

    Placeholders are substituted literally so braces inside retrieved text
    are left alone.
    """
    context = CONTEXT_SEPARATOR.join(item.chunk.content for item in results)
    return template.replace("{context}", context).replace("{question}", question)


class AnswerPipeline:
    """Answers questions from an already populated index.

    Attributes:
        top_k: Default number of chunks retrieved per question.
        min_score: Results scoring below this are discarded.
        prompt_template: Template with ``{context}`` and ``{question}``.
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        vector_store: BaseVectorStore,
        llm: BaseLLM,
        top_k: int = 4,
        min_score: float = 0.0,
        prompt_template: Optional[str] = None,
    ) -> None:
        if top_k <= 0:
            raise ValueError(f"top_k must be positive, got {top_k}")
        self.embedding = embedding
        self.vector_store = vector_store
        self.llm = llm
        self.top_k = top_k
        self.min_score = min_score
        self.prompt_template = prompt_template or load_prompt_template()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embedding: BaseEmbedding,
        vector_store: BaseVectorStore,
        llm: BaseLLM,
        **kwargs: Any,
    ) -> "AnswerPipeline":
        return cls(
            embedding=embedding,
            vector_store=vector_store,
            llm=llm,
            top_k=settings.retrieval.top_k,
            min_score=settings.retrieval.min_score,
            **kwargs,
        )

    def retrieve(self, question: str, top_k: Optional[int] = None) -> QueryResult:
        """Return the chunks most relevant to ``question``, best first.

        Raises:
            ValueError: If the question is blank or ``top_k`` is not positive.
            ServiceError: With stage ``embedding`` or ``retrieval``.
        """
        if not question or not question.strip():
            raise ValueError("Question must be a non-empty string")
        if top_k is None:
            top_k = self.top_k
        elif top_k <= 0:
            raise ValueError(f"top_k must be positive, got {top_k}")

        try:
            query_vector = self.embedding.embed_query(question)
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Embedding the question failed: {e}", stage="embedding") from e

        try:
            results = self.vector_store.query(query_vector, top_k=top_k)
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Index query failed: {e}", stage="retrieval") from e

        kept = [item for item in results if item.score >= self.min_score]
        logger.debug(
            f"Retrieved {len(results)} chunks, {len(kept)} above min_score={self.min_score}"
        )
        return kept

    def answer(
        self,
        question: str,
        top_k: Optional[int] = None,
        session: Optional[ChatSession] = None,
    ) -> Answer:
        """Answer ``question`` from retrieved context.

        With a ``session``, earlier turns are sent ahead of the prompt and
        the new question and answer are recorded in it. Ungrounded turns
        are not recorded.

        Raises:
            ServiceError: If embedding, retrieval or the model call fails.
        """
        results = self.retrieve(question, top_k=top_k)
        if not results:
            logger.info("No relevant context retrieved; not calling the model")
            return Answer.ungrounded(question)

        messages = self._messages(question, results, session)
        try:
            text = self.llm.chat(messages).content
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Model call failed: {e}", stage="llm") from e

        if session is not None:
            session.record(question, text)
        return Answer(question=question, text=text, sources=results, grounded=True)

    def stream(
        self,
        question: str,
        top_k: Optional[int] = None,
        session: Optional[ChatSession] = None,
    ) -> StreamingAnswer:
        """Like :meth:`answer`, with the model output as lazy fragments.

        Retrieval runs eagerly; the model is only called once the caller
        iterates ``fragments``. The turn is recorded in ``session`` only
        after the last fragment has been consumed.
        """
        results = self.retrieve(question, top_k=top_k)
        if not results:
            logger.info("No relevant context retrieved; not calling the model")
            return StreamingAnswer.ungrounded(question)

        messages = self._messages(question, results, session)
        return StreamingAnswer(
            question=question,
            sources=results,
            fragments=self._stream_fragments(messages, question, session),
            grounded=True,
        )

    def _messages(
        self,
        question: str,
        results: QueryResult,
        session: Optional[ChatSession],
    ) -> List[Message]:
        prompt = build_prompt(self.prompt_template, question, results)
        history = list(session.messages) if session is not None else []
        return history + [Message(role="user", content=prompt)]

    def _stream_fragments(
        self,
        messages: List[Message],
        question: str,
        session: Optional[ChatSession],
    ) -> Iterator[str]:
        received: List[str] = []
        try:
            for fragment in self.llm.stream(messages):
                received.append(fragment)
                yield fragment
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Model stream failed: {e}", stage="llm") from e

        if session is not None:
            session.record(question, "".join(received))
