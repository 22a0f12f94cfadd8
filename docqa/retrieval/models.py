"""Retrieval and answering result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from docqa.ingestion.models import Chunk
from docqa.libs.llm.base_llm import Message


@dataclass(frozen=True)
class ScoredChunk:
    """A retrieved chunk with its similarity score (higher is closer)."""
    chunk: Chunk
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"chunk": self.chunk.to_dict(), "score": self.score}


QueryResult = List[ScoredChunk]


@dataclass
class Answer:
    """Outcome of a retrieval-augmented question.

    ``grounded`` is False when retrieval found nothing; in that case the
    model was never called and ``text`` is None.
    """
    question: str
    text: Optional[str]
    sources: QueryResult = field(default_factory=list)
    grounded: bool = True

    @classmethod
    def ungrounded(cls, question: str) -> "Answer":
        return cls(question=question, text=None, sources=[], grounded=False)


@dataclass
class StreamingAnswer:
    """Streaming variant of :class:`Answer`.

    ``fragments`` is lazy: nothing is requested from the model until the
    caller starts iterating. It is empty when ``grounded`` is False.
    """
    question: str
    sources: QueryResult
    fragments: Iterator[str]
    grounded: bool = True

    @classmethod
    def ungrounded(cls, question: str) -> "StreamingAnswer":
        return cls(question=question, sources=[], fragments=iter(()), grounded=False)

    def collect(self) -> Answer:
        """Consume the remaining fragments into a complete :class:`Answer`."""
        if not self.grounded:
            return Answer.ungrounded(self.question)
        return Answer(
            question=self.question,
            text="".join(self.fragments),
            sources=self.sources,
            grounded=True,
        )


@dataclass
class ChatSession:
    """Conversation memory for follow-up questions.

    ``messages`` holds earlier turns, oldest first: each question as asked
    (not the filled prompt) followed by the model's answer. They are sent
    ahead of the grounded prompt so the model can resolve references to
    earlier turns. ``max_turns`` keeps only the most recent question/answer
    pairs; None keeps all of them.
    """
    messages: List[Message] = field(default_factory=list)
    max_turns: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_turns is not None and self.max_turns <= 0:
            raise ValueError(f"max_turns must be positive, got {self.max_turns}")

    @property
    def turns(self) -> int:
        return len(self.messages) // 2

    def record(self, question: str, answer: str) -> None:
        self.messages.append(Message(role="user", content=question))
        self.messages.append(Message(role="assistant", content=answer))
        if self.max_turns is not None:
            del self.messages[:-2 * self.max_turns]

    def clear(self) -> None:
        self.messages.clear()
