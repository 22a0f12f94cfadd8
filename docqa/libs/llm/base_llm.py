"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional


VALID_ROLES = {"system", "user", "assistant"}


@dataclass
class Message:
    """A single chat message."""
    role: str
    content: str


@dataclass
class ChatResponse:
    """Result of a chat completion."""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    raw_response: Optional[Any] = None


class BaseLLM(ABC):
    """Abstract base class for LLM providers.

    Implementations surface every provider failure as a
    :class:`docqa.core.errors.ServiceError` subclass tagged with the ``llm``
    stage. Streaming is exposed as a lazy iterator of text fragments; the
    caller decides how to consume them.
    """

    @abstractmethod
    def chat(
        self,
        messages: List[Message],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> ChatResponse:
        """Generate a chat completion.

        Args:
            messages: Conversation messages, oldest first.
            trace: Optional trace context (unused).
            **kwargs: Overrides (temperature, max_tokens, model).
        """
        raise NotImplementedError

    def stream(
        self,
        messages: List[Message],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> Iterator[str]:
        """Yield the completion as text fragments.

        Providers without native streaming yield the whole answer once.
        """
        yield self.chat(messages, trace=trace, **kwargs).content

    def complete(self, prompt: str, **kwargs: Any) -> str:
        """Send a single user prompt and return the generated text."""
        return self.chat([Message(role="user", content=prompt)], **kwargs).content

    def validate_messages(self, messages: List[Message]) -> None:
        """Validate chat messages.

        Raises:
            ValueError: If the list is empty or a message is malformed.
        """
        if not messages:
            raise ValueError("Messages list cannot be empty")

        for i, message in enumerate(messages):
            if not isinstance(message, Message):
                raise ValueError(
                    f"Message at index {i} is not a Message (type: {type(message).__name__})"
                )
            if message.role not in VALID_ROLES:
                raise ValueError(
                    f"Message at index {i} has invalid role '{message.role}'. "
                    f"Expected one of: {', '.join(sorted(VALID_ROLES))}"
                )
            if not isinstance(message.content, str) or not message.content.strip():
                raise ValueError(f"Message at index {i} has empty content")
