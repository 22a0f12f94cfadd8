"""Abstract base class for Embedding providers.

This module defines the pluggable interface for Embedding service providers,
enabling switching between hosted and local backends through configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional


EmbeddingVector = List[float]


class BaseEmbedding(ABC):
    """Abstract base class for Embedding providers.

    All Embedding implementations must inherit from this class and implement
    the embed() method. Provider failures are raised as subclasses of
    :class:`docqa.core.errors.ServiceError` tagged with the ``embedding``
    stage; retrying is left to the caller.
    """

    @abstractmethod
    def embed(
        self,
        texts: List[str],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[EmbeddingVector]:
        """Generate embeddings for a batch of texts.

        Args:
            texts: List of text strings to embed. Must not be empty.
            trace: Optional trace context (unused).
            **kwargs: Provider-specific parameters.

        Returns:
            List of embedding vectors, one per input text, in input order.

        Raises:
            ValueError: If texts list is empty or contains invalid entries.
            ServiceError: If the embedding provider call fails.

        Example:
            >>> embeddings = embedding.embed(["hello", "world"])
            >>> len(embeddings)  # 2 vectors
        """
        pass

    def embed_query(self, text: str, **kwargs: Any) -> EmbeddingVector:
        """Embed a single query string."""
        return self.embed([text], **kwargs)[0]

    def validate_texts(self, texts: List[str]) -> None:
        """Validate input text list.

        Args:
            texts: List of texts to validate.

        Raises:
            ValueError: If texts list is empty or contains invalid entries.
        """
        if not texts:
            raise ValueError("Texts list cannot be empty")

        for i, text in enumerate(texts):
            if not isinstance(text, str):
                raise ValueError(
                    f"Text at index {i} is not a string (type: {type(text).__name__})"
                )
            if not text.strip():
                raise ValueError(
                    f"Text at index {i} is empty or whitespace-only. "
                    "Embedding providers typically reject empty strings."
                )

    def get_dimension(self) -> int:
        """Get the dimensionality of embeddings produced by this provider.

        Raises:
            NotImplementedError: If the subclass doesn't override this method.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement get_dimension() method"
        )
