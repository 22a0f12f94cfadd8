"""OpenAI Embedding implementation for the hosted embeddings API."""

from __future__ import annotations

import os
from typing import Any, List, Optional

import openai

from docqa.core.errors import ServiceError
from docqa.libs.embedding.base_embedding import BaseEmbedding, EmbeddingVector


class OpenAIEmbeddingError(ServiceError):
    """Raised when the OpenAI Embeddings API call fails."""

    default_stage = "embedding"


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI Embedding provider.

    Works with any OpenAI-compatible endpoint via ``base_url``.

    Attributes:
        api_key: API key (explicit or ``OPENAI_API_KEY``).
        base_url: API base URL (explicit, ``OPENAI_BASE_URL`` or the default).
        model: Embedding model identifier.
        dimensions: Optional output dimension passed to the API.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_DIMENSION = 1536

    def __init__(
        self,
        settings: Any,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the OpenAI Embedding provider.

        Raises:
            ValueError: If no API key is available.
        """
        self.model = settings.embedding.model
        self.dimensions = getattr(settings.embedding, "dimensions", None)

        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. Set OPENAI_API_KEY or pass api_key explicitly."
            )

        self.base_url = base_url or os.environ.get("OPENAI_BASE_URL") or self.DEFAULT_BASE_URL
        self.timeout = timeout
        self._extra_config = kwargs

    def embed(
        self,
        texts: List[str],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[EmbeddingVector]:
        """Generate embeddings for a batch of texts in a single API call.

        Raises:
            ValueError: If texts list is empty or contains invalid entries.
            OpenAIEmbeddingError: If the API call fails or returns a
                mismatched number of vectors.
        """
        self.validate_texts(texts)

        request: dict[str, Any] = {"input": texts, "model": self.model}
        if self.dimensions:
            request["dimensions"] = self.dimensions

        client_kwargs: dict[str, Any] = {"api_key": self.api_key, "base_url": self.base_url}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout

        try:
            client = openai.OpenAI(**client_kwargs)
            response = client.embeddings.create(**request)
        except openai.APIStatusError as e:
            raise OpenAIEmbeddingError(
                f"OpenAI API request failed with status {e.status_code}: {e.message}"
            ) from e
        except openai.APITimeoutError as e:
            raise OpenAIEmbeddingError("OpenAI API request timed out") from e
        except openai.APIConnectionError as e:
            raise OpenAIEmbeddingError(f"Failed to connect to OpenAI API at {self.base_url}") from e
        except openai.OpenAIError as e:
            raise OpenAIEmbeddingError(f"OpenAI API request failed: {e}") from e

        vectors = [list(item.embedding) for item in response.data]
        if len(vectors) != len(texts):
            raise OpenAIEmbeddingError(
                f"OpenAI API returned {len(vectors)} embeddings for {len(texts)} texts"
            )
        return vectors

    def get_dimension(self) -> int:
        return self.dimensions or self.DEFAULT_DIMENSION
