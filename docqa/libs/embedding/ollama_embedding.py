"""Ollama Embedding implementation for local embedding models.

This module provides the Ollama Embedding implementation that works with
locally running Ollama instances (nomic-embed-text, mxbai-embed-large, ...).
"""

from __future__ import annotations

import os
from typing import Any, List, Optional

import httpx

from docqa.core.errors import ServiceError
from docqa.libs.embedding.base_embedding import BaseEmbedding, EmbeddingVector


class OllamaEmbeddingError(ServiceError):
    """Raised when Ollama Embeddings API call fails."""

    default_stage = "embedding"


class OllamaEmbedding(BaseEmbedding):
    """Ollama Embedding provider implementation for local embedding.

    Attributes:
        base_url: The base URL for the Ollama server (default: http://localhost:11434).
        model: The model identifier to use (e.g., 'nomic-embed-text').
        timeout: Request timeout in seconds.
        dimension: The dimensionality of embeddings produced by this model.

    Example:
        >>> from docqa.core.settings import load_settings
        >>> settings = load_settings('config/settings.yaml')
        >>> embedding = OllamaEmbedding(settings)
        >>> vectors = embedding.embed(["hello world", "test"])
    """

    DEFAULT_BASE_URL = "http://localhost:11434"
    DEFAULT_TIMEOUT = 120.0  # Longer timeout for local inference
    DEFAULT_DIMENSION = 768  # Common dimension for local embedding models

    def __init__(
        self,
        settings: Any,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the Ollama Embedding provider.

        Args:
            settings: Application settings containing Embedding configuration.
            base_url: Optional base URL override (falls back to env var OLLAMA_BASE_URL).
            timeout: Optional timeout override for requests.
            **kwargs: Additional configuration overrides.
        """
        self.model = settings.embedding.model

        # Base URL: explicit > env var > default
        self.base_url = (
            base_url
            or os.environ.get("OLLAMA_BASE_URL")
            or self.DEFAULT_BASE_URL
        )

        self.timeout = timeout or self.DEFAULT_TIMEOUT

        self.dimension = getattr(settings.embedding, "dimensions", None) or self.DEFAULT_DIMENSION

        self._extra_config = kwargs

    def embed(
        self,
        texts: List[str],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[EmbeddingVector]:
        """Generate embeddings for a batch of texts using Ollama API.

        The Ollama endpoint takes a single prompt, so one request is sent per
        text over a shared client.

        Raises:
            ValueError: If texts list is empty or contains invalid entries.
            OllamaEmbeddingError: If API call fails.
        """
        self.validate_texts(texts)

        url = f"{self.base_url.rstrip('/')}/api/embeddings"
        embeddings: List[EmbeddingVector] = []

        try:
            with httpx.Client(timeout=self.timeout) as client:
                for text in texts:
                    response = client.post(url, json={"model": self.model, "prompt": text})
                    response.raise_for_status()
                    result = response.json()

                    if "embedding" not in result:
                        raise OllamaEmbeddingError(
                            f"Unexpected response format from Ollama API. "
                            f"Expected 'embedding' field but got: {list(result.keys())}"
                        )
                    embeddings.append(result["embedding"])

        except httpx.HTTPStatusError as e:
            raise OllamaEmbeddingError(
                f"Ollama API request failed with status {e.response.status_code}. "
                f"Ensure Ollama is running and model '{self.model}' is available."
            ) from e
        except httpx.ConnectError as e:
            raise OllamaEmbeddingError(
                f"Failed to connect to Ollama server at {self.base_url}. "
                f"Ensure Ollama is running (try: ollama serve)"
            ) from e
        except httpx.TimeoutException as e:
            raise OllamaEmbeddingError(
                f"Ollama API request timed out after {self.timeout}s. "
                f"The model may be loading or the request is too large."
            ) from e
        except httpx.RequestError as e:
            raise OllamaEmbeddingError(f"Ollama API request failed: {str(e)}") from e
        except (KeyError, ValueError, TypeError) as e:
            raise OllamaEmbeddingError(f"Failed to parse Ollama API response: {str(e)}") from e

        return embeddings

    def get_dimension(self) -> int:
        """Get the dimensionality of embeddings produced by this provider.

        Note:
            Common dimensions: nomic-embed-text 768, mxbai-embed-large 1024.
        """
        return self.dimension
