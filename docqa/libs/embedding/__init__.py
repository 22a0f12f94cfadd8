"""
Embedding Module.

This package contains embedding service abstractions and implementations:
- Base embedding class
- Embedding factory
- Provider implementations (OpenAI, Ollama)
"""

from docqa.libs.embedding.base_embedding import BaseEmbedding, EmbeddingVector
from docqa.libs.embedding.embedding_factory import EmbeddingFactory
from docqa.libs.embedding.ollama_embedding import OllamaEmbedding, OllamaEmbeddingError
from docqa.libs.embedding.openai_embedding import OpenAIEmbedding, OpenAIEmbeddingError

__all__ = [
    "BaseEmbedding",
    "EmbeddingVector",
    "EmbeddingFactory",
    "OpenAIEmbedding",
    "OpenAIEmbeddingError",
    "OllamaEmbedding",
    "OllamaEmbeddingError",
]
