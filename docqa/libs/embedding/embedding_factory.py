"""Embedding provider registry, keyed by ``embedding.provider``."""

from __future__ import annotations

from docqa.core.factory import ProviderFactory
from docqa.libs.embedding.base_embedding import BaseEmbedding


class EmbeddingFactory(ProviderFactory[BaseEmbedding]):
    """Built-in providers: ``openai`` (hosted) and ``ollama`` (local)."""

    kind = "Embedding"
    base_class = BaseEmbedding
    setting = ("embedding", "provider")


def _register_builtin_providers() -> None:
    from docqa.libs.embedding.ollama_embedding import OllamaEmbedding
    from docqa.libs.embedding.openai_embedding import OpenAIEmbedding

    EmbeddingFactory.register_provider("openai", OpenAIEmbedding)
    EmbeddingFactory.register_provider("ollama", OllamaEmbedding)


_register_builtin_providers()
