"""VectorStore registry, keyed by ``vector_store.provider``."""

from __future__ import annotations

from docqa.core.factory import ProviderFactory
from docqa.libs.vector_store.base_vector_store import BaseVectorStore


class VectorStoreFactory(ProviderFactory[BaseVectorStore]):
    """Built-in providers: ``local`` (numpy, file-backed) and ``chroma``."""

    kind = "VectorStore"
    base_class = BaseVectorStore
    setting = ("vector_store", "provider")


def _register_builtin_providers() -> None:
    from docqa.libs.vector_store.chroma_store import ChromaStore
    from docqa.libs.vector_store.local_store import LocalVectorStore

    VectorStoreFactory.register_provider("local", LocalVectorStore)
    VectorStoreFactory.register_provider("chroma", ChromaStore)


_register_builtin_providers()
