"""
Vector Store Module.

This package contains the Index abstraction and its backends:
- Base vector store class
- VectorStore factory
- Local numpy store and ChromaDB store
"""

from docqa.libs.vector_store.base_vector_store import BaseVectorStore
from docqa.libs.vector_store.chroma_store import ChromaStore
from docqa.libs.vector_store.local_store import LocalVectorStore
from docqa.libs.vector_store.vector_store_factory import VectorStoreFactory

__all__ = [
    "BaseVectorStore",
    "ChromaStore",
    "LocalVectorStore",
    "VectorStoreFactory",
]
