"""ChromaDB VectorStore implementation.

This module provides a concrete implementation of BaseVectorStore using ChromaDB,
either embedded (``PersistentClient``) or against a remote Chroma server
(``HttpClient``) when ``vector_store.host`` is configured.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

try:
    import chromadb
    from chromadb.config import Settings as ChromaSettings
    CHROMADB_AVAILABLE = True
except ImportError:
    CHROMADB_AVAILABLE = False

from docqa.core.errors import NotFoundError
from docqa.libs.vector_store.base_vector_store import BaseVectorStore
from docqa.retrieval.models import QueryResult, ScoredChunk

if TYPE_CHECKING:
    from docqa.core.settings import Settings

logger = logging.getLogger(__name__)


class ChromaStore(BaseVectorStore):
    """ChromaDB implementation of VectorStore.

    Chroma persists on every write, so :meth:`save` only reports the
    location; :meth:`load` switches to an existing collection.

    Attributes:
        client: ChromaDB client instance.
        collection: ChromaDB collection for storing vectors.
        collection_name: Name of the collection.
        persist_directory: Directory path for embedded persistent storage.
        host: Remote Chroma host, or None for embedded mode.

    Example:
        >>> settings = load_settings('config/settings.yaml')
        >>> store = ChromaStore(settings=settings)
        >>> store.upsert([{'id': 'doc1_chunk0', 'vector': [0.1, 0.2], 'text': '...'}])
        >>> results = store.query([0.1, 0.2], top_k=5)
    """

    COLLECTION_METADATA = {"hnsw:space": "cosine"}

    def __init__(self, settings: Settings, **kwargs: Any) -> None:
        """Initialize ChromaStore with configuration.

        Args:
            settings: Application settings containing vector_store configuration.
            **kwargs: Optional overrides for collection_name, persist_directory,
                host or port.

        Raises:
            ImportError: If chromadb package is not installed.
            ValueError: If required configuration is missing.
            RuntimeError: If ChromaDB client initialization fails.
        """
        if not CHROMADB_AVAILABLE:
            raise ImportError(
                "chromadb package is required for ChromaStore. "
                "Install it with: pip install chromadb"
            )

        try:
            vector_store_config = settings.vector_store
        except AttributeError as e:
            raise ValueError(
                "Missing required configuration: settings.vector_store. "
                "Please ensure 'vector_store' section exists in settings.yaml"
            ) from e

        self.collection_name = kwargs.get(
            "collection_name",
            getattr(vector_store_config, "collection_name", "docqa"),
        )
        self.host = kwargs.get("host", getattr(vector_store_config, "host", None))
        self.port = kwargs.get("port", getattr(vector_store_config, "port", None)) or 8000
        persist_dir_str = kwargs.get(
            "persist_directory",
            getattr(vector_store_config, "persist_directory", "./data/db/chroma"),
        )
        self.persist_directory = Path(persist_dir_str).resolve()

        chroma_settings = ChromaSettings(anonymized_telemetry=False, allow_reset=True)
        try:
            if self.host:
                logger.info(f"Connecting to remote Chroma at {self.host}:{self.port}")
                self.client = chromadb.HttpClient(
                    host=self.host, port=self.port, settings=chroma_settings
                )
            else:
                self.persist_directory.mkdir(parents=True, exist_ok=True)
                logger.info(f"Opening embedded Chroma at '{self.persist_directory}'")
                self.client = chromadb.PersistentClient(
                    path=str(self.persist_directory), settings=chroma_settings
                )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize ChromaDB client: {e}") from e

        try:
            self.collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata=self.COLLECTION_METADATA,
            )
        except Exception as e:
            raise RuntimeError(
                f"Failed to get or create collection '{self.collection_name}': {e}"
            ) from e

        logger.info(
            f"ChromaStore initialized: collection='{self.collection_name}', "
            f"count={self.collection.count()}"
        )

    @property
    def location(self) -> str:
        if self.host:
            return f"http://{self.host}:{self.port}/{self.collection_name}"
        return f"{self.persist_directory}/{self.collection_name}"

    def upsert(
        self,
        records: List[Dict[str, Any]],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> None:
        """Insert or update records in ChromaDB.

        Raises:
            ValueError: If records list is empty or contains invalid entries.
            RuntimeError: If the upsert operation fails.
        """
        self.validate_records(records)

        ids = []
        embeddings = []
        metadatas = []
        documents = []

        for record in records:
            ids.append(str(record["id"]))
            embeddings.append(list(record["vector"]))

            sanitized_metadata = self.sanitize_metadata(record.get("metadata", {}))
            # Older Chroma releases reject empty metadata dicts
            if not sanitized_metadata:
                sanitized_metadata = {"_placeholder": "true"}
            metadatas.append(sanitized_metadata)

            documents.append(str(record.get("text", "")))

        try:
            self.collection.upsert(
                ids=ids,
                embeddings=embeddings,
                metadatas=metadatas,
                documents=documents,
            )
            logger.debug(f"Successfully upserted {len(records)} records to ChromaDB")
        except Exception as e:
            raise RuntimeError(
                f"Failed to upsert {len(records)} records to ChromaDB: {e}"
            ) from e

    def query(
        self,
        vector: List[float],
        top_k: int = 10,
        filters: Optional[Dict[str, Any]] = None,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> QueryResult:
        """Query ChromaDB for similar vectors.

        Raises:
            ValueError: If vector is empty or top_k is invalid.
            RuntimeError: If the query operation fails.
        """
        self.validate_query_vector(vector, top_k)

        total = self.collection.count()
        if total == 0:
            return []

        try:
            results = self.collection.query(
                query_embeddings=[list(vector)],
                n_results=min(top_k, total),
                where=self._build_where_clause(filters) if filters else None,
                include=["metadatas", "distances", "documents"],
            )
        except Exception as e:
            raise RuntimeError(
                f"Failed to query ChromaDB with top_k={top_k}: {e}"
            ) from e

        output: QueryResult = []

        # ChromaDB returns nested lists: [[id1, id2, ...]]
        if results and results.get("ids") and results["ids"][0]:
            ids = results["ids"][0]
            distances = (results.get("distances") or [[0.0] * len(ids)])[0]
            metadatas = (results.get("metadatas") or [[{}] * len(ids)])[0]
            documents = (results.get("documents") or [[""] * len(ids)])[0]

            for i, record_id in enumerate(ids):
                # Cosine distance is in [0, 2]; map to similarity in [0, 1]
                score = max(0.0, 1.0 - (distances[i] / 2.0))
                chunk = self.record_to_chunk(record_id, documents[i] or "", metadatas[i])
                output.append(ScoredChunk(chunk=chunk, score=score))

        output.sort(key=lambda item: item.score, reverse=True)
        logger.debug(f"Query returned {len(output)} results")
        return output

    def get(
        self,
        ids: List[str],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[Dict[str, Any]]:
        """Fetch stored records by id; unknown ids are skipped.

        Raises:
            RuntimeError: If the get operation fails.
        """
        if not ids:
            return []

        try:
            results = self.collection.get(
                ids=[str(id_) for id_ in ids],
                include=["embeddings", "metadatas", "documents"],
            )
        except Exception as e:
            raise RuntimeError(f"Failed to get {len(ids)} records from ChromaDB: {e}") from e

        found = results.get("ids") or []
        # Embeddings may come back as a numpy array, which has no truth value
        embeddings = results.get("embeddings")
        metadatas = results.get("metadatas") or [None] * len(found)
        documents = results.get("documents") or [None] * len(found)

        records = []
        for i, record_id in enumerate(found):
            records.append({
                "id": record_id,
                "vector": [float(value) for value in embeddings[i]],
                "text": documents[i] or "",
                "metadata": dict(metadatas[i] or {}),
            })
        return records

    def delete(
        self,
        ids: List[str],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> None:
        """Delete records from ChromaDB by IDs.

        Raises:
            ValueError: If ids list is empty.
            RuntimeError: If the delete operation fails.
        """
        if not ids:
            raise ValueError("IDs list cannot be empty")

        try:
            self.collection.delete(ids=[str(id_) for id_ in ids])
            logger.debug(f"Successfully deleted {len(ids)} records from ChromaDB")
        except Exception as e:
            raise RuntimeError(
                f"Failed to delete {len(ids)} records from ChromaDB: {e}"
            ) from e

    def clear(
        self,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> None:
        """Clear all records from the current collection.

        Raises:
            RuntimeError: If the clear operation fails.
        """
        try:
            self.client.delete_collection(name=self.collection_name)
            self.collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata=self.COLLECTION_METADATA,
            )
            logger.info(f"Successfully cleared collection '{self.collection_name}'")
        except Exception as e:
            raise RuntimeError(
                f"Failed to clear collection '{self.collection_name}': {e}"
            ) from e

    def count(self) -> int:
        return self.collection.count()

    def save(self, location: Optional[str] = None) -> str:
        """Chroma writes through on every upsert; nothing left to flush."""
        logger.debug(f"Chroma collection '{self.collection_name}' is persisted on write")
        return self.location

    def load(self, location: Optional[str] = None) -> "ChromaStore":
        """Switch to the existing collection named ``location``.

        Raises:
            NotFoundError: If no such collection exists.
        """
        name = location or self.collection_name
        if name not in self.list_collections():
            raise NotFoundError(f"Chroma collection '{name}' does not exist")

        self.collection = self.client.get_collection(name=name)
        self.collection_name = name
        logger.info(f"Loaded Chroma collection '{name}' ({self.collection.count()} records)")
        return self

    def list_collections(self) -> List[str]:
        """Names of all collections on this client."""
        collections = self.client.list_collections()
        # Chroma >= 0.6 returns names; older releases return Collection objects
        return sorted(c if isinstance(c, str) else c.name for c in collections)

    def delete_collection(self, name: str) -> None:
        """Drop a collection by name.

        Raises:
            NotFoundError: If no such collection exists.
        """
        if name not in self.list_collections():
            raise NotFoundError(f"Chroma collection '{name}' does not exist")
        self.client.delete_collection(name=name)
        logger.info(f"Collection {name} deleted successfully.")
        if name == self.collection_name:
            self.collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata=self.COLLECTION_METADATA,
            )

    def _build_where_clause(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        """Build ChromaDB where clause from equality filters.

        Operator dicts (e.g. ``{'$gt': 0.5}``) are passed through. Several
        keys are combined with ``$and`` as Chroma requires.
        """
        clauses = [{key: value} for key, value in filters.items()]
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    def get_collection_stats(self) -> Dict[str, Any]:
        """Get statistics about the current collection."""
        return {
            "count": self.collection.count(),
            "name": self.collection_name,
            "metadata": self.collection.metadata,
        }
