"""Abstract base class for VectorStore providers.

A vector store is the Index of the pipeline: it maps chunk ids to
``(vector, chunk)`` pairs, grows by batch insertion during ingestion, is
read-only at query time and can be persisted to and loaded from a named
location.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from docqa.ingestion.models import Chunk
from docqa.retrieval.models import QueryResult


CHUNK_FIELDS = ("sequence_index", "start_offset", "end_offset")


class BaseVectorStore(ABC):
    """Abstract base class for VectorStore providers.

    Records exchanged with :meth:`upsert` are dicts with:
        - 'id': Unique identifier (str)
        - 'vector': Embedding vector (List[float])
        - 'text': Chunk content (str, optional)
        - 'metadata': Optional metadata dict

    :meth:`add` is the chunk-level entry point used by ingestion. It is not
    transactional: if a batch fails part-way, that batch may be partially
    stored.
    """

    @abstractmethod
    def upsert(
        self,
        records: List[Dict[str, Any]],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> None:
        """Insert or update records; same id overwrites."""
        raise NotImplementedError

    @abstractmethod
    def query(
        self,
        vector: List[float],
        top_k: int = 10,
        filters: Optional[Dict[str, Any]] = None,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> QueryResult:
        """Return up to ``top_k`` nearest chunks, highest score first.

        Scores are similarities in ``[0, 1]``. An empty index yields ``[]``.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, ids: List[str], trace: Optional[Any] = None, **kwargs: Any) -> List[Dict[str, Any]]:
        """Return the stored records for ``ids`` in :meth:`upsert` form.

        Unknown ids are skipped, so the result may be shorter than ``ids``.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, ids: List[str], trace: Optional[Any] = None, **kwargs: Any) -> None:
        """Delete records by id."""
        raise NotImplementedError

    @abstractmethod
    def clear(self, trace: Optional[Any] = None, **kwargs: Any) -> None:
        """Remove every record."""
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""
        raise NotImplementedError

    @abstractmethod
    def save(self, location: Optional[str] = None) -> str:
        """Persist the index and return the location it was written to."""
        raise NotImplementedError

    @abstractmethod
    def load(self, location: Optional[str] = None) -> "BaseVectorStore":
        """Load persisted state into this store and return it.

        Raises:
            NotFoundError: If ``location`` holds no persisted index.
        """
        raise NotImplementedError

    def add(
        self,
        batch: Sequence[Tuple[Chunk, List[float]]],
        trace: Optional[Any] = None,
    ) -> List[str]:
        """Store a batch of ``(chunk, vector)`` pairs.

        Returns:
            The ids written.
        """
        records = [self.chunk_to_record(chunk, vector) for chunk, vector in batch]
        self.upsert(records, trace=trace)
        return [record["id"] for record in records]

    @staticmethod
    def chunk_to_record(chunk: Chunk, vector: List[float]) -> Dict[str, Any]:
        metadata = dict(chunk.metadata)
        for name in CHUNK_FIELDS:
            metadata[name] = getattr(chunk, name)
        return {
            "id": chunk.id,
            "vector": list(vector),
            "text": chunk.content,
            "metadata": metadata,
        }

    @staticmethod
    def record_to_chunk(record_id: str, text: str, metadata: Optional[Dict[str, Any]]) -> Chunk:
        metadata = dict(metadata or {})
        fields = {name: metadata.pop(name, None) for name in CHUNK_FIELDS}
        metadata.pop("_placeholder", None)
        if fields["sequence_index"] is not None:
            metadata["sequence_index"] = fields["sequence_index"]
        return Chunk(
            id=record_id,
            content=text or "",
            metadata=metadata,
            sequence_index=int(fields["sequence_index"] or 0),
            start_offset=fields["start_offset"],
            end_offset=fields["end_offset"],
        )

    @staticmethod
    def sanitize_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Reduce metadata to str, int, float and bool values.

        None values are dropped, lists are joined with commas and anything
        else is converted to a string.
        """
        sanitized: Dict[str, Any] = {}
        for key, value in metadata.items():
            if isinstance(value, (str, int, float, bool)):
                sanitized[key] = value
            elif value is None:
                continue
            elif isinstance(value, (list, tuple)):
                sanitized[key] = ",".join(str(v) for v in value)
            else:
                sanitized[key] = str(value)
        return sanitized

    def validate_records(self, records: List[Dict[str, Any]]) -> None:
        """Validate records before upsert.

        Raises:
            ValueError: If the list is empty or a record is malformed.
        """
        if not records:
            raise ValueError("Records list cannot be empty")

        for i, record in enumerate(records):
            if not isinstance(record, dict):
                raise ValueError(f"Record at index {i} is not a dict")
            if "id" not in record:
                raise ValueError(f"Record at index {i} missing required field: 'id'")
            if "vector" not in record:
                raise ValueError(f"Record at index {i} missing required field: 'vector'")
            vector = record["vector"]
            if not isinstance(vector, (list, tuple)) or not vector:
                raise ValueError(f"Record at index {i} has an empty or invalid vector")

    def validate_query_vector(self, vector: List[float], top_k: int) -> None:
        """Validate query parameters.

        Raises:
            ValueError: If the vector is empty or top_k is not positive.
        """
        if vector is None or len(vector) == 0:
            raise ValueError("Query vector cannot be empty")
        if not isinstance(top_k, int) or isinstance(top_k, bool) or top_k <= 0:
            raise ValueError(f"top_k must be a positive integer, got: {top_k}")
