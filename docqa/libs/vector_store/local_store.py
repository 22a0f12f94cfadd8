"""File-backed local VectorStore.

Keeps vectors in memory and scores queries by cosine similarity with numpy.
``save`` writes ``vectors.npy`` and ``records.json`` to a directory; the
directory is swapped in only once both files are fully written, so a failed
save never leaves a half-written index behind.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import numpy as np

from docqa.core.errors import NotFoundError
from docqa.libs.vector_store.base_vector_store import BaseVectorStore
from docqa.retrieval.models import QueryResult, ScoredChunk

if TYPE_CHECKING:
    from docqa.core.settings import Settings

logger = logging.getLogger(__name__)


class LocalVectorStore(BaseVectorStore):
    """In-memory vector index persisted to a local directory.

    Attributes:
        persist_directory: Default location for save/load.
        dimension: Vector length, fixed by the first stored vector.
    """

    VECTORS_FILE = "vectors.npy"
    RECORDS_FILE = "records.json"
    DEFAULT_DIRECTORY = "./data/vector-store"

    def __init__(self, settings: Optional[Settings] = None, **kwargs: Any) -> None:
        vector_store_config = getattr(settings, "vector_store", None)
        persist_dir_str = kwargs.get(
            "persist_directory",
            getattr(vector_store_config, "persist_directory", self.DEFAULT_DIRECTORY),
        )
        self.persist_directory = Path(persist_dir_str).resolve()
        self.dimension: Optional[int] = None
        self._vectors: Dict[str, np.ndarray] = {}
        self._records: Dict[str, Dict[str, Any]] = {}

    def upsert(
        self,
        records: List[Dict[str, Any]],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> None:
        """Insert or update records.

        Raises:
            ValueError: If records are malformed or vector lengths differ.
        """
        self.validate_records(records)

        for record in records:
            vector = np.asarray(record["vector"], dtype=np.float32)
            if self.dimension is None:
                self.dimension = int(vector.shape[0])
            elif vector.shape[0] != self.dimension:
                raise ValueError(
                    f"Vector for record '{record['id']}' has dimension {vector.shape[0]}, "
                    f"index dimension is {self.dimension}"
                )

            record_id = str(record["id"])
            self._vectors[record_id] = vector
            self._records[record_id] = {
                "text": str(record.get("text", "")),
                "metadata": self.sanitize_metadata(record.get("metadata", {})),
            }

        logger.debug(f"Upserted {len(records)} records into local index")

    def query(
        self,
        vector: List[float],
        top_k: int = 10,
        filters: Optional[Dict[str, Any]] = None,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> QueryResult:
        """Return the ``top_k`` most similar chunks by cosine similarity.

        Scores map cosine similarity from ``[-1, 1]`` onto ``[0, 1]``.
        Ties keep id order.

        Raises:
            ValueError: If the query is invalid or its dimension is wrong.
        """
        self.validate_query_vector(vector, top_k)

        ids = sorted(
            record_id for record_id, record in self._records.items()
            if self._matches(record["metadata"], filters)
        )
        if not ids:
            return []

        query_vector = np.asarray(vector, dtype=np.float32)
        if query_vector.shape[0] != self.dimension:
            raise ValueError(
                f"Query vector has dimension {query_vector.shape[0]}, "
                f"index dimension is {self.dimension}"
            )

        matrix = np.vstack([self._vectors[record_id] for record_id in ids])
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vector) + 1e-12
        similarities = (matrix @ query_vector) / norms
        scores = np.clip((1.0 + similarities) / 2.0, 0.0, 1.0)

        order = np.argsort(-scores, kind="stable")[:top_k]
        results = []
        for position in order:
            record_id = ids[int(position)]
            record = self._records[record_id]
            results.append(
                ScoredChunk(
                    chunk=self.record_to_chunk(record_id, record["text"], record["metadata"]),
                    score=float(scores[int(position)]),
                )
            )

        logger.debug(f"Query returned {len(results)} results")
        return results

    def get(self, ids: List[str], trace: Optional[Any] = None, **kwargs: Any) -> List[Dict[str, Any]]:
        records = []
        for record_id in map(str, ids):
            record = self._records.get(record_id)
            if record is None:
                continue
            records.append({
                "id": record_id,
                "vector": self._vectors[record_id].tolist(),
                "text": record["text"],
                "metadata": dict(record["metadata"]),
            })
        return records

    def delete(self, ids: List[str], trace: Optional[Any] = None, **kwargs: Any) -> None:
        if not ids:
            raise ValueError("IDs list cannot be empty")
        for record_id in ids:
            self._vectors.pop(str(record_id), None)
            self._records.pop(str(record_id), None)
        if not self._records:
            self.dimension = None

    def clear(self, trace: Optional[Any] = None, **kwargs: Any) -> None:
        self._vectors.clear()
        self._records.clear()
        self.dimension = None

    def count(self) -> int:
        return len(self._records)

    def save(self, location: Optional[str] = None) -> str:
        """Write the index to ``location`` (defaults to ``persist_directory``).

        Returns:
            The absolute directory path written.
        """
        target = Path(location).resolve() if location else self.persist_directory
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = target.parent / f".{target.name}.tmp"
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir()

        ids = sorted(self._records)
        if ids:
            matrix = np.vstack([self._vectors[record_id] for record_id in ids])
        else:
            matrix = np.zeros((0, self.dimension or 0), dtype=np.float32)
        np.save(staging / self.VECTORS_FILE, matrix)

        payload = {
            "dimension": self.dimension,
            "records": [{"id": record_id, **self._records[record_id]} for record_id in ids],
        }
        (staging / self.RECORDS_FILE).write_text(
            json.dumps(payload, ensure_ascii=False), encoding="utf-8"
        )

        if target.exists():
            backup = target.parent / f".{target.name}.old"
            if backup.exists():
                shutil.rmtree(backup)
            target.rename(backup)
            staging.rename(target)
            shutil.rmtree(backup)
        else:
            staging.rename(target)

        logger.info(f"Saved local index with {len(ids)} records to '{target}'")
        return str(target)

    def load(self, location: Optional[str] = None) -> "LocalVectorStore":
        """Replace the in-memory index with the one persisted at ``location``.

        Raises:
            NotFoundError: If no index has been saved there.
            RuntimeError: If the stored vectors and records disagree.
        """
        source = Path(location).resolve() if location else self.persist_directory
        records_path = source / self.RECORDS_FILE
        vectors_path = source / self.VECTORS_FILE
        if not records_path.is_file() or not vectors_path.is_file():
            raise NotFoundError(f"No persisted index found at '{source}'")

        payload = json.loads(records_path.read_text(encoding="utf-8"))
        records = payload.get("records", [])
        matrix = np.load(vectors_path)
        if matrix.shape[0] != len(records):
            raise RuntimeError(
                f"Index at '{source}' is inconsistent: {matrix.shape[0]} vectors "
                f"for {len(records)} records"
            )

        self.clear()
        self.dimension = payload.get("dimension")
        for row, record in zip(matrix, records):
            record_id = str(record["id"])
            self._vectors[record_id] = np.asarray(row, dtype=np.float32)
            self._records[record_id] = {
                "text": record.get("text", ""),
                "metadata": record.get("metadata", {}),
            }

        logger.info(f"Loaded local index with {len(records)} records from '{source}'")
        return self

    @staticmethod
    def _matches(metadata: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        if not filters:
            return True
        return all(metadata.get(key) == value for key, value in filters.items())
