"""Core data models for ingestion and retrieval."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Document:
    """Represents a source document before chunking."""
    id: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> Optional[str]:
        return self.metadata.get("source")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "content": self.content,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            content=data["content"],
            metadata=dict(data.get("metadata", {})),
        )


@dataclass(frozen=True)
class Chunk:
    """Represents a chunk of text derived from exactly one Document.

    ``content`` is always ``document.content[start_offset:end_offset]``.
    """
    id: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    sequence_index: int = 0
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "content": self.content,
            "metadata": dict(self.metadata),
            "sequence_index": self.sequence_index,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chunk":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            content=data["content"],
            metadata=dict(data.get("metadata", {})),
            sequence_index=int(data.get("sequence_index", 0)),
            start_offset=data.get("start_offset"),
            end_offset=data.get("end_offset"),
        )


@dataclass
class IngestionResult:
    """Summary of one ingestion run."""
    source: str
    documents: List[Document] = field(default_factory=list)
    chunks: List[Chunk] = field(default_factory=list)
    location: Optional[str] = None

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)
