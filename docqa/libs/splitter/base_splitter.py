"""Abstract base class for text splitters.

Splitters turn a normalized :class:`Document` into an ordered list of
:class:`Chunk` objects bounded by ``chunk_size`` characters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from docqa.ingestion.models import Chunk, Document


Span = Tuple[int, int]


class BaseSplitter(ABC):
    """Abstract base class for text splitters.

    Subclasses implement :meth:`split_text`. :meth:`split_document` builds
    chunks from the spans returned by :meth:`locate_spans`, which by default
    finds each split piece in the source text in order.
    """

    chunk_size: int
    chunk_overlap: int

    @abstractmethod
    def split_text(
        self,
        text: str,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[str]:
        """Split text into an ordered list of chunk strings."""
        raise NotImplementedError

    def locate_spans(self, text: str) -> List[Span]:
        """Return ``(start, end)`` offsets of each chunk within ``text``."""
        spans: List[Span] = []
        cursor = 0
        for piece in self.split_text(text):
            start = text.find(piece, cursor)
            if start < 0:
                start = text.find(piece)
            if start < 0:
                raise RuntimeError(
                    f"{self.__class__.__name__} produced a chunk that is not a substring of its source"
                )
            end = start + len(piece)
            spans.append((start, end))
            cursor = start + 1
        return spans

    def split_document(self, document: Document) -> List[Chunk]:
        """Split a document into chunks carrying the parent's metadata."""
        text = document.content
        self.validate_text(text)

        chunks: List[Chunk] = []
        for index, (start, end) in enumerate(self.locate_spans(text)):
            metadata = {
                **document.metadata,
                "document_id": document.id,
                "sequence_index": index,
            }
            chunks.append(
                Chunk(
                    id=f"{document.id}_chunk{index}",
                    content=text[start:end],
                    metadata=metadata,
                    sequence_index=index,
                    start_offset=start,
                    end_offset=end,
                )
            )
        return chunks

    @staticmethod
    def validate_config(chunk_size: Any, chunk_overlap: Any) -> None:
        """Validate chunking parameters.

        Raises:
            ValueError: If ``chunk_size`` is not positive or ``chunk_overlap``
                is negative or not smaller than ``chunk_size``.
        """
        if not isinstance(chunk_size, int) or isinstance(chunk_size, bool) or chunk_size <= 0:
            raise ValueError(f"chunk_size must be a positive integer, got: {chunk_size}")

        if not isinstance(chunk_overlap, int) or isinstance(chunk_overlap, bool) or chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must be a non-negative integer, got: {chunk_overlap}")

        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be less than "
                f"chunk_size ({chunk_size})"
            )

    def validate_text(self, text: Any) -> None:
        """Validate splitter input.

        Raises:
            ValueError: If ``text`` is not a string.
        """
        if not isinstance(text, str):
            raise ValueError(f"Input text must be a string (type: {type(text).__name__})")

    def validate_chunks(self, chunks: List[str]) -> None:
        """Validate splitter output.

        Raises:
            ValueError: If a chunk is not a string or is empty.
        """
        for i, chunk in enumerate(chunks):
            if not isinstance(chunk, str):
                raise ValueError(
                    f"Chunk at index {i} is not a string (type: {type(chunk).__name__})"
                )
            if not chunk:
                raise ValueError(f"Chunk at index {i} is empty")
