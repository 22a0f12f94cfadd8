"""Greedy sliding-window splitter.

Windows of at most ``chunk_size`` characters are cut at a paragraph break or
the last whitespace inside the window, or hard-cut when the window has no
whitespace. Consecutive chunks share ``chunk_overlap`` characters. Every
chunk is an exact slice of the source text, so with ``chunk_overlap == 0``
the chunks concatenate back to the source.
"""

from __future__ import annotations

from typing import Any, List, Optional

from docqa.libs.splitter.base_splitter import BaseSplitter, Span


class SlidingWindowSplitter(BaseSplitter):
    """Deterministic character-window splitter.

    Attributes:
        chunk_size: Maximum size of each chunk in characters.
        chunk_overlap: Number of characters shared by consecutive chunks.
    """

    PARAGRAPH_BREAK = "\n\n"

    def __init__(
        self,
        settings: Any = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        ingestion_config = getattr(settings, "ingestion", None)
        if chunk_size is None:
            chunk_size = getattr(ingestion_config, "chunk_size", None)
        if chunk_overlap is None:
            chunk_overlap = getattr(ingestion_config, "chunk_overlap", 0)

        if chunk_size is None:
            raise ValueError(
                "Missing ingestion configuration in settings. "
                "Expected settings.ingestion.chunk_size or an explicit chunk_size"
            )

        self.validate_config(chunk_size, chunk_overlap)
        self.settings = settings
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split_text(
        self,
        text: str,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[str]:
        """Split text into chunks of at most ``chunk_size`` characters.

        Returns:
            Chunk strings in source order; empty for empty input.
        """
        self.validate_text(text)
        chunks = [text[start:end] for start, end in self.locate_spans(text)]
        self.validate_chunks(chunks)
        return chunks

    def locate_spans(self, text: str) -> List[Span]:
        spans: List[Span] = []
        length = len(text)
        start = 0

        while start < length:
            if length - start <= self.chunk_size:
                spans.append((start, length))
                break

            cut = self._find_cut(text, start, start + self.chunk_size)
            spans.append((start, cut))

            next_start = cut - self.chunk_overlap
            start = next_start if next_start > start else cut

        return spans

    def _find_cut(self, text: str, start: int, window_end: int) -> int:
        """Return the exclusive end offset for the window ``[start, window_end)``."""
        # Paragraph breaks win only when they keep at least half the window.
        paragraph = text.rfind(self.PARAGRAPH_BREAK, start + 1, window_end)
        if paragraph >= 0 and paragraph + len(self.PARAGRAPH_BREAK) - start >= self.chunk_size // 2:
            return paragraph + len(self.PARAGRAPH_BREAK)

        for i in range(window_end - 1, start, -1):
            if text[i].isspace():
                return i + 1

        return window_end
