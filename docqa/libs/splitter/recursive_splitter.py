"""Recursive Splitter implementation using LangChain.

This module provides a recursive character-based text splitting strategy
that tries paragraph, line, sentence and word separators in turn to keep
chunks semantically coherent.
"""

from __future__ import annotations

from typing import Any, List, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from docqa.libs.splitter.base_splitter import BaseSplitter


class RecursiveSplitter(BaseSplitter):
    """Recursive character-based text splitter.

    This splitter uses LangChain's RecursiveCharacterTextSplitter to split text
    by trying different separators in order (paragraphs, sentences, words).
    Whitespace at chunk boundaries is trimmed, so chunk offsets are located
    by searching the source text.

    Attributes:
        chunk_size: Maximum size of each chunk in characters.
        chunk_overlap: Number of overlapping characters between chunks.
        separators: List of separators to try in order.
    """

    DEFAULT_SEPARATORS = [
        "\n\n",  # Double newline (paragraphs)
        "\n",    # Single newline
        ". ",    # Sentence endings
        "! ",
        "? ",
        "; ",
        ", ",
        " ",     # Spaces
        "",      # Characters
    ]

    def __init__(
        self,
        settings: Any = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        separators: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize RecursiveSplitter.

        Args:
            settings: Application settings containing ingestion configuration.
            chunk_size: Optional override for chunk size (defaults to settings.ingestion.chunk_size).
            chunk_overlap: Optional override for overlap (defaults to settings.ingestion.chunk_overlap).
            separators: Optional list of separator strings.
            **kwargs: Additional parameters passed to LangChain splitter.

        Raises:
            ValueError: If chunk_size or chunk_overlap are invalid.
        """
        self.settings = settings

        try:
            ingestion_config = settings.ingestion
            self.chunk_size = chunk_size if chunk_size is not None else ingestion_config.chunk_size
            self.chunk_overlap = chunk_overlap if chunk_overlap is not None else ingestion_config.chunk_overlap
        except AttributeError as e:
            raise ValueError(
                "Missing ingestion configuration in settings. "
                "Expected settings.ingestion.chunk_size and settings.ingestion.chunk_overlap"
            ) from e

        self.validate_config(self.chunk_size, self.chunk_overlap)

        self.separators = separators if separators is not None else self.DEFAULT_SEPARATORS

        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            separators=self.separators,
            length_function=len,
            is_separator_regex=False,
            **kwargs,
        )

    def split_text(
        self,
        text: str,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[str]:
        """Split text into chunks recursively.

        Args:
            text: Input text to split.
            trace: Optional trace context (unused).
            **kwargs: Reserved.

        Returns:
            A list of text chunks in source order. Whitespace-only input
            yields a single chunk holding the input unchanged.

        Raises:
            ValueError: If input text is not a string.
            RuntimeError: If splitting fails unexpectedly.
        """
        self.validate_text(text)
        if not text:
            return []

        try:
            chunks = self._splitter.split_text(text)
        except Exception as e:
            raise RuntimeError(
                f"RecursiveSplitter failed to split text: {e}. "
                f"Text length: {len(text)}, chunk_size: {self.chunk_size}, "
                f"chunk_overlap: {self.chunk_overlap}"
            ) from e

        # LangChain drops whitespace-only text entirely
        if not chunks:
            chunks = [text]

        self.validate_chunks(chunks)
        return chunks
