"""Text normalization for scraped and loaded documents.

Turns raw, possibly markup-laden text into plain printable ASCII:

1. drop elements whose tag name is in the removal set (with their subtree),
   plus any element matching a configured CSS selector;
2. collapse the remaining markup to its text content;
3. turn line breaks and tabs into spaces, then keep only printable ASCII
   (``0x20``-``0x7E``).

Normalization never fails: malformed markup degrades to best-effort text
extraction and an empty result is valid output.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Iterable, List, Optional

from bs4 import BeautifulSoup

from docqa.ingestion.models import Document

logger = logging.getLogger(__name__)

NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E]+")
WHITESPACE_CONTROLS = re.compile(r"[\t\n\r\f\v]+")

MARKUP_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}

# Each pass can only shrink the text, so this bound is never reached for
# real input; it keeps a pathological parser from looping forever.
_MAX_PASSES = 16


class TextNormalizer:
    """Converts raw text into a clean plain-text string.

    Attributes:
        remove_tags: Tag names removed together with their whole subtree.
        remove_selectors: CSS selectors whose matches are removed as well
            (e.g. ``.thrv_widget_menu`` for page-builder menus).
    """

    DEFAULT_REMOVE_TAGS = ("script", "style")

    def __init__(
        self,
        remove_tags: Optional[Iterable[str]] = None,
        remove_selectors: Optional[Iterable[str]] = None,
        parser: str = "html.parser",
    ) -> None:
        tags = self.DEFAULT_REMOVE_TAGS if remove_tags is None else remove_tags
        self.remove_tags: List[str] = [tag.lower() for tag in tags]
        self.remove_selectors: List[str] = list(remove_selectors or [])
        self.parser = parser

        for selector in self.remove_selectors:
            try:
                BeautifulSoup("", self.parser).select(selector)
            except Exception as e:
                raise ValueError(f"Invalid CSS selector in remove_selectors: {selector!r}") from e

    @classmethod
    def from_settings(cls, settings: Any) -> "TextNormalizer":
        normalization = getattr(settings, "normalization", None)
        if normalization is None:
            return cls()
        return cls(
            remove_tags=normalization.remove_tags,
            remove_selectors=normalization.remove_selectors,
        )

    def normalize(self, raw: str, markup: bool = True) -> str:
        """Normalize ``raw`` to printable ASCII text.

        Args:
            raw: Input text, possibly containing markup and control characters.
            markup: When False the input is treated as plain text and only the
                printable-ASCII filter is applied.

        Returns:
            The cleaned text. Re-normalizing it returns it unchanged.
        """
        if not raw:
            return ""

        text = raw
        for _ in range(_MAX_PASSES):
            cleaned = self._single_pass(text, markup)
            if cleaned == text:
                break
            text = cleaned
        return text

    def normalize_document(self, document: Document) -> Document:
        """Return a copy of ``document`` with normalized content."""
        content_type = str(document.metadata.get("content_type", "text/plain")).lower()
        markup = content_type in MARKUP_CONTENT_TYPES
        cleaned = self.normalize(document.content, markup=markup)

        logger.debug(
            f"Normalized document {document.id}: {len(document.content)} -> {len(cleaned)} chars"
        )
        return replace(document, content=cleaned, metadata={**document.metadata, "normalized": True})

    def _single_pass(self, text: str, markup: bool) -> str:
        if markup:
            text = self._extract_text(text)
        return filter_printable_ascii(text)

    def _extract_text(self, text: str) -> str:
        try:
            soup = BeautifulSoup(text, self.parser)
            if self.remove_tags:
                for element in soup.find_all(self.remove_tags):
                    if not element.decomposed:
                        element.decompose()
            for selector in self.remove_selectors:
                for element in soup.select(selector):
                    if not element.decomposed:
                        element.decompose()
            return soup.get_text()
        except Exception as e:
            logger.warning(f"Markup parsing failed, keeping raw text: {e}")
            return text


def filter_printable_ascii(text: str) -> str:
    """Drop every character outside the printable ASCII range.

    Runs of line breaks and tabs become a single space first, so words on
    adjacent lines stay separated.
    """
    return NON_PRINTABLE_ASCII.sub("", WHITESPACE_CONTROLS.sub(" ", text))
