"""Splitter registry, keyed by ``ingestion.splitter``."""

from __future__ import annotations

from docqa.core.factory import ProviderFactory
from docqa.libs.splitter.base_splitter import BaseSplitter


class SplitterFactory(ProviderFactory[BaseSplitter]):
    """Built-in strategies: ``sliding_window`` (default) and ``recursive``.

    Both keep every chunk an exact slice of the document, so chunk offsets
    stay valid whichever is configured.
    """

    kind = "Splitter"
    base_class = BaseSplitter
    setting = ("ingestion", "splitter")


def _register_builtin_providers() -> None:
    from docqa.libs.splitter.recursive_splitter import RecursiveSplitter
    from docqa.libs.splitter.sliding_window_splitter import SlidingWindowSplitter

    SplitterFactory.register_provider("sliding_window", SlidingWindowSplitter)
    SplitterFactory.register_provider("recursive", RecursiveSplitter)


_register_builtin_providers()
