"""
Splitter Module.

This package contains text splitter abstractions and implementations:
- Base splitter class
- Splitter factory
- Implementations (SlidingWindow, Recursive)
"""

from docqa.libs.splitter.base_splitter import BaseSplitter
from docqa.libs.splitter.recursive_splitter import RecursiveSplitter
from docqa.libs.splitter.sliding_window_splitter import SlidingWindowSplitter
from docqa.libs.splitter.splitter_factory import SplitterFactory

__all__ = [
    "BaseSplitter",
    "SplitterFactory",
    "SlidingWindowSplitter",
    "RecursiveSplitter",
]
