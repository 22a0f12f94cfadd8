"""Factory selecting a document loader for a source.

URLs go to the web loaders; local files are dispatched by suffix.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import urlparse

from docqa.libs.loader.base_loader import BaseLoader, PathLike
from docqa.libs.loader.pdf_loader import PdfLoader
from docqa.libs.loader.site_loader import SiteLoader
from docqa.libs.loader.text_loader import TextLoader
from docqa.libs.loader.web_loader import WebPageLoader

if TYPE_CHECKING:
    from docqa.core.settings import Settings


def is_url(source: PathLike) -> bool:
    return urlparse(str(source)).scheme in ("http", "https")


class LoaderFactory:
    """Factory for creating loader instances.

    File loaders are registered by suffix; ``.txt``, ``.md`` and ``.pdf`` are
    built in.
    """

    _LOADERS: dict[str, type[BaseLoader]] = {}

    @classmethod
    def register_loader(cls, suffix: str, loader_class: type[BaseLoader]) -> None:
        """Register a loader for a file suffix (e.g. ``'.docx'``).

        Raises:
            ValueError: If loader_class doesn't inherit from BaseLoader.
        """
        if not issubclass(loader_class, BaseLoader):
            raise ValueError(
                f"Loader class {loader_class.__name__} must inherit from BaseLoader"
            )
        cls._LOADERS[suffix.lower()] = loader_class

    @classmethod
    def for_source(
        cls,
        source: PathLike,
        crawl: bool = False,
        settings: Optional[Settings] = None,
        **kwargs: Any,
    ) -> BaseLoader:
        """Return a loader able to read ``source``.

        Args:
            source: File path or http(s) URL.
            crawl: For URLs, crawl the site instead of rendering one page.
            settings: Used for crawler configuration when crawling.

        Raises:
            ValueError: If no loader handles the file suffix.
        """
        if is_url(source):
            if crawl:
                if settings is not None:
                    return SiteLoader.from_settings(settings, **kwargs)
                return SiteLoader(**kwargs)
            return WebPageLoader(**kwargs)

        suffix = Path(source).suffix.lower()
        loader_class = cls._LOADERS.get(suffix)
        if loader_class is None:
            available = ", ".join(sorted(cls._LOADERS.keys())) or "none"
            raise ValueError(
                f"Unsupported file type: '{suffix or source}'. Supported suffixes: {available}"
            )
        return loader_class(**kwargs)

    @classmethod
    def list_suffixes(cls) -> list[str]:
        return sorted(cls._LOADERS.keys())


def _register_builtin_loaders() -> None:
    for suffix in TextLoader.SUPPORTED_EXTENSIONS:
        LoaderFactory.register_loader(suffix, TextLoader)
    for suffix in PdfLoader.SUPPORTED_EXTENSIONS:
        LoaderFactory.register_loader(suffix, PdfLoader)


_register_builtin_loaders()
