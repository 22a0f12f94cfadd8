"""Loader Module.

This package contains document acquisition components:
- Base loader class
- Text and PDF file loaders
- Web page (headless browser) and site crawl loaders
- Loader factory
"""

from docqa.libs.loader.base_loader import BaseLoader, document_id
from docqa.libs.loader.loader_factory import LoaderFactory, is_url
from docqa.libs.loader.pdf_loader import PdfLoader
from docqa.libs.loader.site_loader import SiteLoader
from docqa.libs.loader.text_loader import TextLoader
from docqa.libs.loader.web_loader import PlaywrightRenderer, WebPageLoader

__all__ = [
    "BaseLoader",
    "LoaderFactory",
    "PdfLoader",
    "PlaywrightRenderer",
    "SiteLoader",
    "TextLoader",
    "WebPageLoader",
    "document_id",
    "is_url",
]
