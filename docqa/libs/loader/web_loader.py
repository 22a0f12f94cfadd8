"""Single web page loader backed by a headless browser.

Pages are rendered with Playwright so client-side content is present before
extraction. The renderer hands back the ``<body>`` markup; stripping tags and
scripts is left to :class:`~docqa.ingestion.normalizer.TextNormalizer`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from docqa.core.errors import AcquisitionError
from docqa.ingestion.models import Document
from docqa.libs.loader.base_loader import BaseLoader, PathLike, document_id

logger = logging.getLogger(__name__)


class PageRenderer(Protocol):
    def render(self, url: str) -> str:
        ...


class PlaywrightRenderer:
    """Renders a URL in headless Chromium and returns the body markup.

    Raises:
        AcquisitionError: If the browser cannot start or the page fails to
            load.
    """

    def __init__(self, timeout: float = 30.0, wait_until: str = "networkidle") -> None:
        self.timeout_ms = timeout * 1000
        self.wait_until = wait_until

    def render(self, url: str) -> str:
        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(headless=True)
                try:
                    page = browser.new_page()
                    page.goto(url, wait_until=self.wait_until, timeout=self.timeout_ms)
                    return page.inner_html("body")
                finally:
                    browser.close()
        except PlaywrightError as e:
            logger.error(f"Error occurred while loading the page {url}: {e}")
            raise AcquisitionError(f"Page at {url} could not be rendered: {e}", source=url) from e


class WebPageLoader(BaseLoader):
    """Loads one URL into a :class:`Document` with ``text/html`` content."""

    def __init__(self, renderer: Optional[PageRenderer] = None, timeout: float = 30.0) -> None:
        self.renderer = renderer or PlaywrightRenderer(timeout=timeout)

    def load(
        self,
        source: PathLike,
        trace: Optional[Any] = None,
        **_: Any,
    ) -> Document:
        """Render ``source`` and wrap the markup in a Document.

        Raises:
            AcquisitionError: If rendering failed or produced no markup.
        """
        url = str(source)
        logger.info(f"Rendering {url}")
        markup = self.renderer.render(url)
        if not markup or not markup.strip():
            raise AcquisitionError(f"Page at {url} could not be rendered", source=url)

        parsed = urlparse(url)
        name = parsed.netloc + parsed.path.rstrip("/").replace("/", "_")
        return Document(
            id=document_id(name or "page", url),
            content=markup,
            metadata={"source": url, "content_type": "text/html"},
        )
