"""Recursive site loader.

Starting from a root URL, fetches pages over HTTP and follows links found in
them breadth-first, one :class:`Document` per HTML page.
"""

from __future__ import annotations

import logging
from collections import deque
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, ContextManager, Iterable, List, Optional, Sequence
from urllib.parse import urldefrag, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from docqa.core.errors import AcquisitionError
from docqa.ingestion.models import Document
from docqa.libs.loader.base_loader import BaseLoader, PathLike, document_id

if TYPE_CHECKING:
    from docqa.core.settings import Settings

logger = logging.getLogger(__name__)


class SiteLoader(BaseLoader):
    """Crawls a site from a root URL.

    Attributes:
        max_depth: Link hops followed from the root (0 loads the root only).
        exclude_dirs: URLs whose pages, and every page below them, are
            never fetched.
        prevent_outside: Only follow links under the root URL.
        timeout: Per-request timeout in seconds.
    """

    HTML_TYPES = ("text/html", "application/xhtml+xml")

    def __init__(
        self,
        max_depth: int = 2,
        exclude_dirs: Sequence[str] = (),
        timeout: float = 10.0,
        prevent_outside: bool = True,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.max_depth = max_depth
        self.exclude_dirs = list(exclude_dirs)
        self.timeout = timeout
        self.prevent_outside = prevent_outside
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "SiteLoader":
        crawler = settings.crawler
        return cls(
            max_depth=crawler.max_depth,
            exclude_dirs=crawler.exclude_dirs,
            timeout=crawler.timeout,
            prevent_outside=crawler.prevent_outside,
            **kwargs,
        )

    def load(
        self,
        source: PathLike,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> Document:
        """Fetch only the root page."""
        with self._open_client() as client:
            document = self._fetch(client, str(source))
        if document is None:
            raise AcquisitionError(f"{source} is not an HTML page", source=str(source))
        return document

    def load_all(
        self,
        source: PathLike,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[Document]:
        """Crawl from ``source`` and return one Document per page.

        Raises:
            AcquisitionError: If the root page cannot be fetched. Failures on
                pages below the root are logged and skipped.
        """
        root = urldefrag(str(source))[0]
        documents: List[Document] = []
        seen = {root}
        queue = deque([(root, 0)])

        with self._open_client() as client:
            while queue:
                url, depth = queue.popleft()
                try:
                    document = self._fetch(client, url)
                except AcquisitionError:
                    if url == root:
                        raise
                    logger.warning(f"Skipping {url}: fetch failed")
                    continue
                if document is None:
                    continue

                documents.append(document)
                if depth >= self.max_depth:
                    continue

                for link in self._extract_links(document.content, url):
                    if link not in seen and self._allowed(link, root):
                        seen.add(link)
                        queue.append((link, depth + 1))

        logger.info(f"Crawled {len(documents)} pages from {root}")
        return documents

    def _open_client(self) -> ContextManager[httpx.Client]:
        if self._client is not None:
            # Caller owns the injected client; keep it open after the crawl.
            return nullcontext(self._client)
        return httpx.Client(timeout=self.timeout, follow_redirects=True)

    def _fetch(self, client: httpx.Client, url: str) -> Optional[Document]:
        try:
            response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AcquisitionError(
                f"GET {url} returned status {e.response.status_code}", source=url
            ) from e
        except httpx.HTTPError as e:
            raise AcquisitionError(f"GET {url} failed: {e}", source=url) from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if content_type not in self.HTML_TYPES:
            logger.debug(f"Ignoring {url} with content type '{content_type}'")
            return None

        markup = response.text
        title = BeautifulSoup(markup, "html.parser").title
        parsed = urlparse(url)
        name = parsed.netloc + parsed.path.rstrip("/").replace("/", "_")
        return Document(
            id=document_id(name or "page", url),
            content=markup,
            metadata={
                "source": url,
                "content_type": content_type,
                "title": title.get_text(strip=True) if title else None,
            },
        )

    @staticmethod
    def _extract_links(markup: str, base_url: str) -> Iterable[str]:
        soup = BeautifulSoup(markup, "html.parser")
        for anchor in soup.find_all("a", href=True):
            link = urldefrag(urljoin(base_url, anchor["href"]))[0]
            if urlparse(link).scheme in ("http", "https"):
                yield link

    def _allowed(self, url: str, root: str) -> bool:
        if self.prevent_outside and not _within(url, root):
            return False
        return not any(_within(url, prefix) for prefix in self.exclude_dirs)


def _within(url: str, base: str) -> bool:
    """True if ``url`` is ``base`` itself or a path below it on the same host.

    Matching is by whole path segments, so ``/docs`` covers ``/docs/a`` but
    not ``/docs-private``.
    """
    target, scope = urlparse(url), urlparse(base)
    if target.netloc.lower() != scope.netloc.lower():
        return False
    prefix = scope.path.rstrip("/")
    return target.path.rstrip("/") == prefix or target.path.startswith(prefix + "/")
