"""PDF loader built on pypdf.

Text from every page is extracted and joined into one ``Document`` with a
blank line between pages. Normalization later folds that line break into a
single space, like any other.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from docqa.core.errors import AcquisitionError
from docqa.ingestion.models import Document
from docqa.libs.loader.base_loader import BaseLoader, PathLike, document_id

logger = logging.getLogger(__name__)


class PdfLoader(BaseLoader):
    """Loader for PDF documents.

    - Uses ``pypdf.PdfReader`` for text extraction.
    - Produces a single :class:`Document` per file with ``page_count``
      metadata.
    - Always sets ``metadata["source_path"]`` to the absolute path
      string of the source file.
    """

    SUPPORTED_EXTENSIONS = {".pdf"}
    PAGE_SEPARATOR = "\n\n"

    def load(
        self,
        source: PathLike,
        trace: Optional[Any] = None,
        **_: Any,
    ) -> Document:
        """Load a PDF file into a :class:`Document`.

        Args:
            source: Path to the PDF file on disk.
            trace: Optional TraceContext (unused for now).

        Returns:
            A :class:`Document` instance with text content and metadata.

        Raises:
            SourceNotFoundError: If the file does not exist.
            AcquisitionError: If the file is not a readable PDF.
        """
        file_path = self.validate_path(source)

        try:
            reader = PdfReader(str(file_path))
            pages = [page.extract_text() or "" for page in reader.pages]
        except (PyPdfError, OSError, ValueError) as e:
            raise AcquisitionError(
                f"Failed to read PDF {file_path}: {e}", source=str(file_path)
            ) from e

        logger.debug(f"Extracted {len(pages)} pages from {file_path.name}")

        metadata = {
            "source": str(file_path),
            "source_path": str(file_path),
            "content_type": "application/pdf",
            "title": file_path.stem,
            "page_count": len(pages),
        }
        return Document(
            id=document_id(file_path.stem, str(file_path)),
            content=self.PAGE_SEPARATOR.join(page.strip() for page in pages),
            metadata=metadata,
        )
