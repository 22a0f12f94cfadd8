"""Plain text and Markdown loader."""

from __future__ import annotations

from typing import Any, Optional

from docqa.core.errors import AcquisitionError
from docqa.ingestion.models import Document
from docqa.libs.loader.base_loader import BaseLoader, PathLike, document_id


class TextLoader(BaseLoader):
    """Reads a UTF-8 text file into a single :class:`Document`."""

    SUPPORTED_EXTENSIONS = {".txt", ".md", ".markdown", ".text"}

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def load(
        self,
        source: PathLike,
        trace: Optional[Any] = None,
        **_: Any,
    ) -> Document:
        file_path = self.validate_path(source)

        try:
            text = file_path.read_text(encoding=self.encoding)
        except UnicodeDecodeError:
            # Undecodable bytes are dropped; the normalizer keeps ASCII only anyway.
            text = file_path.read_text(encoding=self.encoding, errors="ignore")
        except OSError as e:
            raise AcquisitionError(f"Failed to read {file_path}: {e}", source=str(file_path)) from e

        metadata = {
            "source": str(file_path),
            "source_path": str(file_path),
            "content_type": "text/plain",
            "title": file_path.stem,
        }
        return Document(
            id=document_id(file_path.stem, str(file_path)),
            content=text,
            metadata=metadata,
        )
