"""Abstract base class for document loaders.

Loader components are responsible for turning a source (a file on disk or a
URL) into canonical ``Document`` objects used by the ingestion pipeline.
Loaders only acquire content; markup removal happens in the normalizer.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Union

from docqa.core.errors import SourceNotFoundError
from docqa.ingestion.models import Document


PathLike = Union[str, Path]


def document_id(name: str, source: str) -> str:
    """Stable document id: a readable name plus a short hash of the source."""
    digest = hashlib.sha256(source.encode("utf-8")).hexdigest()[:8]
    return f"{name}-{digest}"


class BaseLoader(ABC):
    """Abstract base class for document loaders.

    Subclasses must implement :meth:`load` to produce a :class:`Document`
    with at least ``source`` and ``content_type`` metadata.
    """

    @abstractmethod
    def load(
        self,
        source: PathLike,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> Document:
        """Load a document from the given source.

        Args:
            source: Path to a local file or a URL.
            trace: Optional TraceContext for observability (reserved).
            **kwargs: Loader-specific options.

        Returns:
            A :class:`Document` representing the loaded source.

        Raises:
            AcquisitionError: If the source cannot be read.
        """
        raise NotImplementedError

    def load_all(
        self,
        source: PathLike,
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> List[Document]:
        """Load every document reachable from ``source``.

        Single-document loaders return a one-element list.
        """
        return [self.load(source, trace=trace, **kwargs)]

    def validate_path(self, path: PathLike) -> Path:
        """Validate that the given path points to an existing file.

        Returns:
            A normalised, absolute :class:`Path` object.

        Raises:
            SourceNotFoundError: If the path does not exist.
            ValueError: If the path is not a file.
        """
        file_path = path if isinstance(path, Path) else Path(path)

        if not file_path.exists():
            raise SourceNotFoundError(f"File not found: {file_path}", source=str(file_path))
        if not file_path.is_file():
            raise ValueError(f"Expected a file path, got: {file_path}")

        return file_path.resolve()
