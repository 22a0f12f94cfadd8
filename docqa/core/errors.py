"""Error taxonomy shared by every stage of the docqa pipeline.

Acquisition and service errors propagate to the caller unchanged; the core
never retries and never falls back silently. Retry/backoff belongs to the
caller.
"""

from __future__ import annotations

from typing import Optional


class DocQAError(Exception):
    """Base class for all docqa errors."""


class AcquisitionError(DocQAError):
    """Raised when a document source cannot be read or reached."""

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class SourceNotFoundError(AcquisitionError, FileNotFoundError):
    """Raised when a local source file does not exist."""


class NormalizationError(DocQAError):
    """Reserved. Normalization degrades gracefully and never raises this."""


class ServiceError(DocQAError):
    """Raised when an external service call (embedding, index, LLM) fails.

    Attributes:
        stage: Name of the pipeline stage that failed
            (``"embedding"``, ``"retrieval"``, ``"indexing"``, ``"llm"``).
    """

    default_stage = "service"

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.stage = stage or self.default_stage


class NotFoundError(DocQAError):
    """Raised when a persisted index does not exist at the given location."""
