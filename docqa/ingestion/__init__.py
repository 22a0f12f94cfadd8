"""Ingestion - Offline data ingestion.

This package contains the data ingestion path:
- Document and chunk models
- Text normalization
- The ingestion pipeline (``docqa.ingestion.pipeline``)
"""

from docqa.ingestion.models import Chunk, Document, IngestionResult
from docqa.ingestion.normalizer import TextNormalizer, filter_printable_ascii

__all__ = [
    "Chunk",
    "Document",
    "IngestionResult",
    "TextNormalizer",
    "filter_printable_ascii",
]
