"""Retrieval - Online question answering.

This package contains retrieval result models and the answering pipeline
(``docqa.retrieval.answering``).
"""

from docqa.retrieval.models import Answer, ChatSession, QueryResult, ScoredChunk, StreamingAnswer

__all__ = [
    "Answer",
    "ChatSession",
    "QueryResult",
    "ScoredChunk",
    "StreamingAnswer",
]
