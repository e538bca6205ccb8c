"""Data models for ctxpack."""

from ctxpack.models.document import (
    Chunk,
    Document,
    DocumentType,
    IndexResult,
    ScoredRecord,
    SearchQuery,
    SearchResult,
    VectorRecord,
)

__all__ = [
    "Chunk",
    "Document",
    "DocumentType",
    "IndexResult",
    "ScoredRecord",
    "SearchQuery",
    "SearchResult",
    "VectorRecord",
]
