"""Core data models for documents, chunks and search results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np


class DocumentType(str, Enum):
    """Kind of knowledge a document carries."""

    ARCHITECTURE = "architecture"
    API = "api"
    TESTING = "testing"
    CONVENTION = "convention"
    GENERAL = "general"
    TUTORIAL = "tutorial"
    REFERENCE = "reference"

    @classmethod
    def try_from(cls, value: Optional[str]) -> Optional["DocumentType"]:
        """Parse a type name, returning None instead of raising on unknown input."""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class Document:
    """A unit of knowledge before chunking."""

    content: str
    type: DocumentType = DocumentType.GENERAL
    source_path: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of a document's content."""

    text: str
    index: int
    start_char: int
    end_char: int
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IndexResult:
    """Outcome of a single store operation."""

    chunks_created: int
    processing_time_ms: float


@dataclass(frozen=True)
class SearchQuery:
    """A similarity search request against one collection."""

    MIN_LIMIT = 1
    MAX_LIMIT = 50

    query: str
    limit: int = 10
    type: Optional[DocumentType] = None
    source_path: Optional[str] = None

    @property
    def effective_limit(self) -> int:
        """Limit clamped into [MIN_LIMIT, MAX_LIMIT]."""
        return max(self.MIN_LIMIT, min(self.MAX_LIMIT, self.limit))

    @property
    def has_filters(self) -> bool:
        return self.type is not None or bool(self.source_path)


@dataclass(frozen=True)
class SearchResult:
    """One retrieved chunk with its similarity score."""

    content: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> Optional[str]:
        return self.metadata.get("type")

    @property
    def source_path(self) -> Optional[str]:
        return self.metadata.get("source_path")

    def format(self, position: Optional[int] = None) -> str:
        """Render the result as a human-readable block."""
        header = f"[{position}] " if position is not None else ""
        parts = [f"score: {self.score:.3f}", f"type: {self.type or 'unknown'}"]
        if self.source_path:
            parts.append(f"source: {self.source_path}")
        tags = self.metadata.get("tags") or []
        if tags:
            parts.append(f"tags: {', '.join(tags)}")
        if self.metadata.get("indexed_at"):
            parts.append(f"indexed: {self.metadata['indexed_at']}")

        return f"{header}{' | '.join(parts)}\n{self.content}"


@dataclass
class VectorRecord:
    """A record written to a vector store."""

    id: str
    vector: np.ndarray
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScoredRecord:
    """A record returned from a similarity query."""

    id: str
    text: str
    metadata: dict[str, Any]
    score: float
