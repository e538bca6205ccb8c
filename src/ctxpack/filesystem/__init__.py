"""File search and line-based editing within a project root."""

from ctxpack.filesystem.editor import (
    FileDeleteContentHandler,
    FileEditResult,
    FileInsertContentHandler,
    Insertion,
    LineRange,
    OutOfRangePolicy,
    Position,
    normalize_line_numbers,
)
from ctxpack.filesystem.line_ending import LineEnding, LineEndingNormalizer
from ctxpack.filesystem.search import (
    FileSearchHandler,
    FileSearchRequest,
    FileSearchResponse,
    FileSearchResult,
    SearchMatch,
    parse_size_filter,
)

__all__ = [
    "FileDeleteContentHandler",
    "FileEditResult",
    "FileInsertContentHandler",
    "FileSearchHandler",
    "FileSearchRequest",
    "FileSearchResponse",
    "FileSearchResult",
    "Insertion",
    "LineEnding",
    "LineEndingNormalizer",
    "LineRange",
    "OutOfRangePolicy",
    "Position",
    "SearchMatch",
    "normalize_line_numbers",
    "parse_size_filter",
]
