"""Protocol for text chunking strategies."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for text chunking strategies.

    Implementations must be deterministic: the same text always yields
    the same sequence of pieces.
    """

    def chunk(self, text: str) -> list[str]:
        """Split text into chunk strings."""
        ...

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return the (start, end) character offsets of every chunk."""
        ...
