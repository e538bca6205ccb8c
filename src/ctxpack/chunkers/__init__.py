"""Text chunking strategies."""

from ctxpack.chunkers.overlap_chunker import OverlapChunker

__all__ = ["OverlapChunker"]
