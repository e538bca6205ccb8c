"""Protocol definitions for extensible components."""

from ctxpack.protocols.chunker import ChunkingStrategy
from ctxpack.protocols.embedder import EmbeddingProvider
from ctxpack.protocols.store import VectorStore

__all__ = ["ChunkingStrategy", "EmbeddingProvider", "VectorStore"]
