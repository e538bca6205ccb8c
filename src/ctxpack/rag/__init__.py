"""Retrieval-augmented generation: indexing and similarity search."""

from ctxpack.rag.indexer import Indexer
from ctxpack.rag.metadata import MetadataFactory, parse_tags
from ctxpack.rag.retriever import Retriever
from ctxpack.rag.services import ServiceFactory
from ctxpack.rag.tools import RagManageHandler, RagSearchHandler, RagStoreHandler, ToolResult

__all__ = [
    "Indexer",
    "MetadataFactory",
    "RagManageHandler",
    "RagSearchHandler",
    "RagStoreHandler",
    "Retriever",
    "ServiceFactory",
    "ToolResult",
    "parse_tags",
]
