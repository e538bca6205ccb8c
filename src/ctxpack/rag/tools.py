"""Request handlers behind the RAG store/search/manage tools.

Handlers never raise: every failure becomes a ToolResult with
``success=False`` carrying the error message.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ctxpack.errors import ValidationError
from ctxpack.models import DocumentType
from ctxpack.rag.metadata import parse_tags
from ctxpack.rag.services import ServiceFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """Text outcome of a tool call."""

    text: str
    success: bool = True

    @classmethod
    def ok(cls, text: str) -> "ToolResult":
        return cls(text=text)

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(text=message, success=False)


class RagStoreHandler:
    """Stores a piece of knowledge in a collection."""

    def __init__(self, services: ServiceFactory, collection: str):
        self.services = services
        self.collection = collection

    def handle(
        self,
        content: str,
        type: str = DocumentType.GENERAL.value,
        source_path: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> ToolResult:
        logger.info(f"RAG store into {self.collection} (type={type})")
        try:
            if not content or not content.strip():
                raise ValidationError("Content cannot be empty")

            doc_type = DocumentType.try_from(type or DocumentType.GENERAL.value)
            if doc_type is None:
                raise ValidationError(
                    f"Invalid type '{type}'. Valid types: {', '.join(DocumentType.values())}"
                )

            indexer = self.services.get_indexer(self.collection)
            result = indexer.index(
                content,
                doc_type=doc_type,
                source_path=source_path or None,
                tags=parse_tags(tags),
            )
        except Exception as exc:
            logger.error(f"RAG store into {self.collection} failed: {exc}")
            return ToolResult.error(str(exc))

        return ToolResult.ok(
            f"Successfully stored in collection '{self.collection}'\n"
            f"Type: {doc_type.value}\n"
            f"Chunks created: {result.chunks_created}\n"
            f"Processing time: {result.processing_time_ms:.2f} ms"
        )


class RagSearchHandler:
    """Searches a collection and renders the results."""

    def __init__(self, services: ServiceFactory, collection: str):
        self.services = services
        self.collection = collection

    def handle(
        self,
        query: str,
        type: Optional[str] = None,
        source_path: Optional[str] = None,
        limit: int = 10,
    ) -> ToolResult:
        logger.info(f"RAG search in {self.collection}: {query!r}")
        try:
            if not query or not query.strip():
                raise ValidationError("Query cannot be empty")

            doc_type = None
            if type:
                doc_type = DocumentType.try_from(type) or DocumentType.GENERAL

            retriever = self.services.get_retriever(self.collection)
            results = retriever.search(query, limit=limit, doc_type=doc_type, source_path=source_path or None)
        except Exception as exc:
            logger.error(f"RAG search in {self.collection} failed: {exc}")
            return ToolResult.error(str(exc))

        if not results:
            return ToolResult.ok(f"No results found for query: {query}")

        noun = "result" if len(results) == 1 else "results"
        blocks = [result.format(position) for position, result in enumerate(results, 1)]
        return ToolResult.ok(f"Found {len(results)} {noun} for: {query}\n\n" + "\n\n---\n\n".join(blocks))


class RagManageHandler:
    """Reports on the RAG configuration of a collection."""

    ACTIONS = ("stats",)

    def __init__(self, services: ServiceFactory, collection: str):
        self.services = services
        self.collection = collection

    def handle(self, action: str = "stats") -> ToolResult:
        if action not in self.ACTIONS:
            return ToolResult.error(
                f"Unknown action: {action}. Available actions: {', '.join(self.ACTIONS)}"
            )
        try:
            return ToolResult.ok(self._stats())
        except Exception as exc:
            logger.error(f"RAG manage '{action}' failed: {exc}")
            return ToolResult.error(str(exc))

    def _stats(self) -> str:
        config = self.services.config
        coll = config.get_collection(self.collection)
        server = config.get_server(coll.server)
        transformer = coll.effective_transformer(config.transformer)

        lines = [
            "RAG Knowledge Base Statistics",
            f"Enabled: {'yes' if config.enabled else 'no'}",
            "",
            "Store:",
            f"  Driver: {server.driver}",
            f"  Endpoint: {server.endpoint_url or '-'}",
            f"  Collection: {coll.collection} ({self.collection})",
            f"  Dimensions: {coll.effective_dimension(server)}",
            "",
            "Vectorizer:",
            f"  Platform: {config.vectorizer.platform}",
            f"  Model: {config.vectorizer.model or '(platform default)'}",
            "",
            "Transformer:",
            f"  Chunk size: {transformer.chunk_size}",
            f"  Overlap: {transformer.overlap}",
            "",
            f"Collections: {', '.join(self.services.collection_names)}",
        ]
        return "\n".join(lines)
