"""Similarity search with metadata post-filtering."""

import logging
from typing import Optional

import numpy as np

from ctxpack.errors import ValidationError
from ctxpack.models import DocumentType, ScoredRecord, SearchQuery, SearchResult
from ctxpack.protocols import EmbeddingProvider, VectorStore

logger = logging.getLogger(__name__)


def matches_source_path(candidate: Optional[str], wanted: str) -> bool:
    """Exact or prefix match on a chunk's source path."""
    if not candidate:
        return False
    return candidate == wanted or candidate.startswith(wanted)


class Retriever:
    """Reads ranked chunks back from one collection of a vector store."""

    FILTER_FANOUT = 5
    MAX_CANDIDATES = 250

    def __init__(self, store: VectorStore, embedder: EmbeddingProvider, collection: str):
        self.store = store
        self.embedder = embedder
        self.collection = collection

    def search(
        self,
        query: str,
        limit: int = 10,
        doc_type: Optional[DocumentType] = None,
        source_path: Optional[str] = None,
    ) -> list[SearchResult]:
        return self.retrieve(SearchQuery(query=query, limit=limit, type=doc_type, source_path=source_path))

    def retrieve(self, query: SearchQuery) -> list[SearchResult]:
        """Run a search query.

        Returns:
            Results in descending similarity order, at most the clamped
            limit; empty when nothing survives the filters

        Raises:
            ValidationError: If the query text is empty
        """
        if not query.query or not query.query.strip():
            raise ValidationError("Query cannot be empty")

        limit = query.effective_limit
        top_k = limit
        if query.has_filters:
            top_k = min(limit * self.FILTER_FANOUT, self.MAX_CANDIDATES)

        vector = np.asarray(self.embedder.embed([query.query]), dtype=np.float32)[0]
        candidates = self.store.query(self.collection, vector, top_k)
        logger.debug(f"Store returned {len(candidates)} candidates from {self.collection}")

        filtered = [record for record in candidates if self._accepts(record, query)]
        # sorted() is stable: equal scores keep the store's order
        ranked = sorted(filtered, key=lambda record: record.score, reverse=True)[:limit]

        logger.info(f"Search in {self.collection} returned {len(ranked)} results")
        return [
            SearchResult(content=record.text, score=record.score, metadata=record.metadata)
            for record in ranked
        ]

    @staticmethod
    def _accepts(record: ScoredRecord, query: SearchQuery) -> bool:
        if query.type is not None and record.metadata.get("type") != query.type.value:
            return False
        if query.source_path and not matches_source_path(record.metadata.get("source_path"), query.source_path):
            return False
        return True
