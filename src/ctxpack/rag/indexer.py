"""Indexing pipeline: chunk, describe, embed, store."""

import logging
import time
import uuid
from typing import Any, Iterable, Optional

import numpy as np

from ctxpack.errors import IndexingError, ValidationError
from ctxpack.models import Chunk, Document, DocumentType, IndexResult, VectorRecord
from ctxpack.protocols import ChunkingStrategy, EmbeddingProvider, VectorStore
from ctxpack.rag.metadata import MetadataFactory, now_iso

logger = logging.getLogger(__name__)


class Indexer:
    """Writes documents into one collection of a vector store.

    Every chunk of a call is embedded before anything is written, and all
    records of the call go to the store in a single upsert, so a failure
    never leaves part of a call behind.
    """

    def __init__(
        self,
        store: VectorStore,
        embedder: EmbeddingProvider,
        chunker: ChunkingStrategy,
        collection: str,
        metadata_factory: Optional[MetadataFactory] = None,
    ):
        self.store = store
        self.embedder = embedder
        self.chunker = chunker
        self.collection = collection
        self.metadata_factory = metadata_factory or MetadataFactory()

    def index(
        self,
        content: str,
        doc_type: DocumentType = DocumentType.GENERAL,
        source_path: Optional[str] = None,
        tags: Iterable[str] = (),
        extra: Optional[dict[str, Any]] = None,
    ) -> IndexResult:
        """Index raw content.

        Raises:
            ValidationError: If content is empty or whitespace-only
            IndexingError: If embedding or writing to the store failed
        """
        document = Document(content=content, type=doc_type, source_path=source_path, tags=tuple(tags))
        return self.index_batch([document], extra=extra)

    def index_document(self, document: Document) -> IndexResult:
        return self.index_batch([document])

    def index_batch(
        self,
        documents: list[Document],
        extra: Optional[dict[str, Any]] = None,
    ) -> IndexResult:
        """Index several documents as one atomic write."""
        for document in documents:
            if not document.content or not document.content.strip():
                raise ValidationError("Content cannot be empty")

        started = time.perf_counter()
        indexed_at = now_iso()

        chunks: list[Chunk] = []
        for document in documents:
            chunks.extend(self._chunk(document, indexed_at, extra))

        try:
            vectors = self._vectorize([chunk.text for chunk in chunks])
            records = [
                VectorRecord(id=uuid.uuid4().hex, vector=vector, text=chunk.text, metadata=chunk.metadata)
                for chunk, vector in zip(chunks, vectors)
            ]
            self.store.upsert(self.collection, records)
        except Exception as exc:
            logger.error(f"Indexing into {self.collection} failed: {exc}")
            raise IndexingError(f"Indexing failed: {exc}") from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"Indexed {len(chunks)} chunks into {self.collection} ({elapsed_ms:.1f} ms)")
        return IndexResult(chunks_created=len(chunks), processing_time_ms=elapsed_ms)

    def _chunk(self, document: Document, indexed_at: str, extra: Optional[dict[str, Any]]) -> list[Chunk]:
        base = self.metadata_factory.create(
            doc_type=document.type,
            source_path=document.source_path,
            tags=document.tags,
            indexed_at=indexed_at,
            extra=extra,
        )
        chunks = []
        for index, (start, end) in enumerate(self.chunker.spans(document.content)):
            text = document.content[start:end]
            chunks.append(
                Chunk(
                    text=text,
                    index=index,
                    start_char=start,
                    end_char=end,
                    metadata=self.metadata_factory.for_chunk(base, index, text, len(document.content)),
                )
            )
        logger.debug(f"Split {document.source_path or '<inline>'} into {len(chunks)} chunks")
        return chunks

    def _vectorize(self, texts: list[str]) -> np.ndarray:
        vectors = np.asarray(self.embedder.embed(texts), dtype=np.float32)
        if len(texts) and vectors.shape[0] != len(texts):
            raise IndexingError(
                f"Vectorizer returned {vectors.shape[0]} vectors for {len(texts)} chunks"
            )
        return vectors
