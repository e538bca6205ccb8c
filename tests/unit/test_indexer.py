"""Unit tests for the indexing pipeline."""

from unittest.mock import Mock

import numpy as np
import pytest

from ctxpack.chunkers import OverlapChunker
from ctxpack.errors import IndexingError, NetworkError, StoreError, ValidationError
from ctxpack.models import Document, DocumentType
from ctxpack.rag import Indexer
from ctxpack.storage import InMemoryVectorStore


@pytest.fixture
def store(embedder):
    return InMemoryVectorStore(dimension=embedder.dimension)


@pytest.fixture
def indexer(store, embedder):
    return Indexer(store, embedder, OverlapChunker(chunk_size=40, overlap=10), collection="docs")


class TestIndexer:
    """Test the Indexer class."""

    def test_store_markdown_document(self, indexer, store):
        """Storing a short markdown note creates at least one chunk."""
        result = indexer.index("# Title\nBody text...", doc_type=DocumentType.GENERAL)

        assert result.chunks_created >= 1
        assert result.processing_time_ms >= 0
        assert store.count("docs") == result.chunks_created

    def test_chunk_count_matches_chunker(self, indexer, store):
        content = "word " * 50
        result = indexer.index(content)
        assert result.chunks_created == len(indexer.chunker.chunk(content))

    def test_metadata_on_every_chunk(self, indexer, store):
        content = "The authentication flow issues tokens. " * 5
        indexer.index(content, doc_type=DocumentType.API, source_path="docs/auth.md", tags=["auth", "security"])

        records = list(store.collections["docs"].values())
        indexed_at = {record.metadata["indexed_at"] for record in records}
        assert len(indexed_at) == 1
        assert [record.metadata["chunk_index"] for record in records] == list(range(len(records)))
        for record in records:
            assert record.metadata["type"] == "api"
            assert record.metadata["source_path"] == "docs/auth.md"
            assert record.metadata["tags"] == ["auth", "security"]
            assert record.metadata["filename"] == "auth.md"
            assert record.metadata["size"] == len(content)

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_empty_content_rejected(self, indexer, embedder, content):
        with pytest.raises(ValidationError, match="Content cannot be empty"):
            indexer.index(content)
        assert embedder.calls == []

    def test_batch_is_single_write(self, indexer, store):
        store.upsert = Mock(wraps=store.upsert)
        documents = [
            Document(content="first document body text", type=DocumentType.TUTORIAL),
            Document(content="second document body text", type=DocumentType.REFERENCE),
        ]

        result = indexer.index_batch(documents)

        store.upsert.assert_called_once()
        assert result.chunks_created == 2
        types = sorted(r.metadata["type"] for r in store.collections["docs"].values())
        assert types == ["reference", "tutorial"]

    def test_vectorizer_failure_writes_nothing(self, store):
        failing = Mock()
        failing.dimension = store.dimension
        failing.embed.side_effect = NetworkError("connection refused")
        indexer = Indexer(store, failing, OverlapChunker(40, 10), collection="docs")

        with pytest.raises(IndexingError, match="connection refused"):
            indexer.index("some content that will never be stored")
        assert store.count("docs") == 0

    def test_store_failure_is_indexing_error(self, embedder):
        broken = Mock()
        broken.upsert.side_effect = StoreError("disk full")
        indexer = Indexer(broken, embedder, OverlapChunker(40, 10), collection="docs")

        with pytest.raises(IndexingError):
            indexer.index("content")

    def test_wrong_vector_count(self, store):
        short = Mock()
        short.embed.return_value = np.zeros((1, store.dimension), dtype=np.float32)
        indexer = Indexer(store, short, OverlapChunker(10, 2), collection="docs")

        with pytest.raises(IndexingError):
            indexer.index("this text is long enough for several chunks")
        assert store.count("docs") == 0

    def test_unexpected_vectorizer_error_is_indexing_error(self, store):
        crashing = Mock()
        crashing.dimension = store.dimension
        crashing.embed.side_effect = RuntimeError("CUDA out of memory")
        indexer = Indexer(store, crashing, OverlapChunker(40, 10), collection="docs")

        with pytest.raises(IndexingError, match="CUDA out of memory") as info:
            indexer.index("content that never reaches the store")
        assert isinstance(info.value.__cause__, RuntimeError)
        assert store.count("docs") == 0
