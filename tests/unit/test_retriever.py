"""Unit tests for similarity search."""

import pytest

from ctxpack.chunkers import OverlapChunker
from ctxpack.errors import ValidationError
from ctxpack.models import DocumentType, SearchQuery
from ctxpack.rag import Indexer, Retriever
from ctxpack.storage import InMemoryVectorStore


@pytest.fixture
def store(embedder):
    return InMemoryVectorStore(dimension=embedder.dimension)


@pytest.fixture
def retriever(store, embedder):
    return Retriever(store, embedder, collection="docs")


@pytest.fixture
def populated(store, embedder):
    indexer = Indexer(store, embedder, OverlapChunker(chunk_size=200, overlap=20), collection="docs")
    indexer.index("Database migrations run with alembic", DocumentType.CONVENTION, "docs/db/migrations.md")
    indexer.index("Database connection pooling settings", DocumentType.ARCHITECTURE, "docs/db/pool.md")
    indexer.index("Testing database fixtures with pytest", DocumentType.TESTING, "tests/README.md")
    indexer.index("Frontend build uses vite", DocumentType.GENERAL, "web/README.md")
    return store


class TestRetriever:
    """Test the Retriever class."""

    def test_empty_collection_returns_nothing(self, retriever):
        assert retriever.search("anything at all") == []

    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_query_rejected(self, retriever, embedder, query):
        with pytest.raises(ValidationError, match="Query cannot be empty"):
            retriever.search(query)
        assert embedder.calls == []

    def test_results_descend_by_score(self, populated, retriever):
        results = retriever.search("Database migrations run with alembic", limit=10)

        assert len(results) == 4
        scores = [result.score for result in results]
        assert scores == sorted(scores, reverse=True)
        assert results[0].source_path == "docs/db/migrations.md"
        assert results[0].score == pytest.approx(1.0)

    def test_type_filter(self, populated, retriever):
        results = retriever.search("database", doc_type=DocumentType.TESTING)
        assert [result.source_path for result in results] == ["tests/README.md"]

    def test_source_path_prefix_filter(self, populated, retriever):
        results = retriever.search("database", source_path="docs/db/")
        assert {result.source_path for result in results} == {"docs/db/migrations.md", "docs/db/pool.md"}

    def test_filters_combine(self, populated, retriever):
        results = retriever.search("database", doc_type=DocumentType.ARCHITECTURE, source_path="docs/")
        assert [result.type for result in results] == ["architecture"]

    def test_limit_truncates(self, populated, retriever):
        assert len(retriever.search("database", limit=2)) == 2

    @pytest.mark.parametrize("limit,expected", [(0, 1), (-3, 1), (51, 50), (10, 10)])
    def test_limit_is_clamped(self, limit, expected):
        assert SearchQuery(query="q", limit=limit).effective_limit == expected

    def test_zero_limit_returns_one(self, populated, retriever):
        assert len(retriever.search("database", limit=0)) == 1

    def test_equal_scores_keep_store_order(self, store, embedder, retriever):
        indexer = Indexer(store, embedder, OverlapChunker(100, 0), collection="docs")
        for path in ("a.md", "b.md", "c.md"):
            indexer.index("identical text", source_path=path)

        results = retriever.search("identical text")
        assert [result.source_path for result in results] == ["a.md", "b.md", "c.md"]

    def test_search_is_idempotent(self, populated, retriever):
        first = retriever.search("database settings", limit=3, source_path="docs")
        second = retriever.search("database settings", limit=3, source_path="docs")
        assert first == second

    def test_other_collection_not_visible(self, populated, embedder):
        assert Retriever(populated, embedder, collection="other").search("database") == []
