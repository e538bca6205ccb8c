"""Unit tests for the RAG tool handlers and service factory."""

import pytest

from ctxpack.config import parse_config
from ctxpack.errors import ConfigurationError, NotFoundError
from ctxpack.rag import RagManageHandler, RagSearchHandler, RagStoreHandler, ServiceFactory

from conftest import HashingEmbedder, rag_settings


class TestRagStoreHandler:
    """Test the store tool."""

    def test_store_reports_summary(self, services):
        result = RagStoreHandler(services, "docs").handle(
            "# Title\nBody text...", type="architecture", source_path="docs/a.md", tags="x, y"
        )

        assert result.success
        lines = result.text.splitlines()
        assert lines[0] == "Successfully stored in collection 'docs'"
        assert lines[1] == "Type: architecture"
        assert lines[2].startswith("Chunks created: ")
        assert int(lines[2].split(": ")[1]) >= 1
        assert lines[3].startswith("Processing time: ") and lines[3].endswith(" ms")

    def test_empty_content(self, services):
        result = RagStoreHandler(services, "docs").handle("   ")
        assert not result.success
        assert result.text == "Content cannot be empty"

    def test_unknown_type_is_an_error(self, services):
        result = RagStoreHandler(services, "docs").handle("content", type="poetry")

        assert not result.success
        assert result.text == (
            "Invalid type 'poetry'. Valid types: "
            "architecture, api, testing, convention, general, tutorial, reference"
        )

    def test_type_is_case_insensitive(self, services):
        assert RagStoreHandler(services, "docs").handle("content", type="API").success

    def test_unknown_collection(self, services):
        result = RagStoreHandler(services, "missing").handle("content")
        assert not result.success
        assert "missing" in result.text


class TestRagSearchHandler:
    """Test the search tool."""

    def test_no_results(self, services):
        result = RagSearchHandler(services, "docs").handle("anything")
        assert result.success
        assert result.text == "No results found for query: anything"

    def test_empty_query(self, services):
        result = RagSearchHandler(services, "docs").handle("")
        assert not result.success
        assert result.text == "Query cannot be empty"

    def test_found_results(self, services):
        store = RagStoreHandler(services, "docs")
        store.handle("Deploy with docker compose", type="tutorial", source_path="docs/deploy.md", tags="ops")
        store.handle("Unit tests use pytest fixtures", type="testing", source_path="tests/README.md")

        result = RagSearchHandler(services, "docs").handle("docker deploy", limit=5)

        assert result.success
        assert result.text.startswith("Found 2 results for: docker deploy\n\n[1] score: ")
        assert "\n\n---\n\n[2] score: " in result.text
        assert "source: docs/deploy.md | tags: ops | indexed: " in result.text

    def test_unknown_type_falls_back_to_general(self, services):
        store = RagStoreHandler(services, "docs")
        store.handle("general knowledge entry", type="general")
        store.handle("api knowledge entry", type="api")

        result = RagSearchHandler(services, "docs").handle("knowledge entry", type="poetry")

        assert result.text.startswith("Found 1 result for: knowledge entry")
        assert "type: general" in result.text

    def test_collections_are_isolated(self, services):
        RagStoreHandler(services, "notes").handle("only in notes")
        assert RagSearchHandler(services, "docs").handle("only in notes").text.startswith("No results")
        assert RagSearchHandler(services, "notes").handle("only in notes").text.startswith("Found 1 result")


class TestRagManageHandler:
    """Test the manage tool."""

    def test_stats(self, services):
        result = RagManageHandler(services, "docs").handle("stats")

        assert result.success
        assert "Enabled: yes" in result.text
        assert "Driver: memory" in result.text
        assert "Collection: project_docs (docs)" in result.text
        assert "Dimensions: 64" in result.text
        assert "Chunk size: 40" in result.text
        assert "Overlap: 10" in result.text
        assert "Collections: docs, notes" in result.text

    def test_unknown_action(self, services):
        result = RagManageHandler(services, "docs").handle("reindex")
        assert not result.success
        assert result.text == "Unknown action: reindex. Available actions: stats"


class TestServiceFactory:
    """Test the ServiceFactory class."""

    def test_services_are_cached(self, services):
        assert services.get_indexer("docs") is services.get_indexer("docs")
        assert services.get_retriever("docs") is services.get_retriever("docs")
        assert services.get_store("docs") is services.get_store("notes")

    def test_physical_collection_name(self, services):
        assert services.get_indexer("docs").collection == "project_docs"
        assert services.get_retriever("notes").collection == "project_notes"

    def test_unknown_collection(self, services):
        with pytest.raises(NotFoundError):
            services.get_indexer("missing")

    def test_dimension_mismatch(self, project):
        factory = ServiceFactory(project.rag, project.dirs.root, embedder=HashingEmbedder(dimension=8))
        with pytest.raises(ConfigurationError, match="expects 64"):
            factory.get_retriever("docs")

    def test_unknown_platform(self, dirs):
        settings = rag_settings()
        settings["rag"]["vectorizer"]["platform"] = "carrier-pigeon"
        factory = ServiceFactory(parse_config(settings, dirs).rag, dirs.root)

        with pytest.raises(ConfigurationError, match="carrier-pigeon"):
            factory.get_indexer("docs")

    def test_sqlite_driver_end_to_end(self, dirs, embedder):
        project = parse_config(rag_settings(driver="sqlite"), dirs)
        factory = ServiceFactory(project.rag, dirs.root, embedder=embedder)

        RagStoreHandler(factory, "docs").handle("persisted knowledge")

        assert (dirs.root / ".ctxpack" / "test.db").is_file()
        assert factory.get_store("docs").count("project_docs") == 1
