"""Unit tests for chunk metadata construction."""

from ctxpack.models import DocumentType
from ctxpack.rag.metadata import MetadataFactory, parse_tags


class TestMetadataFactory:
    """Test the MetadataFactory class."""

    def setup_method(self):
        self.factory = MetadataFactory()

    def test_fixed_keys(self):
        metadata = self.factory.create(
            DocumentType.API,
            source_path="docs/api/users.md",
            tags=["rest", "users"],
            indexed_at="2024-01-01T10:00:00+00:00",
        )

        assert metadata["type"] == "api"
        assert metadata["source_path"] == "docs/api/users.md"
        assert metadata["tags"] == ["rest", "users"]
        assert metadata["indexed_at"] == "2024-01-01T10:00:00+00:00"
        assert metadata["filename"] == "users.md"

    def test_fixed_keys_override_extra(self):
        metadata = self.factory.create(
            DocumentType.GENERAL,
            extra={"type": "bogus", "tags": "x", "author": "someone"},
        )

        assert metadata["type"] == "general"
        assert metadata["tags"] == []
        assert metadata["author"] == "someone"

    def test_indexed_at_defaults_to_now(self):
        metadata = self.factory.create(DocumentType.GENERAL)
        assert metadata["indexed_at"].endswith("+00:00")
        assert "filename" not in metadata

    def test_for_chunk_adds_position(self):
        base = self.factory.create(DocumentType.TESTING, source_path="a.md")
        chunk = self.factory.for_chunk(base, 2, "abcde", 120)

        assert chunk["chunk_index"] == 2
        assert chunk["chunk_size"] == 5
        assert chunk["size"] == 120
        assert "chunk_index" not in base


class TestParseTags:
    def test_comma_separated(self):
        assert parse_tags(" a, b ,,c ") == ("a", "b", "c")

    def test_none_and_empty(self):
        assert parse_tags(None) == ()
        assert parse_tags("") == ()

    def test_iterable(self):
        assert parse_tags(["x", " ", "y "]) == ("x", "y")
