"""Unit tests for the exclude registry."""

import pytest

from ctxpack.config import ExcludeRegistry


class TestExcludeRegistry:
    """Test pattern matching against project-relative paths."""

    def setup_method(self):
        self.registry = ExcludeRegistry([".env", "secrets/**", "*.key", "build"])

    @pytest.mark.parametrize(
        "path",
        [".env", "config/.env", "secrets/db.txt", "secrets/nested/deep.txt", "certs/server.key", "build/out.js", "./.env"],
    )
    def test_excluded(self, path):
        assert self.registry.should_exclude(path)

    @pytest.mark.parametrize("path", ["src/app.py", "env.py", "secret/file.txt", "docs/build.md", ""])
    def test_allowed(self, path):
        assert not self.registry.should_exclude(path)

    def test_add_deduplicates(self):
        registry = ExcludeRegistry()
        registry.add("*.log")
        registry.add("./*.log")
        assert registry.patterns == ["*.log"]
        assert len(registry) == 1

    def test_windows_separators(self):
        assert self.registry.should_exclude("secrets\\db.txt")
