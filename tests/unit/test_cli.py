"""Unit tests for the command line interface."""

import json

import pytest
import yaml

from ctxpack.cli import build_parser, main

from conftest import HashingEmbedder, rag_settings


@pytest.fixture
def config_file(project_root):
    path = project_root / "context.yaml"
    path.write_text(yaml.safe_dump(rag_settings()), encoding="utf-8")
    (project_root / "docs").mkdir()
    (project_root / "docs" / "a.md").write_text("# A\n", encoding="utf-8")
    (project_root / "docs" / "b.txt").write_text("b\n", encoding="utf-8")
    return path


class TestCli:
    """Test argument parsing and command dispatch."""

    def test_parser_defaults(self):
        args = build_parser().parse_args(["index", "docs"])
        assert args.pattern == "*.md"
        assert args.type == "general"
        assert not args.no_recursive
        assert args.config_file is None

    def test_serve_transports(self):
        args = build_parser().parse_args(["serve", "--transport", "streamable-http"])
        assert args.transport == "streamable-http"
        with pytest.raises(SystemExit):
            build_parser().parse_args(["serve", "--transport", "carrier-pigeon"])

    def test_status_json(self, config_file, capsys):
        assert main(["status", "--json", "-c", str(config_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["enabled"] is True
        assert data["records"] == {"docs": 0, "notes": 0}
        assert data["exclude_patterns"] == [".env", "secrets/**"]

    def test_status_without_config(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        assert main(["status"]) == 0
        assert "RAG enabled: no" in capsys.readouterr().out

    def test_index_dry_run(self, config_file, caplog):
        caplog.set_level("INFO")
        assert main(["index", "docs", "--dry-run", "-c", str(config_file)]) == 0
        assert "Would index 1 files:" in caplog.text
        assert "docs/a.md" in caplog.text

    def test_search_without_rag_fails(self, tmp_path, monkeypatch, caplog):
        monkeypatch.chdir(tmp_path)
        assert main(["search", "anything"]) == 1
        assert "RAG is not configured" in caplog.text

    def test_unknown_collection_fails(self, config_file):
        assert main(["clear", "--collection", "missing", "-f", "-c", str(config_file)]) == 1

    def test_clear_forced(self, config_file, caplog):
        caplog.set_level("INFO")
        assert main(["clear", "-f", "-c", str(config_file)]) == 0
        assert "Cleared 0 records from docs" in caplog.text


@pytest.fixture
def sqlite_config(project_root, monkeypatch):
    monkeypatch.setattr("ctxpack.rag.services.create_embedder", lambda config, dimension=0: HashingEmbedder())
    path = project_root / "context.yaml"
    path.write_text(yaml.safe_dump(rag_settings(driver="sqlite")), encoding="utf-8")
    (project_root / "docs").mkdir()
    (project_root / "docs" / "a.md").write_text("# Queues\n\nAll services talk.\n", encoding="utf-8")
    return path


def record_counts(config_path, capsys):
    capsys.readouterr()
    assert main(["status", "--json", "-c", str(config_path)]) == 0
    return json.loads(capsys.readouterr().out)["records"]


class TestReindex:
    """Test clearing and re-indexing a collection."""

    def test_parser(self):
        args = build_parser().parse_args(["reindex", "docs", "-p", "*.txt", "-t", "api", "--no-recursive", "-f"])
        assert args.pattern == "*.txt"
        assert args.type == "api"
        assert args.no_recursive
        assert args.force

    def test_reindex_replaces_previous_records(self, sqlite_config, capsys):
        assert main(["index", "docs", "-c", str(sqlite_config)]) == 0
        assert main(["index", "docs", "-c", str(sqlite_config)]) == 0
        assert record_counts(sqlite_config, capsys)["docs"] == 2

        assert main(["reindex", "docs", "-f", "-c", str(sqlite_config)]) == 0

        assert record_counts(sqlite_config, capsys) == {"docs": 1, "notes": 0}

    def test_declined_confirmation_keeps_records(self, sqlite_config, capsys, monkeypatch):
        assert main(["index", "docs", "-c", str(sqlite_config)]) == 0
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        assert main(["reindex", "docs", "-c", str(sqlite_config)]) == 0

        assert record_counts(sqlite_config, capsys)["docs"] == 1

    def test_no_matching_files_leaves_collection_alone(self, sqlite_config, capsys, caplog):
        caplog.set_level("INFO")
        assert main(["index", "docs", "-c", str(sqlite_config)]) == 0

        assert main(["reindex", "docs", "-p", "*.rst", "-f", "-c", str(sqlite_config)]) == 0

        assert "No files found matching the pattern" in caplog.text
        assert record_counts(sqlite_config, capsys)["docs"] == 1
