"""Unit tests for the MCP server wiring."""

import asyncio

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from ctxpack.config import ProjectConfig
from ctxpack.server import create_mcp_server


def tool_names(mcp) -> set[str]:
    return {tool.name for tool in asyncio.run(mcp.list_tools())}


def call(mcp, name: str, arguments: dict) -> str:
    result = asyncio.run(mcp.call_tool(name, arguments))
    # Newer SDKs return (content, structured_output)
    content = result[0] if isinstance(result, tuple) else result
    return content[0].text


class TestCreateMcpServer:
    """Test tool registration and dispatch."""

    def test_all_tools_registered(self, project, services):
        names = tool_names(create_mcp_server(project, services))

        assert {
            "rag-store",
            "rag-search",
            "rag-manage",
            "file-search",
            "file-delete-content",
            "file-insert-content",
            "notes-search",
            "notes-search-store",
        } <= names

    def test_rag_disabled_keeps_file_tools(self, dirs):
        names = tool_names(create_mcp_server(ProjectConfig(dirs=dirs)))

        assert names == {"file-search", "file-delete-content", "file-insert-content"}

    def test_store_then_search(self, project, services):
        mcp = create_mcp_server(project, services)

        stored = call(mcp, "rag-store", {"content": "Caching uses redis", "type": "architecture"})
        found = call(mcp, "rag-search", {"query": "redis caching"})

        assert stored.startswith("Successfully stored in collection 'docs'")
        assert found.startswith("Found 1 result for: redis caching")

    def test_configured_tool_targets_its_collection(self, project, services):
        mcp = create_mcp_server(project, services)

        call(mcp, "notes-search-store", {"content": "Team offsite is in May"})

        assert call(mcp, "notes-search", {"query": "offsite"}).startswith("Found 1 result")
        assert call(mcp, "rag-search", {"query": "offsite"}).startswith("No results found")

    def test_failed_result_is_tool_error(self, project, services):
        mcp = create_mcp_server(project, services)

        with pytest.raises(ToolError, match="Content cannot be empty"):
            call(mcp, "rag-store", {"content": " "})

    def test_file_tools(self, project, services, project_root):
        (project_root / "notes.txt").write_text("one\ntwo\nthree\n", encoding="utf-8")
        mcp = create_mcp_server(project, services)

        found = call(mcp, "file-search", {"query": "two", "context_lines": 0})
        deleted = call(mcp, "file-delete-content", {"path": "notes.txt", "lines": [2]})
        inserted = call(
            mcp,
            "file-insert-content",
            {"path": "notes.txt", "insertions": [{"line": -1, "content": "four"}]},
        )

        assert found.startswith("Found 1 match in 1 file")
        assert deleted == "Successfully deleted 1 line from file 'notes.txt'."
        assert inserted.startswith("Successfully inserted 1 line(s)")
        assert (project_root / "notes.txt").read_text(encoding="utf-8") == "one\nthree\nfour\n"

    def test_excluded_file_is_tool_error(self, project, services):
        mcp = create_mcp_server(project, services)

        with pytest.raises(ToolError, match="excluded by project configuration"):
            call(mcp, "file-delete-content", {"path": ".env", "lines": [1]})
