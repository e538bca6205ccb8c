"""FastMCP server implementation for ctxpack."""

import logging
from typing import Any, Optional, Union

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from ctxpack.config import ProjectConfig, RagToolConfig
from ctxpack.filesystem import (
    FileDeleteContentHandler,
    FileEditResult,
    FileInsertContentHandler,
    FileSearchHandler,
    FileSearchRequest,
)
from ctxpack.rag import RagManageHandler, RagSearchHandler, RagStoreHandler, ServiceFactory, ToolResult

logger = logging.getLogger(__name__)


def _unwrap(result: Union[ToolResult, FileEditResult]) -> str:
    """Return the text of a successful result, raise ToolError otherwise."""
    if result.success:
        return result.text
    raise ToolError(result.text)


def create_mcp_server(project: ProjectConfig, services: Optional[ServiceFactory] = None) -> FastMCP:
    """Create an MCP server for a project.

    The file tools are always registered. The RAG tools are registered
    only when the project has RAG collections configured.

    Args:
        project: Loaded project configuration
        services: Service factory to use; built from the config if omitted

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(name="ctxpack")

    _register_file_tools(mcp, project)

    if project.rag.enabled and project.rag.collections:
        services = services or ServiceFactory(project.rag, project.dirs.root)
        _register_rag_tools(mcp, services, project.rag.default_collection)
        for tool in project.rag.tools:
            _register_configured_tool(mcp, services, tool)
    else:
        logger.debug("RAG is disabled, skipping knowledge base tools")

    return mcp


def _register_file_tools(mcp: FastMCP, project: ProjectConfig) -> None:
    searcher = FileSearchHandler(project.dirs, project.exclude)
    deleter = FileDeleteContentHandler(project.dirs, project.exclude)
    inserter = FileInsertContentHandler(project.dirs, project.exclude)

    @mcp.tool(name="file-search")
    def file_search(
        query: str,
        path: str = "",
        pattern: Optional[str] = None,
        depth: int = 10,
        context_lines: int = 2,
        case_sensitive: bool = True,
        regex: bool = False,
        max_matches_per_file: int = 50,
        max_total_matches: int = 200,
        size: Optional[str] = None,
    ) -> str:
        """Search file contents for text or a regular expression.

        Args:
            query: Text or regex to look for
            path: Directory to search, relative to the project root
            pattern: Comma-separated file name globs (e.g. "*.py,*.md")
            depth: Maximum directory depth to descend
            context_lines: Lines of context around each match (0-10)
            case_sensitive: Match case exactly
            regex: Treat the query as a regular expression
            max_matches_per_file: Matches kept per file (0 = unlimited)
            max_total_matches: Matches kept overall (0 = unlimited)
            size: Size filter such as "< 1M" or ">= 10K, < 2Mi"

        Returns:
            Matches grouped by file, with line numbers and context
        """
        request = FileSearchRequest(
            query=query,
            path=path,
            pattern=pattern,
            depth=depth,
            context_lines=context_lines,
            case_sensitive=case_sensitive,
            regex=regex,
            max_matches_per_file=max_matches_per_file,
            max_total_matches=max_total_matches,
            size=size,
        )
        try:
            response = searcher.search(request)
        except Exception as exc:
            logger.error(f"file-search '{query}' failed: {exc}")
            raise ToolError(f"Error: {exc}") from exc
        return response.format(request)

    @mcp.tool(name="file-delete-content")
    def file_delete_content(path: str, lines: list[Union[int, dict[str, int]]]) -> str:
        """Delete lines from a file.

        Args:
            path: File path relative to the project root
            lines: Line numbers (1-based) or ranges like {"line": 3, "to": 7}

        Returns:
            Summary of the deleted lines
        """
        return _unwrap(deleter.handle(path, lines))

    @mcp.tool(name="file-insert-content")
    def file_insert_content(path: str, insertions: list[dict[str, Any]], position: str = "after") -> str:
        """Insert content before or after specific lines of a file.

        Args:
            path: File path relative to the project root
            insertions: Items like {"line": 5, "content": "text"}; line -1 is the end of file
            position: "before" or "after" the anchor line

        Returns:
            Summary of the inserted lines
        """
        return _unwrap(inserter.handle(path, insertions, position))


def _register_rag_tools(mcp: FastMCP, services: ServiceFactory, collection: str) -> None:
    store = RagStoreHandler(services, collection)
    search = RagSearchHandler(services, collection)
    manage = RagManageHandler(services, collection)

    @mcp.tool(name="rag-store")
    def rag_store(
        content: str,
        type: str = "general",
        source_path: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> str:
        """Store documentation or project knowledge in the knowledge base.

        Args:
            content: Text to store
            type: One of architecture, api, testing, convention, general, tutorial, reference
            source_path: File or location the knowledge comes from
            tags: Comma-separated tags

        Returns:
            Collection, type, chunk count and processing time
        """
        return _unwrap(store.handle(content, type=type, source_path=source_path, tags=tags))

    @mcp.tool(name="rag-search")
    def rag_search(
        query: str,
        type: Optional[str] = None,
        source_path: Optional[str] = None,
        limit: int = 10,
    ) -> str:
        """Search the knowledge base by meaning.

        Args:
            query: Natural language description of what you're looking for
            type: Only return chunks of this document type
            source_path: Only return chunks whose source path starts with this
            limit: Maximum number of results (1-50)

        Returns:
            Ranked chunks with their scores and metadata
        """
        return _unwrap(search.handle(query, type=type, source_path=source_path, limit=limit))

    @mcp.tool(name="rag-manage")
    def rag_manage(action: str = "stats") -> str:
        """Inspect the knowledge base.

        Args:
            action: Only "stats" is supported

        Returns:
            Store, vectorizer and chunking settings
        """
        return _unwrap(manage.handle(action))


def _register_configured_tool(mcp: FastMCP, services: ServiceFactory, tool: RagToolConfig) -> None:
    """Register the search and store tools declared under rag.tools."""
    if tool.has(RagToolConfig.OPERATION_SEARCH):
        search = RagSearchHandler(services, tool.collection)

        def configured_search(
            query: str,
            type: Optional[str] = None,
            source_path: Optional[str] = None,
            limit: int = 10,
        ) -> str:
            return _unwrap(search.handle(query, type=type, source_path=source_path, limit=limit))

        mcp.add_tool(
            configured_search,
            name=tool.search_tool_id,
            description=f"{tool.description} (search in {tool.display_name})",
        )

    if tool.has(RagToolConfig.OPERATION_STORE):
        store = RagStoreHandler(services, tool.collection)

        def configured_store(
            content: str,
            type: str = "general",
            source_path: Optional[str] = None,
            tags: Optional[str] = None,
        ) -> str:
            return _unwrap(store.handle(content, type=type, source_path=source_path, tags=tags))

        mcp.add_tool(
            configured_store,
            name=tool.store_tool_id,
            description=f"{tool.description} (store in {tool.display_name})",
        )

    logger.debug(f"Registered RAG tool {tool.id} for collection {tool.collection}")
