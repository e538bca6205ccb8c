"""CLI entry point for ctxpack."""

import argparse
import json
import logging
import sys
from typing import Literal, Optional, cast

from ctxpack.config import ProjectConfig, load_config
from ctxpack.errors import CtxPackError, NotFoundError
from ctxpack.ingesters import FolderIngester
from ctxpack.models import DocumentType
from ctxpack.rag import RagSearchHandler, ServiceFactory, parse_tags

logger = logging.getLogger(__name__)


def _require_rag(project: ProjectConfig) -> ServiceFactory:
    if not project.rag.enabled or not project.rag.collections:
        raise NotFoundError(
            "RAG is not configured. Add a 'rag' section with servers and collections to context.yaml"
        )
    return ServiceFactory(project.rag, project.dirs.root)


def _collection(project: ProjectConfig, name: Optional[str]) -> str:
    if name:
        project.rag.get_collection(name)
        return name
    return project.rag.default_collection


def index(
    project: ProjectConfig,
    path: str,
    pattern: str = "*.md",
    doc_type: str = DocumentType.GENERAL.value,
    recursive: bool = True,
    dry_run: bool = False,
    collection: Optional[str] = None,
    tags: Optional[str] = None,
) -> None:
    """Index the files under a path into a collection.

    Args:
        project: Loaded project configuration
        path: Directory or file, relative to the project root
        pattern: Comma-separated file name globs
        doc_type: Document type for every file; unknown values mean general
        recursive: Descend into subdirectories
        dry_run: Only list the files that would be indexed
        collection: Target collection (default: first configured)
        tags: Comma-separated tags for every file
    """
    source = project.dirs.resolve(path)
    resolved_type = DocumentType.try_from(doc_type)
    if resolved_type is None:
        logger.warning(f"Unknown type '{doc_type}', using '{DocumentType.GENERAL.value}'")
        resolved_type = DocumentType.GENERAL

    ingester = FolderIngester(pattern=pattern, recursive=recursive, exclude_registry=project.exclude)

    if dry_run:
        files = ingester.files(source, project.dirs.root)
        logger.info(f"Would index {len(files)} files:")
        for file in files:
            logger.info(f"  {project.dirs.relative(file)}")
        return

    services = _require_rag(project)
    name = _collection(project, collection)
    indexer = services.get_indexer(name)

    logger.info(f"Indexing {path} into {name}")
    file_count = 0
    chunk_count = 0
    failed = 0
    for document in ingester.ingest(source, resolved_type, root=project.dirs.root, tags=parse_tags(tags)):
        try:
            result = indexer.index_document(document)
        except CtxPackError as exc:
            logger.error(f"  {document.source_path}: {exc}")
            failed += 1
            continue
        file_count += 1
        chunk_count += result.chunks_created
        logger.info(f"  {document.source_path} ({result.chunks_created} chunks)")

    logger.info("")
    logger.info(f"Indexed {file_count} files, {chunk_count} chunks -> {name}")
    if failed:
        raise CtxPackError(f"{failed} files failed to index")


def search(
    project: ProjectConfig,
    query: str,
    doc_type: Optional[str] = None,
    source_path: Optional[str] = None,
    limit: int = 10,
    collection: Optional[str] = None,
) -> None:
    """Search a collection and print the results."""
    services = _require_rag(project)
    result = RagSearchHandler(services, _collection(project, collection)).handle(
        query, type=doc_type, source_path=source_path, limit=limit
    )
    if not result.success:
        raise CtxPackError(result.text)
    print(result.text)


def status(project: ProjectConfig, as_json: bool = False) -> None:
    """Show the RAG configuration and record counts."""
    data = project.rag.to_dict()
    data["config_file"] = str(project.source) if project.source else None
    data["exclude_patterns"] = project.exclude.patterns

    counts: dict[str, Optional[int]] = {}
    if project.rag.enabled and project.rag.collections:
        services = ServiceFactory(project.rag, project.dirs.root)
        for name, coll in project.rag.collections.items():
            try:
                counts[name] = services.get_store(name).count(coll.collection)
            except CtxPackError as exc:
                logger.warning(f"Cannot count records in {name}: {exc}")
                counts[name] = None
    data["records"] = counts

    if as_json:
        print(json.dumps(data, indent=2))
        return

    print(f"Config: {data['config_file'] or '(none)'}")
    print(f"RAG enabled: {'yes' if data['enabled'] else 'no'}")
    if not data["enabled"]:
        return
    print(f"Format: {data['format']}")
    print("")
    print("Vectorizer:")
    print(f"  Platform: {data['vectorizer']['platform']}")
    print(f"  Model: {data['vectorizer']['model'] or '(platform default)'}")
    print("")
    print("Servers:")
    for name, server in data["servers"].items():
        print(f"  {name}: {server['driver']} {server['endpoint_url'] or '-'} ({server['embeddings_dimension']} dims)")
    print("")
    print("Collections:")
    for name, coll in data["collections"].items():
        records = counts.get(name)
        print(f"  {name} -> {coll['server']}/{coll['collection']}: {'?' if records is None else records} records")


def clear(project: ProjectConfig, collection: Optional[str] = None, force: bool = False) -> None:
    """Remove every record from one or all collections."""
    services = _require_rag(project)
    names = [_collection(project, collection)] if collection else services.collection_names

    if not force:
        answer = input(f"Delete all records from {', '.join(names)}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            logger.info("Aborted")
            return

    for name in names:
        coll = project.rag.get_collection(name)
        removed = services.get_store(name).clear(coll.collection)
        logger.info(f"Cleared {removed} records from {name}")


def reindex(
    project: ProjectConfig,
    path: str,
    pattern: str = "*.md",
    doc_type: str = DocumentType.GENERAL.value,
    recursive: bool = True,
    collection: Optional[str] = None,
    force: bool = False,
) -> None:
    """Clear a collection, then index a path into it again."""
    services = _require_rag(project)
    name = _collection(project, collection)

    ingester = FolderIngester(pattern=pattern, recursive=recursive, exclude_registry=project.exclude)
    files = ingester.files(project.dirs.resolve(path), project.dirs.root)
    if not files:
        logger.warning("No files found matching the pattern")
        return
    logger.info(f"Found {len(files)} files to reindex into {name}")

    if not force:
        answer = input(f"This will clear {name} and reindex. Continue? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            logger.info("Aborted")
            return

    removed = services.get_store(name).clear(project.rag.get_collection(name).collection)
    logger.info(f"Cleared {removed} records from {name}")
    index(project, path, pattern=pattern, doc_type=doc_type, recursive=recursive, collection=name)


def serve(project: ProjectConfig, transport: str = "stdio") -> None:
    """Start the MCP server for the project."""
    # Import here to avoid loading MCP unless needed
    from ctxpack.server import create_mcp_server

    logger.info(f"Serving {project.dirs.root} via {transport}")
    mcp = create_mcp_server(project)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ctxpack",
        description="ctxpack - project knowledge base and file tools over MCP",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parent = argparse.ArgumentParser(add_help=False)
    config_parent.add_argument(
        "-c",
        "--config-file",
        default=None,
        help="Path to context.yaml or the project directory (default: current directory)",
    )

    # index command
    index_parser = subparsers.add_parser("index", parents=[config_parent], help="Index files into a collection")
    index_parser.add_argument("path", help="Directory or file to index, relative to the project root")
    index_parser.add_argument("-p", "--pattern", default="*.md", help="File name globs (default: *.md)")
    index_parser.add_argument(
        "-t", "--type", default=DocumentType.GENERAL.value, help="Document type (default: general)"
    )
    index_parser.add_argument("--tags", default=None, help="Comma-separated tags")
    index_parser.add_argument("--no-recursive", action="store_true", help="Do not descend into subdirectories")
    index_parser.add_argument("--dry-run", action="store_true", help="List files without indexing")
    index_parser.add_argument("--collection", default=None, help="Target collection")

    # search command
    search_parser = subparsers.add_parser("search", parents=[config_parent], help="Search a collection")
    search_parser.add_argument("query", help="Natural language query")
    search_parser.add_argument("-t", "--type", default=None, help="Filter by document type")
    search_parser.add_argument("--source-path", default=None, help="Filter by source path prefix")
    search_parser.add_argument("-l", "--limit", type=int, default=10, help="Maximum results (default: 10)")
    search_parser.add_argument("--collection", default=None, help="Collection to search")

    # status command
    status_parser = subparsers.add_parser("status", parents=[config_parent], help="Show RAG configuration")
    status_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # clear command
    clear_parser = subparsers.add_parser("clear", parents=[config_parent], help="Remove all records")
    clear_parser.add_argument("--collection", default=None, help="Only clear this collection")
    clear_parser.add_argument("-f", "--force", action="store_true", help="Do not ask for confirmation")

    # reindex command
    reindex_parser = subparsers.add_parser(
        "reindex", parents=[config_parent], help="Clear a collection and index files into it again"
    )
    reindex_parser.add_argument("path", help="Directory or file to index, relative to the project root")
    reindex_parser.add_argument("-p", "--pattern", default="*.md", help="File name globs (default: *.md)")
    reindex_parser.add_argument(
        "-t", "--type", default=DocumentType.GENERAL.value, help="Document type (default: general)"
    )
    reindex_parser.add_argument("--no-recursive", action="store_true", help="Do not descend into subdirectories")
    reindex_parser.add_argument("--collection", default=None, help="Target collection")
    reindex_parser.add_argument("-f", "--force", action="store_true", help="Do not ask for confirmation")

    # serve command
    serve_parser = subparsers.add_parser("serve", parents=[config_parent], help="Start the MCP server")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        project = load_config(args.config_file)

        if args.command == "index":
            index(
                project,
                args.path,
                pattern=args.pattern,
                doc_type=args.type,
                recursive=not args.no_recursive,
                dry_run=args.dry_run,
                collection=args.collection,
                tags=args.tags,
            )
        elif args.command == "search":
            search(
                project,
                args.query,
                doc_type=args.type,
                source_path=args.source_path,
                limit=args.limit,
                collection=args.collection,
            )
        elif args.command == "status":
            status(project, as_json=args.json)
        elif args.command == "clear":
            clear(project, collection=args.collection, force=args.force)
        elif args.command == "reindex":
            reindex(
                project,
                args.path,
                pattern=args.pattern,
                doc_type=args.type,
                recursive=not args.no_recursive,
                collection=args.collection,
                force=args.force,
            )
        elif args.command == "serve":
            serve(project, args.transport)
    except CtxPackError as exc:
        logger.error(f"Error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
