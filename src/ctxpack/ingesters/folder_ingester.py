"""Ingester for local folders."""

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, Optional

from ctxpack.config import ExcludeRegistry
from ctxpack.errors import NotFoundError
from ctxpack.models import Document, DocumentType
from ctxpack.utils.binary import detect_binary

SKIP_DIRECTORIES = {
    "__pycache__",
    "node_modules",
    "vendor",
    "venv",
    "env",
    "dist",
    "build",
}


class FolderIngester:
    """Turns the text files of a folder (or a single file) into documents."""

    def __init__(
        self,
        pattern: str = "*.md",
        recursive: bool = True,
        exclude_registry: Optional[ExcludeRegistry] = None,
    ):
        self.patterns = [p.strip() for p in pattern.split(",") if p.strip()] or ["*"]
        self.recursive = recursive
        self.exclude_registry = exclude_registry or ExcludeRegistry()

    def files(self, source: Path, root: Optional[Path] = None) -> list[Path]:
        """List the files that would be ingested, sorted by path.

        Raises:
            NotFoundError: If the source does not exist
        """
        if source.is_file():
            return [source]
        if not source.is_dir():
            raise NotFoundError(f"Path '{source}' does not exist")

        root = root or source
        found = []
        for current, dirnames, filenames in os.walk(source):
            if not self.recursive:
                dirnames[:] = []
            dirnames[:] = [d for d in dirnames if not d.startswith(".") and d not in SKIP_DIRECTORIES]

            for filename in filenames:
                full_path = Path(current) / filename
                if self._should_skip(full_path, root):
                    continue
                found.append(full_path)

        return sorted(found)

    def ingest(
        self,
        source: Path,
        doc_type: DocumentType = DocumentType.GENERAL,
        root: Optional[Path] = None,
        tags: tuple[str, ...] = (),
    ) -> Iterator[Document]:
        """Yield a document per text file.

        Args:
            source: Folder or file to read
            doc_type: Type given to every document
            root: Directory that source paths are made relative to
            tags: Tags given to every document

        Yields:
            Documents with a root-relative source path; binary and
            empty files are skipped
        """
        root = root or (source if source.is_dir() else source.parent)
        for full_path in self.files(source, root):
            try:
                raw_content = full_path.read_bytes()
            except OSError:
                continue

            if detect_binary(full_path, raw_content):
                continue

            content = raw_content.decode("utf-8", errors="replace")
            if not content.strip():
                continue

            yield Document(
                content=content,
                type=doc_type,
                source_path=_relative(full_path, root),
                tags=tags,
            )

    def _should_skip(self, path: Path, root: Path) -> bool:
        if path.name.startswith("."):
            return True
        if not any(fnmatchcase(path.name, pattern) for pattern in self.patterns):
            return True
        return self.exclude_registry.should_exclude(_relative(path, root))


def _relative(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.name
