"""Text and regex search across the files of a project."""

import logging
import operator
import os
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Optional

from ctxpack.config import Directories, ExcludeRegistry
from ctxpack.errors import NotFoundError, ValidationError
from ctxpack.utils.binary import detect_binary

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB per file

# Never descended into
IGNORED_DIRECTORIES = {
    "vendor",
    "node_modules",
    ".git",
    ".idea",
    "var",
    "cache",
    "__pycache__",
    ".venv",
    "venv",
}

_DELIMITED = re.compile(r"^/(?P<body>.*)/(?P<flags>[imsx]*)$", re.DOTALL)
_FLAG_MAP = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}

_SIZE_EXPRESSION = re.compile(
    r"^\s*(?P<op><=|>=|==|<|>)?\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>[kmg]i?)?\s*$",
    re.IGNORECASE,
)
_SIZE_UNITS = {
    "": 1,
    "k": 1000,
    "ki": 1024,
    "m": 1000**2,
    "mi": 1024**2,
    "g": 1000**3,
    "gi": 1024**3,
}
_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
}


def parse_size_filter(expression: str) -> Callable[[int], bool]:
    """Parse expressions like ``"< 1M"`` or ``">= 10k, < 2Mi"`` into a predicate.

    Raises:
        ValidationError: If any part of the expression is malformed
    """
    checks = []
    for part in expression.split(","):
        if not part.strip():
            continue
        match = _SIZE_EXPRESSION.match(part)
        if match is None:
            raise ValidationError(f"Invalid size filter: '{part.strip()}'")
        compare = _OPERATORS[match["op"] or "=="]
        limit = float(match["value"]) * _SIZE_UNITS[(match["unit"] or "").lower()]
        checks.append((compare, limit))

    return lambda size: all(compare(size, limit) for compare, limit in checks)


@dataclass(frozen=True)
class FileSearchRequest:
    """Options for a file content search."""

    query: str
    path: str = ""
    pattern: Optional[str] = None
    depth: int = 10
    context_lines: int = 2
    case_sensitive: bool = True
    regex: bool = False
    max_matches_per_file: int = 50
    max_total_matches: int = 200
    size: Optional[str] = None

    def validate(self) -> None:
        if not self.query or not self.query.strip():
            raise ValidationError("Search query cannot be empty")
        if not 0 <= self.depth <= 50:
            raise ValidationError(f"depth must be between 0 and 50, got {self.depth}")
        if not 0 <= self.context_lines <= 10:
            raise ValidationError(f"contextLines must be between 0 and 10, got {self.context_lines}")
        if self.max_matches_per_file < 0 or self.max_total_matches < 0:
            raise ValidationError("Match limits must not be negative")

    def build_pattern(self) -> re.Pattern:
        """Compile the query into one pattern for both literal and regex mode.

        Raises:
            ValidationError: If the regex does not compile
        """
        flags = 0
        if self.regex:
            source = self.query
            delimited = _DELIMITED.match(source)
            if delimited:
                source = delimited["body"]
                for flag in delimited["flags"]:
                    flags |= _FLAG_MAP[flag]
        else:
            source = re.escape(self.query)

        if not self.case_sensitive:
            flags |= re.IGNORECASE

        try:
            return re.compile(source, flags)
        except re.error as exc:
            raise ValidationError(f"Invalid regex pattern: {exc}") from exc

    @property
    def name_patterns(self) -> list[str]:
        if not self.pattern:
            return []
        return [item.strip() for item in self.pattern.split(",") if item.strip()]


@dataclass(frozen=True)
class SearchMatch:
    """A matching line with its surrounding context."""

    file: str
    line_number: int
    line: str
    context_before: list[str] = field(default_factory=list)
    context_after: list[str] = field(default_factory=list)

    @property
    def context_start_line(self) -> int:
        return self.line_number - len(self.context_before)

    def format(self, width: int = 0) -> str:
        width = width or len(str(self.line_number + len(self.context_after)))
        rows = []
        number = self.context_start_line
        for text in self.context_before:
            rows.append(f"  {number:>{width}} | {text}")
            number += 1
        rows.append(f"> {self.line_number:>{width}} | {self.line}")
        number += 1
        for text in self.context_after:
            rows.append(f"  {number:>{width}} | {text}")
            number += 1
        return "\n".join(rows)


def format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    if size >= 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size} B"


def format_relative_time(timestamp: float, now: Optional[float] = None) -> str:
    diff = (now if now is not None else time.time()) - timestamp
    if diff < 60:
        return "just now"
    if diff < 3600:
        return f"{int(diff // 60)}m ago"
    if diff < 86400:
        return f"{int(diff // 3600)}h ago"
    if diff < 86400 * 30:
        return f"{int(diff // 86400)}d ago"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


@dataclass(frozen=True)
class FileSearchResult:
    """All matches found in a single file."""

    file: str
    matches: list[SearchMatch]
    truncated: bool = False
    file_size: int = 0
    last_modified: Optional[float] = None

    @property
    def match_count(self) -> int:
        return len(self.matches)

    def format(self) -> str:
        if not self.matches:
            return ""

        width = max(len(str(m.line_number + len(m.context_after))) for m in self.matches)
        meta = []
        if self.file_size > 0:
            meta.append(format_size(self.file_size))
        if self.last_modified is not None:
            meta.append(f"modified {format_relative_time(self.last_modified)}")
        header = f"=== {self.file} [{', '.join(meta)}] ===" if meta else f"=== {self.file} ==="

        parts = [header]
        for match in self.matches:
            parts.extend(["", f"[Line {match.line_number}]", match.format(width)])
        if self.truncated:
            parts.extend(["", "... (results truncated)"])
        return "\n".join(parts)


@dataclass(frozen=True)
class FileSearchResponse:
    """Outcome of a search across many files."""

    results: list[FileSearchResult]
    files_scanned: int = 0
    files_skipped: int = 0
    limit_reached: bool = False

    @property
    def total_matches(self) -> int:
        return sum(result.match_count for result in self.results)

    def format(self, request: FileSearchRequest) -> str:
        total = self.total_matches
        if total == 0:
            kind = "pattern " if request.regex else ""
            return f"No matches found for {kind}'{request.query}' in {request.path or 'project root'}"

        files = len(self.results)
        output = [
            f"Found {total} match{'' if total == 1 else 'es'} in {files} file{'' if files == 1 else 's'}"
        ]
        if self.limit_reached or any(result.truncated for result in self.results):
            output.append("(results may be truncated due to limits)")
        output.append("")
        for result in self.results:
            output.append(result.format())
            output.append("")
        return "\n".join(output).rstrip() + "\n"


class FileSearchHandler:
    """Searches file contents under the project root."""

    def __init__(
        self,
        dirs: Directories,
        exclude_registry: Optional[ExcludeRegistry] = None,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.dirs = dirs
        self.exclude_registry = exclude_registry or ExcludeRegistry()
        self.max_file_size = max_file_size

    def search(self, request: FileSearchRequest) -> FileSearchResponse:
        """Execute a search.

        Raises:
            ValidationError: If the request is invalid
            NotFoundError: If the search directory does not exist
            FileSystemError: If the path escapes the project root
        """
        request.validate()
        pattern = request.build_pattern()
        size_filter = parse_size_filter(request.size) if request.size else None

        search_root = self.dirs.resolve(request.path) if request.path else self.dirs.root
        if not search_root.is_dir():
            raise NotFoundError(f"Directory '{request.path}' does not exist")

        max_total = request.max_total_matches or None
        results: list[FileSearchResult] = []
        total = 0
        scanned = 0
        skipped = 0
        limit_reached = False

        for path in self._candidates(search_root, request, size_filter):
            if max_total is not None and total >= max_total:
                limit_reached = True
                break

            remaining = None if max_total is None else max_total - total
            result = self._search_file(path, pattern, request, remaining)
            if result is None:
                skipped += 1
                continue

            scanned += 1
            if result.matches:
                results.append(result)
                total += result.match_count

        logger.info(f"file-search '{request.query}': {total} matches in {len(results)} files")
        return FileSearchResponse(
            results=results,
            files_scanned=scanned,
            files_skipped=skipped,
            limit_reached=limit_reached,
        )

    def _candidates(
        self,
        search_root: Path,
        request: FileSearchRequest,
        size_filter: Optional[Callable[[int], bool]],
    ) -> list[Path]:
        """Collect matching files, sorted by relative path."""
        names = request.name_patterns
        found: list[tuple[str, Path]] = []

        for current, dirnames, filenames in os.walk(search_root):
            current_path = Path(current)
            depth = len(current_path.relative_to(search_root).parts)
            if depth >= request.depth:
                dirnames[:] = []
            else:
                dirnames[:] = [
                    d
                    for d in dirnames
                    if d not in IGNORED_DIRECTORIES
                    and not self.exclude_registry.should_exclude(self.dirs.relative(current_path / d))
                ]

            for filename in filenames:
                if names and not any(fnmatchcase(filename, name) for name in names):
                    continue
                full_path = current_path / filename
                relative = self.dirs.relative(full_path)
                if self.exclude_registry.should_exclude(relative):
                    continue
                if size_filter is not None:
                    try:
                        if not size_filter(full_path.stat().st_size):
                            continue
                    except OSError:
                        continue
                found.append((relative, full_path))

        found.sort(key=lambda item: item[0])
        return [path for _, path in found]

    def _search_file(
        self,
        path: Path,
        pattern: re.Pattern,
        request: FileSearchRequest,
        remaining: Optional[int],
    ) -> Optional[FileSearchResult]:
        """Search one file; None means the file was skipped."""
        relative = self.dirs.relative(path)
        try:
            stat = path.stat()
            if stat.st_size > self.max_file_size:
                logger.debug(f"Skipping large file {relative}")
                return None
            raw = path.read_bytes()
        except OSError as exc:
            logger.debug(f"Skipping unreadable file {relative}: {exc}")
            return None

        if detect_binary(path, raw):
            return None

        text = raw.decode("utf-8", errors="replace").replace("\r\n", "\n").replace("\r", "\n")
        lines = text.split("\n")
        if text.endswith("\n"):
            lines.pop()

        limits = [n for n in (request.max_matches_per_file or None, remaining) if n is not None]
        cap = min(limits) if limits else None

        matches: list[SearchMatch] = []
        truncated = False
        for index, line in enumerate(lines):
            if not pattern.search(line):
                continue
            if cap is not None and len(matches) >= cap:
                truncated = True
                break
            start = max(0, index - request.context_lines)
            end = min(len(lines), index + request.context_lines + 1)
            matches.append(
                SearchMatch(
                    file=relative,
                    line_number=index + 1,
                    line=line,
                    context_before=lines[start:index],
                    context_after=lines[index + 1 : end],
                )
            )

        return FileSearchResult(
            file=relative,
            matches=matches,
            truncated=truncated,
            file_size=stat.st_size,
            last_modified=stat.st_mtime,
        )
