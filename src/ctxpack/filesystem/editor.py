"""Line-based deletion and insertion of file content.

Line numbers are 1-based. Both operations keep the file's line-ending
convention and its trailing line ending.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from ctxpack.config import Directories, ExcludeRegistry
from ctxpack.errors import (
    ExclusionError,
    FileSystemError,
    NotFoundError,
    ValidationError,
)
from ctxpack.filesystem.line_ending import LineEnding, LineEndingNormalizer

logger = logging.getLogger(__name__)

END_OF_FILE = -1


class OutOfRangePolicy(str, Enum):
    """What to do with deletion line numbers outside the file."""

    SKIP = "skip"
    STRICT = "strict"


class Position(str, Enum):
    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True)
class LineRange:
    """A single line, or an inclusive range when ``to`` is set."""

    line: int
    to: Optional[int] = None

    @classmethod
    def parse(cls, value: Union[int, dict, "LineRange"]) -> "LineRange":
        if isinstance(value, LineRange):
            return value
        if isinstance(value, bool):
            raise ValidationError(f"Invalid line specification: {value!r}")
        if isinstance(value, int):
            return cls(line=value)
        if isinstance(value, dict):
            line = value.get("line", value.get("from"))
            to = value.get("to")
            try:
                return cls(line=int(line), to=None if to is None else int(to))
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid line specification: {value!r}") from None
        raise ValidationError(f"Invalid line specification: {value!r}")

    def numbers(self) -> range:
        if self.to is None:
            return range(self.line, self.line + 1)
        if self.to < self.line:
            raise ValidationError(f"Invalid range {self.line}-{self.to}: 'to' is before 'line'")
        return range(self.line, self.to + 1)


@dataclass(frozen=True)
class Insertion:
    """Content to place relative to an anchor line (-1 = end of file)."""

    line: int
    content: str

    @classmethod
    def parse(cls, value: Union[dict, "Insertion"]) -> "Insertion":
        if isinstance(value, Insertion):
            return value
        if not isinstance(value, dict) or "line" not in value or "content" not in value:
            raise ValidationError('Each insertion must have "line" and "content" fields.')
        try:
            line = int(value["line"])
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid insertion line: {value['line']!r}") from None
        return cls(line=line, content=str(value["content"]))


def normalize_line_numbers(entries: Iterable[Union[int, dict, LineRange]]) -> list[int]:
    """Expand line entries into a sorted, de-duplicated list of line numbers."""
    numbers: set[int] = set()
    for value in entries:
        numbers.update(LineRange.parse(value).numbers())
    return sorted(numbers)


@dataclass(frozen=True)
class FileEditResult:
    """Outcome of a delete or insert operation."""

    success: bool
    message: str = ""
    error: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **details: Any) -> "FileEditResult":
        return cls(success=True, message=message, details=details)

    @classmethod
    def failure(cls, error: str) -> "FileEditResult":
        return cls(success=False, error=error)

    @property
    def text(self) -> str:
        return self.message if self.success else f"Error: {self.error}"


class _LineFileHandler:
    """Shared path checks and read/write for line-based edits."""

    def __init__(
        self,
        dirs: Directories,
        exclude_registry: Optional[ExcludeRegistry] = None,
        normalizer: Optional[LineEndingNormalizer] = None,
    ):
        self.dirs = dirs
        self.exclude_registry = exclude_registry or ExcludeRegistry()
        self.normalizer = normalizer or LineEndingNormalizer()

    def _resolve(self, path: str) -> Path:
        if self.exclude_registry.should_exclude(path):
            raise ExclusionError(path)
        full_path = self.dirs.resolve(path)
        # Match again on the resolved form: "src/../secrets/x" is "secrets/x"
        if full_path != self.dirs.root and self.exclude_registry.should_exclude(self.dirs.relative(full_path)):
            raise ExclusionError(path)
        if not full_path.exists():
            raise NotFoundError(f"File '{path}' does not exist")
        if full_path.is_dir():
            raise ValidationError(f"'{path}' is a directory, not a file")
        return full_path

    def _read(self, full_path: Path) -> tuple[list[str], LineEnding, bool]:
        try:
            # newline="" keeps \r\n and \r untouched
            with full_path.open("r", encoding="utf-8", newline="") as handle:
                content = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise FileSystemError(f"Failed to read '{full_path.name}': {exc}") from exc

        ending = self.normalizer.detect(content)
        lines, trailing = self.normalizer.split(content, ending)
        return lines, ending, trailing

    def _write(self, full_path: Path, lines: list[str], ending: LineEnding, trailing: bool) -> None:
        try:
            with full_path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(self.normalizer.join(lines, ending, trailing))
        except OSError as exc:
            raise FileSystemError(f"Failed to write '{full_path.name}': {exc}") from exc


class FileDeleteContentHandler(_LineFileHandler):
    """Deletes single lines and inclusive line ranges from a file."""

    def __init__(
        self,
        dirs: Directories,
        exclude_registry: Optional[ExcludeRegistry] = None,
        normalizer: Optional[LineEndingNormalizer] = None,
        out_of_range: OutOfRangePolicy = OutOfRangePolicy.SKIP,
    ):
        super().__init__(dirs, exclude_registry, normalizer)
        self.out_of_range = OutOfRangePolicy(out_of_range)

    def handle(self, path: str, lines: Iterable[Union[int, dict, LineRange]]) -> FileEditResult:
        try:
            return self._delete(path, list(lines))
        except Exception as exc:
            logger.error(f"Deleting lines from {path} failed: {exc}")
            return FileEditResult.failure(str(exc))

    def _delete(self, path: str, entries: list) -> FileEditResult:
        full_path = self._resolve(path)
        requested = normalize_line_numbers(entries)
        if not requested:
            raise ValidationError(
                'No valid line numbers provided. Specify line numbers as integers or ranges {"line": N, "to": M}.'
            )

        lines, ending, trailing = self._read(full_path)
        total = len(lines)

        valid = [n for n in requested if 1 <= n <= total]
        ignored = [n for n in requested if not 1 <= n <= total]
        if ignored and self.out_of_range is OutOfRangePolicy.STRICT:
            raise ValidationError(
                f"Invalid line number {ignored[0]}. File has {total} lines. Valid range: 1-{total}."
            )

        doomed = set(valid)
        deleted = [{"line": n, "content": lines[n - 1]} for n in valid]
        kept = [line for number, line in enumerate(lines, 1) if number not in doomed]

        if valid:
            self._write(full_path, kept, ending, trailing and bool(kept))

        logger.info(f"Deleted {len(valid)} lines from {path} ({ending.name})")
        noun = "line" if len(valid) == 1 else "lines"
        message = f"Successfully deleted {len(valid)} {noun} from file '{path}'."
        if ignored:
            message += f" Ignored out-of-range line numbers: {', '.join(map(str, ignored))}."
        return FileEditResult.ok(
            message,
            deleted_lines=len(valid),
            deleted_content=deleted,
            ignored_lines=ignored,
        )


class FileInsertContentHandler(_LineFileHandler):
    """Inserts content before or after anchor lines."""

    def handle(
        self,
        path: str,
        insertions: Iterable[Union[dict, Insertion]],
        position: str = Position.AFTER.value,
    ) -> FileEditResult:
        try:
            return self._insert(path, list(insertions), position)
        except Exception as exc:
            logger.error(f"Inserting content into {path} failed: {exc}")
            return FileEditResult.failure(str(exc))

    def _insert(self, path: str, entries: list, position: str) -> FileEditResult:
        full_path = self._resolve(path)
        try:
            where = Position(position)
        except ValueError:
            raise ValidationError("Invalid position parameter. Must be 'before' or 'after'.") from None

        items = [Insertion.parse(value) for value in entries]
        if not items:
            raise ValidationError('No valid insertions provided. Each insertion must have "line" and "content" fields.')

        lines, ending, trailing = self._read(full_path)
        total = len(lines)

        for item in items:
            if item.line != END_OF_FILE and not 1 <= item.line <= total:
                raise ValidationError(
                    f"Invalid line number {item.line}. File has {total} lines. "
                    f"Use 1-{total} or -1 for end of file."
                )

        # Stable sort: insertions sharing an anchor keep their requested order
        ordered = sorted(items, key=lambda item: total + 1 if item.line == END_OF_FILE else item.line)

        offset = 0
        inserted = []
        for item in ordered:
            anchor = total if item.line == END_OF_FILE else item.line
            actual = anchor + offset
            index = actual if where is Position.AFTER else actual - 1
            index = max(0, min(index, len(lines)))

            content = self.normalizer.normalize(item.content, ending)
            if content.endswith(ending.value):
                content = content[: -len(ending.value)]
            new_lines = content.split(ending.value)

            lines[index:index] = new_lines
            offset += len(new_lines)
            inserted.append({"line": item.line, "lines_inserted": len(new_lines)})

        self._write(full_path, lines, ending, trailing)

        count = sum(entry["lines_inserted"] for entry in inserted)
        logger.info(f"Inserted {count} lines at {len(items)} locations in {path} ({ending.name})")
        noun = "location" if len(items) == 1 else "locations"
        return FileEditResult.ok(
            f"Successfully inserted {count} line(s) across {len(items)} {noun} in file '{path}'.",
            total_lines_inserted=count,
            total_insertions=len(items),
            insertions=inserted,
        )
