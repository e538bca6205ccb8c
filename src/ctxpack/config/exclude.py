"""Registry of path patterns excluded by project configuration."""

import logging
from fnmatch import fnmatchcase
from pathlib import PurePosixPath

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Normalize a project-relative path for pattern matching."""
    normalized = path.replace("\\", "/").strip()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.strip("/")


class ExcludeRegistry:
    """Glob patterns for paths tools must never touch.

    A pattern excludes a path when it matches the whole relative path, the
    file name, or any parent directory of the path.
    """

    def __init__(self, patterns: list[str] | None = None):
        self._patterns: list[str] = []
        for pattern in patterns or []:
            self.add(pattern)

    def add(self, pattern: str) -> None:
        pattern = normalize_path(pattern)
        if pattern and pattern not in self._patterns:
            self._patterns.append(pattern)

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def should_exclude(self, path: str) -> bool:
        normalized = normalize_path(path)
        if not normalized:
            return False

        candidate = PurePosixPath(normalized)
        # The path itself plus each of its parent directories
        prefixes = [str(candidate)] + [str(parent) for parent in candidate.parents if str(parent) != "."]

        for pattern in self._patterns:
            if fnmatchcase(candidate.name, pattern):
                logger.debug(f"Excluded {normalized} (pattern {pattern})")
                return True
            if any(fnmatchcase(prefix, pattern) for prefix in prefixes):
                logger.debug(f"Excluded {normalized} (pattern {pattern})")
                return True

        return False

    def __len__(self) -> int:
        return len(self._patterns)
