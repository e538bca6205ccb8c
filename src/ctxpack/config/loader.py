"""Loading of project configuration from context.yaml."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from ctxpack.config.exclude import ExcludeRegistry
from ctxpack.config.rag_config import RagConfig
from ctxpack.errors import ConfigurationError, FileSystemError, NotFoundError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("context.yaml", "context.yml")


@dataclass(frozen=True)
class Directories:
    """Resolves paths relative to the project root."""

    root: Path

    @classmethod
    def determine(cls, config_path: Optional[str | Path] = None) -> "Directories":
        """Project root is the config file's directory, else the working directory."""
        if config_path is not None:
            path = Path(config_path).expanduser().resolve()
            return cls(root=path if path.is_dir() else path.parent)
        return cls(root=Path.cwd().resolve())

    def resolve(self, relative: str) -> Path:
        """Resolve a project-relative path, refusing anything outside the root.

        Raises:
            FileSystemError: If the path escapes the project root
        """
        target = (self.root / relative.lstrip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            raise FileSystemError(f"Path '{relative}' is outside the project root")
        return target

    def relative(self, path: Path) -> str:
        """Project-relative POSIX form of a path under the root."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            pass
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            raise FileSystemError(f"Path '{path}' is outside the project root") from None


@dataclass(frozen=True)
class ProjectConfig:
    """Everything read from a project's configuration file."""

    dirs: Directories
    rag: RagConfig = field(default_factory=RagConfig)
    exclude: ExcludeRegistry = field(default_factory=ExcludeRegistry)
    source: Optional[Path] = None


def expand_env(value: Any) -> Any:
    """Expand ${VAR} references in every string of a parsed YAML tree."""
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    return value


def find_config_file(root: Path) -> Optional[Path]:
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def parse_config(data: dict[str, Any] | None, dirs: Directories, source: Optional[Path] = None) -> ProjectConfig:
    """Build a ProjectConfig from an already-parsed mapping."""
    data = expand_env(data or {})
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    exclude_section = data.get("exclude") or {}
    if isinstance(exclude_section, list):
        patterns = exclude_section
    else:
        patterns = exclude_section.get("patterns") or []

    return ProjectConfig(
        dirs=dirs,
        rag=RagConfig.from_dict(data.get("rag")),
        exclude=ExcludeRegistry([str(p) for p in patterns]),
        source=source,
    )


def load_config(config_path: Optional[str | Path] = None) -> ProjectConfig:
    """Load project configuration.

    Args:
        config_path: Explicit config file or project directory. When omitted,
            context.yaml is looked up in the working directory.

    Returns:
        Parsed configuration; a missing default file yields RAG disabled and
        no exclusions.
    """
    dirs = Directories.determine(config_path)

    if config_path is not None and Path(config_path).expanduser().is_file():
        source: Optional[Path] = Path(config_path).expanduser().resolve()
    else:
        source = find_config_file(dirs.root)
        if source is None and config_path is not None:
            raise NotFoundError(f"Configuration file not found: {config_path}")

    if source is None:
        logger.debug(f"No configuration file in {dirs.root}, using defaults")
        return ProjectConfig(dirs=dirs)

    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {source}: {exc}") from exc
    except OSError as exc:
        raise FileSystemError(f"Failed to read {source}: {exc}") from exc

    logger.debug(f"Loaded configuration from {source}")
    return parse_config(data, dirs, source)
