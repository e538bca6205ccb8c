"""Vector store drivers.

Drivers are looked up by the name used in ``rag.servers.<name>.driver``.
"""

from pathlib import Path
from typing import Callable

from ctxpack.config import ServerConfig
from ctxpack.errors import ConfigurationError
from ctxpack.protocols import VectorStore
from ctxpack.storage.memory import InMemoryVectorStore
from ctxpack.storage.store import SQLiteVectorStore

DriverBuilder = Callable[[ServerConfig, int, Path], VectorStore]

DEFAULT_SQLITE_PATH = ".ctxpack/rag.db"

# Registry of available store drivers
_DRIVERS: dict[str, DriverBuilder] = {}


def register_driver(name: str, builder: DriverBuilder) -> None:
    """Register a store driver under a config name.

    Args:
        name: Value of the server's driver setting
        builder: Callable taking the server config, the embedding
            dimension and the project root, returning a VectorStore
    """
    _DRIVERS[name.lower()] = builder


def available_drivers() -> list[str]:
    return sorted(_DRIVERS)


def create_store(config: ServerConfig, dimension: int, root: Path) -> VectorStore:
    """Build the vector store for a configured server.

    Raises:
        ConfigurationError: If the driver is unknown
    """
    builder = _DRIVERS.get(config.driver.lower())
    if builder is None:
        raise ConfigurationError(
            f"Unknown RAG store driver: '{config.driver}'. "
            f"Available: {', '.join(available_drivers())}"
        )
    return builder(config, dimension, root)


def _build_sqlite(config: ServerConfig, dimension: int, root: Path) -> VectorStore:
    path = Path(config.endpoint_url or DEFAULT_SQLITE_PATH).expanduser()
    if not path.is_absolute():
        path = root / path
    return SQLiteVectorStore(path, dimension=dimension, timeout=config.timeout)


def _build_memory(config: ServerConfig, dimension: int, root: Path) -> VectorStore:
    return InMemoryVectorStore(dimension=dimension)


register_driver("sqlite", _build_sqlite)
register_driver("file", _build_sqlite)
register_driver("memory", _build_memory)
register_driver("in_memory", _build_memory)

__all__ = [
    "InMemoryVectorStore",
    "SQLiteVectorStore",
    "available_drivers",
    "create_store",
    "register_driver",
]
