"""Configuration dataclasses for the RAG subsystem.

Two input layouts are accepted under the ``rag`` key:

- legacy: a single ``store`` block, converted to one server and one
  collection both named ``default``
- current: named ``servers`` and ``collections``
"""

from dataclasses import dataclass, field
from typing import Any

from ctxpack.errors import ConfigurationError, NotFoundError

DEFAULT_VECTORIZER_TIMEOUT = 30.0
DEFAULT_STORE_TIMEOUT = 5.0


def _require_int(data: dict, key: str, section: str) -> int:
    value = data.get(key)
    if value is None:
        raise ConfigurationError(f"Missing required setting '{key}' in {section}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Setting '{key}' in {section} must be an integer, got {value!r}") from exc


def _optional_float(data: dict, key: str, default: float) -> float:
    value = data.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Setting '{key}' must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class VectorizerConfig:
    """Embedding platform settings."""

    platform: str = ""
    model: str = ""
    api_key: str = ""
    timeout: float = DEFAULT_VECTORIZER_TIMEOUT

    @classmethod
    def from_dict(cls, data: dict) -> "VectorizerConfig":
        return cls(
            platform=str(data.get("platform", "")),
            model=str(data.get("model", "")),
            api_key=str(data.get("api_key", "") or ""),
            timeout=_optional_float(data, "timeout", DEFAULT_VECTORIZER_TIMEOUT),
        )


@dataclass(frozen=True)
class TransformerConfig:
    """Chunk size and overlap. Both are required; there are no built-in defaults."""

    chunk_size: int = 0
    overlap: int = 0

    @property
    def is_empty(self) -> bool:
        return self.chunk_size == 0

    @classmethod
    def from_dict(cls, data: dict | None, section: str = "rag.transformer") -> "TransformerConfig":
        if not data:
            return EMPTY_TRANSFORMER
        chunk_size = _require_int(data, "chunk_size", section)
        overlap = _require_int(data, "overlap", section)
        if chunk_size <= 0:
            raise ConfigurationError(f"{section}.chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ConfigurationError(
                f"{section}.overlap must be in [0, chunk_size), got {overlap} with chunk_size {chunk_size}"
            )
        return cls(chunk_size=chunk_size, overlap=overlap)


EMPTY_TRANSFORMER = TransformerConfig()


@dataclass(frozen=True)
class ServerConfig:
    """A vector store backend."""

    name: str
    driver: str
    endpoint_url: str = ""
    api_key: str = ""
    embeddings_dimension: int = 0
    embeddings_distance: str = "cosine"
    timeout: float = DEFAULT_STORE_TIMEOUT

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "ServerConfig":
        section = f"rag.servers.{name}"
        if not data.get("driver"):
            raise ConfigurationError(f"Missing required setting 'driver' in {section}")
        return cls(
            name=name,
            driver=str(data["driver"]),
            endpoint_url=str(data.get("endpoint_url", "") or ""),
            api_key=str(data.get("api_key", "") or ""),
            embeddings_dimension=_require_int(data, "embeddings_dimension", section),
            embeddings_distance=str(data.get("embeddings_distance", "cosine")),
            timeout=_optional_float(data, "timeout", DEFAULT_STORE_TIMEOUT),
        )


@dataclass(frozen=True)
class CollectionConfig:
    """A named collection living on one server."""

    name: str
    server: str
    collection: str
    description: str = ""
    embeddings_dimension: int = 0
    transformer: TransformerConfig = EMPTY_TRANSFORMER

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "CollectionConfig":
        section = f"rag.collections.{name}"
        return cls(
            name=name,
            server=str(data.get("server", "default")),
            collection=str(data.get("collection") or name),
            description=str(data.get("description", "") or ""),
            embeddings_dimension=int(data.get("embeddings_dimension") or 0),
            transformer=TransformerConfig.from_dict(data.get("transformer"), f"{section}.transformer"),
        )

    def effective_dimension(self, server: ServerConfig) -> int:
        return self.embeddings_dimension or server.embeddings_dimension

    def effective_transformer(self, default: TransformerConfig) -> TransformerConfig:
        transformer = default if self.transformer.is_empty else self.transformer
        if transformer.is_empty:
            raise ConfigurationError(
                f"No chunk_size/overlap configured for collection '{self.name}'. "
                "Set rag.transformer or rag.collections.<name>.transformer"
            )
        return transformer


@dataclass(frozen=True)
class RagToolConfig:
    """A per-collection MCP tool declared in configuration."""

    OPERATION_SEARCH = "search"
    OPERATION_STORE = "store"

    id: str
    description: str
    collection: str
    name: str = ""
    operations: tuple[str, ...] = (OPERATION_SEARCH, OPERATION_STORE)

    @classmethod
    def from_dict(cls, data: dict) -> "RagToolConfig":
        for key in ("id", "description", "collection"):
            if not data.get(key) or not isinstance(data[key], str):
                raise ConfigurationError(f"RAG tool must have a non-empty '{key}'")

        operations = data.get("operations", [cls.OPERATION_SEARCH, cls.OPERATION_STORE])
        if not isinstance(operations, list) or not operations:
            raise ConfigurationError("RAG tool operations must be a non-empty list")
        valid = (cls.OPERATION_SEARCH, cls.OPERATION_STORE)
        for op in operations:
            if op not in valid:
                raise ConfigurationError(f'Invalid RAG operation "{op}". Valid: {", ".join(valid)}')

        return cls(
            id=data["id"],
            description=data["description"],
            collection=data["collection"],
            name=str(data.get("name") or ""),
            operations=tuple(operations),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def search_tool_id(self) -> str:
        return self.id

    @property
    def store_tool_id(self) -> str:
        return f"{self.id}-store"

    def has(self, operation: str) -> bool:
        return operation in self.operations


@dataclass(frozen=True)
class RagConfig:
    """Root configuration of the RAG subsystem."""

    enabled: bool = False
    servers: dict[str, ServerConfig] = field(default_factory=dict)
    collections: dict[str, CollectionConfig] = field(default_factory=dict)
    vectorizer: VectorizerConfig = VectorizerConfig()
    transformer: TransformerConfig = EMPTY_TRANSFORMER
    tools: tuple[RagToolConfig, ...] = ()
    legacy: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RagConfig":
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigurationError("The 'rag' section must be a mapping")

        if "store" in data:
            config = cls._from_legacy(data)
        else:
            config = cls._from_current(data)

        if config.enabled and config.collections:
            config._validate()
        return config

    @classmethod
    def _from_legacy(cls, data: dict) -> "RagConfig":
        store = data.get("store") or {}
        server = ServerConfig.from_dict("default", store)
        collection = CollectionConfig(
            name="default",
            server="default",
            collection=str(store.get("collection") or "default"),
        )
        return cls(
            enabled=bool(data.get("enabled", False)),
            servers={"default": server},
            collections={"default": collection},
            vectorizer=VectorizerConfig.from_dict(data.get("vectorizer") or {}),
            transformer=TransformerConfig.from_dict(data.get("transformer")),
            tools=tuple(RagToolConfig.from_dict(item) for item in data.get("tools") or []),
            legacy=True,
        )

    @classmethod
    def _from_current(cls, data: dict) -> "RagConfig":
        servers = {
            str(name): ServerConfig.from_dict(str(name), server or {})
            for name, server in (data.get("servers") or {}).items()
        }
        collections = {
            str(name): CollectionConfig.from_dict(str(name), collection or {})
            for name, collection in (data.get("collections") or {}).items()
        }

        enabled = bool(data.get("enabled", False)) or bool(servers or collections)

        return cls(
            enabled=enabled,
            servers=servers,
            collections=collections,
            vectorizer=VectorizerConfig.from_dict(data.get("vectorizer") or {}),
            transformer=TransformerConfig.from_dict(data.get("transformer")),
            tools=tuple(RagToolConfig.from_dict(item) for item in data.get("tools") or []),
        )

    def _validate(self) -> None:
        for collection in self.collections.values():
            if collection.server not in self.servers:
                raise ConfigurationError(
                    f"Collection '{collection.name}' references unknown server '{collection.server}'"
                )
            collection.effective_transformer(self.transformer)
        for tool in self.tools:
            if tool.collection not in self.collections:
                raise ConfigurationError(
                    f"RAG tool '{tool.id}' references unknown collection '{tool.collection}'"
                )

    @property
    def default_collection(self) -> str:
        if not self.collections:
            raise NotFoundError("No RAG collections configured")
        return next(iter(self.collections))

    def get_server(self, name: str) -> ServerConfig:
        try:
            return self.servers[name]
        except KeyError:
            raise NotFoundError(f'Server "{name}" not found') from None

    def get_collection(self, name: str) -> CollectionConfig:
        try:
            return self.collections[name]
        except KeyError:
            raise NotFoundError(f'Collection "{name}" not found') from None

    def server_for(self, collection: str) -> ServerConfig:
        return self.get_server(self.get_collection(collection).server)

    def to_dict(self) -> dict[str, Any]:
        """Serializable summary used by the status command and manage tool."""
        return {
            "enabled": self.enabled,
            "format": "legacy" if self.legacy else "multi-collection",
            "vectorizer": {
                "platform": self.vectorizer.platform,
                "model": self.vectorizer.model,
            },
            "transformer": {
                "chunk_size": self.transformer.chunk_size,
                "overlap": self.transformer.overlap,
            },
            "servers": {
                name: {
                    "driver": server.driver,
                    "endpoint_url": server.endpoint_url,
                    "embeddings_dimension": server.embeddings_dimension,
                    "embeddings_distance": server.embeddings_distance,
                }
                for name, server in self.servers.items()
            },
            "collections": {
                name: {
                    "server": coll.server,
                    "collection": coll.collection,
                    "description": coll.description,
                    "embeddings_dimension": coll.embeddings_dimension or None,
                    "transformer": None
                    if coll.transformer.is_empty
                    else {"chunk_size": coll.transformer.chunk_size, "overlap": coll.transformer.overlap},
                }
                for name, coll in self.collections.items()
            },
        }
