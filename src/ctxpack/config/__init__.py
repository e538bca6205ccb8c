"""Project configuration for ctxpack."""

from ctxpack.config.exclude import ExcludeRegistry
from ctxpack.config.loader import Directories, ProjectConfig, load_config, parse_config
from ctxpack.config.rag_config import (
    CollectionConfig,
    RagConfig,
    RagToolConfig,
    ServerConfig,
    TransformerConfig,
    VectorizerConfig,
)

__all__ = [
    "CollectionConfig",
    "Directories",
    "ExcludeRegistry",
    "ProjectConfig",
    "RagConfig",
    "RagToolConfig",
    "ServerConfig",
    "TransformerConfig",
    "VectorizerConfig",
    "load_config",
    "parse_config",
]
