"""Embedding platforms (vectorizers) for vector generation.

Platforms are looked up by the name used in ``rag.vectorizer.platform``.
Builders import their SDK lazily so an unused platform's dependency is
never loaded.
"""

from typing import Callable

from ctxpack.config import VectorizerConfig
from ctxpack.errors import ConfigurationError
from ctxpack.protocols import EmbeddingProvider

PlatformBuilder = Callable[[VectorizerConfig, int], EmbeddingProvider]

# Registry of available platforms
_PLATFORMS: dict[str, PlatformBuilder] = {}


def register_platform(name: str, builder: PlatformBuilder) -> None:
    """Register an embedding platform under a config name.

    Args:
        name: Value of rag.vectorizer.platform selecting this platform
        builder: Callable taking the vectorizer config and the expected
            embedding dimension, returning an EmbeddingProvider
    """
    _PLATFORMS[name.lower()] = builder


def available_platforms() -> list[str]:
    return sorted(_PLATFORMS)


def create_embedder(config: VectorizerConfig, dimension: int) -> EmbeddingProvider:
    """Build the embedding provider selected by configuration.

    Raises:
        ConfigurationError: If the platform is unknown or cannot be initialized
    """
    builder = _PLATFORMS.get(config.platform.lower())
    if builder is None:
        raise ConfigurationError(
            f"Unknown vectorizer platform: '{config.platform}'. "
            f"Available: {', '.join(available_platforms())}"
        )
    return builder(config, dimension)


def _build_sentence_transformer(config: VectorizerConfig, dimension: int) -> EmbeddingProvider:
    from ctxpack.embedders.sentence_transformer import SentenceTransformerEmbedder

    return SentenceTransformerEmbedder(config.model or None)


def _build_openai(config: VectorizerConfig, dimension: int) -> EmbeddingProvider:
    import openai

    from ctxpack.embedders.openai_embedder import OpenAIEmbedder

    try:
        return OpenAIEmbedder(
            model=config.model or None,
            api_key=config.api_key or None,
            timeout=config.timeout,
            dimension=dimension or None,
        )
    except openai.OpenAIError as exc:
        raise ConfigurationError(f"Cannot initialize OpenAI vectorizer: {exc}") from exc


register_platform("sentence-transformers", _build_sentence_transformer)
register_platform("local", _build_sentence_transformer)
register_platform("openai", _build_openai)

__all__ = ["available_platforms", "create_embedder", "register_platform"]
