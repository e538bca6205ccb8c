"""Protocol for embedding platforms."""

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding platforms (the vectorizer).

    Local models (sentence-transformers) and remote APIs (OpenAI) both
    satisfy it. Remote implementations raise NetworkError on failure.
    """

    @property
    def dimension(self) -> int:
        """Return the embedding dimension."""
        ...

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        ...

    def embed(self, texts: list[str]) -> np.ndarray:
        """Generate embeddings for a batch of texts.

        Returns: numpy array of shape (len(texts), dimension)
        """
        ...
