"""Local embedding platform backed by sentence-transformers."""

import logging
from typing import Optional

import numpy as np
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """Runs a sentence-transformers model in-process.

    Uses all-MiniLM-L6-v2 by default. The model is loaded on first use,
    so building the provider (e.g. for ``ctxpack status``) costs nothing.
    """

    DEFAULT_MODEL = "all-MiniLM-L6-v2"

    def __init__(self, model_name: Optional[str] = None, device: Optional[str] = None):
        """Initialize the embedder.

        Args:
            model_name: Name of the sentence-transformers model to use.
                       Defaults to all-MiniLM-L6-v2.
            device: Torch device such as "cpu" or "cuda". Defaults to the
                    library's own choice.
        """
        self._model_name = model_name or self.DEFAULT_MODEL
        self._device = device
        self._model: Optional[SentenceTransformer] = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the model on first access."""
        if self._model is None:
            logger.info(f"Loading embedding model {self._model_name}")
            self._model = SentenceTransformer(self._model_name, device=self._device)
        return self._model

    @property
    def dimension(self) -> int:
        """Return the embedding dimension."""
        return int(self.model.get_sentence_embedding_dimension())

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        return self._model_name

    def embed(self, texts: list[str]) -> np.ndarray:
        """Generate L2-normalized embeddings for a batch of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            float32 array of shape (len(texts), embedding_dim)
        """
        if not texts:
            return np.empty((0, self.dimension), dtype=np.float32)

        vectors = self.model.encode(
            texts,
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        logger.debug(f"Embedded {len(texts)} texts with {self._model_name}")
        return np.asarray(vectors, dtype=np.float32)
