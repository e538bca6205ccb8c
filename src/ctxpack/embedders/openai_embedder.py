"""OpenAI embeddings API provider."""

import logging
from typing import Any, Optional

import numpy as np
import openai
from openai import APITimeoutError

from ctxpack.errors import NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)

# Native dimensions of the OpenAI embedding models
MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedder:
    """Embedding provider backed by the OpenAI embeddings endpoint.

    Requests are bounded by ``timeout`` seconds and are never retried here:
    a failed call surfaces as NetworkError (RequestTimeoutError on timeout)
    and retry policy belongs to the caller.
    """

    DEFAULT_MODEL = "text-embedding-3-small"
    BATCH_SIZE = 100

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = 30.0,
        dimension: Optional[int] = None,
        client: Any = None,
    ):
        self._model = model or self.DEFAULT_MODEL
        self._dimension = dimension or MODEL_DIMENSIONS.get(self._model, 1536)
        self._timeout = timeout
        self._client = client or openai.OpenAI(
            api_key=api_key or None,
            timeout=timeout,
            max_retries=0,
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model

    def embed(self, texts: list[str]) -> np.ndarray:
        """Generate embeddings for a batch of texts.

        Raises:
            RequestTimeoutError: If the API did not answer within the timeout
            NetworkError: For any other API failure
        """
        if not texts:
            return np.empty((0, self._dimension), dtype=np.float32)

        vectors: list[list[float]] = []
        for offset in range(0, len(texts), self.BATCH_SIZE):
            batch = texts[offset : offset + self.BATCH_SIZE]
            vectors.extend(self._embed_batch(batch))

        return np.asarray(vectors, dtype=np.float32)

    def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        kwargs: dict[str, Any] = {"model": self._model, "input": batch}
        if self._model not in MODEL_DIMENSIONS or MODEL_DIMENSIONS[self._model] != self._dimension:
            kwargs["dimensions"] = self._dimension

        try:
            response = self._client.embeddings.create(**kwargs)
        except APITimeoutError as exc:
            raise RequestTimeoutError(
                f"Embedding request timed out after {self._timeout}s"
            ) from exc
        except openai.OpenAIError as exc:
            raise NetworkError(f"Embedding request failed: {exc}") from exc

        data = sorted(response.data, key=lambda item: item.index)
        logger.debug(f"Embedded {len(batch)} texts with {self._model}")
        return [item.embedding for item in data]
