"""Protocol for vector store backends."""

from typing import Protocol, runtime_checkable

import numpy as np

from ctxpack.models import ScoredRecord, VectorRecord


@runtime_checkable
class VectorStore(Protocol):
    """Protocol for vector store backends.

    Collections are addressed by name on every call; creating or dropping
    the underlying storage is the backend's own business.
    """

    def upsert(self, collection: str, records: list[VectorRecord]) -> None:
        """Write a batch of records. The batch is applied atomically."""
        ...

    def query(self, collection: str, vector: np.ndarray, top_k: int) -> list[ScoredRecord]:
        """Return up to top_k records ordered by descending similarity."""
        ...

    def count(self, collection: str) -> int:
        """Return the number of records in a collection."""
        ...

    def clear(self, collection: str) -> int:
        """Remove every record from a collection, returning how many were removed."""
        ...
