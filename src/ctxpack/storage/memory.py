"""In-memory vector store for tests and throwaway sessions."""

from dataclasses import dataclass, field

import numpy as np

from ctxpack.errors import StoreError
from ctxpack.models import ScoredRecord, VectorRecord
from ctxpack.storage.store import rank


@dataclass
class InMemoryVectorStore:
    """Process-local vector store with cosine similarity search."""

    dimension: int
    collections: dict[str, dict[str, VectorRecord]] = field(default_factory=dict)

    def upsert(self, collection: str, records: list[VectorRecord]) -> None:
        """Insert or replace records; the batch is validated before any write."""
        prepared = []
        for record in records:
            vector = np.asarray(record.vector, dtype=np.float32)
            if vector.shape != (self.dimension,):
                raise StoreError(
                    f"Vector for record {record.id} has shape {vector.shape}, "
                    f"expected ({self.dimension},)"
                )
            prepared.append(VectorRecord(record.id, vector, record.text, dict(record.metadata)))

        bucket = self.collections.setdefault(collection, {})
        for record in prepared:
            bucket.pop(record.id, None)
            bucket[record.id] = record

    def query(self, collection: str, vector: np.ndarray, top_k: int) -> list[ScoredRecord]:
        bucket = self.collections.get(collection, {})
        rows = [(r.id, r.text, dict(r.metadata), r.vector) for r in bucket.values()]
        return rank(np.asarray(vector, dtype=np.float32), rows, top_k)

    def count(self, collection: str) -> int:
        return len(self.collections.get(collection, {}))

    def clear(self, collection: str) -> int:
        return len(self.collections.pop(collection, {}))
