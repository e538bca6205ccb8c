"""SQLite-backed vector store."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import numpy as np

from ctxpack.errors import StoreError
from ctxpack.models import ScoredRecord, VectorRecord
from ctxpack.storage.schema import SCHEMA

logger = logging.getLogger(__name__)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Compute cosine similarity between two vectors."""
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def rank(query: np.ndarray, rows: list[tuple[str, str, dict, np.ndarray]], top_k: int) -> list[ScoredRecord]:
    """Score rows against a query vector, best first.

    Rows with equal scores keep their input order.
    """
    scored = [
        ScoredRecord(id=record_id, text=text, metadata=metadata, score=cosine_similarity(query, vector))
        for record_id, text, metadata, vector in rows
    ]
    scored.sort(key=lambda record: record.score, reverse=True)
    return scored[:top_k]


class SQLiteVectorStore:
    """Vector store kept in a single SQLite file.

    All collections share one table; every upsert batch is written in a
    single transaction.
    """

    def __init__(self, path: Path | str, dimension: int, timeout: float = 5.0):
        self.path = Path(path)
        self.dimension = dimension
        self.timeout = timeout
        self._initialized = False

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open vector store {self.path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"Vector store operation failed: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create schema if not exists."""
        if self._initialized:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.executescript(SCHEMA)
        self._initialized = True

    def upsert(self, collection: str, records: list[VectorRecord]) -> None:
        """Insert or replace records in one transaction."""
        if not records:
            return
        self.initialize()

        rows = []
        for record in records:
            vector = np.asarray(record.vector, dtype=np.float32)
            if vector.shape != (self.dimension,):
                raise StoreError(
                    f"Vector for record {record.id} has shape {vector.shape}, "
                    f"expected ({self.dimension},)"
                )
            rows.append(
                (collection, record.id, record.text, json.dumps(record.metadata), vector.tobytes())
            )

        with self.connection() as conn:
            conn.executemany(
                """INSERT OR REPLACE INTO records (collection, id, text, metadata, embedding)
                   VALUES (?, ?, ?, ?, ?)""",
                rows,
            )
        logger.debug(f"Wrote {len(rows)} records to {collection}")

    def query(self, collection: str, vector: np.ndarray, top_k: int) -> list[ScoredRecord]:
        """Find the top_k most similar records in a collection."""
        self.initialize()
        query = np.asarray(vector, dtype=np.float32)

        with self.connection() as conn:
            cursor = conn.execute(
                "SELECT id, text, metadata, embedding FROM records WHERE collection = ? ORDER BY seq",
                (collection,),
            )
            rows = [
                (
                    row["id"],
                    row["text"],
                    json.loads(row["metadata"]),
                    np.frombuffer(row["embedding"], dtype=np.float32),
                )
                for row in cursor
            ]

        return rank(query, rows, top_k)

    def count(self, collection: str) -> int:
        self.initialize()
        with self.connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM records WHERE collection = ?", (collection,)
            ).fetchone()
            return int(row["total"])

    def clear(self, collection: str) -> int:
        self.initialize()
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM records WHERE collection = ?", (collection,))
            return cursor.rowcount
