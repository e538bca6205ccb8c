"""Shared fixtures for the ctxpack test suite."""

import hashlib
import re
from pathlib import Path

import numpy as np
import pytest

from ctxpack.config import Directories, ExcludeRegistry, ProjectConfig, parse_config
from ctxpack.rag import ServiceFactory

DIMENSION = 64


class HashingEmbedder:
    """Deterministic bag-of-words embedder; no model download needed."""

    def __init__(self, dimension: int = DIMENSION):
        self._dimension = dimension
        self.calls: list[list[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "hashing-test"

    def embed(self, texts: list[str]) -> np.ndarray:
        self.calls.append(list(texts))
        vectors = np.zeros((len(texts), self._dimension), dtype=np.float32)
        for row, text in enumerate(texts):
            for token in re.findall(r"\w+", text.lower()):
                digest = hashlib.md5(token.encode("utf-8")).digest()
                vectors[row, digest[0] % self._dimension] += 1.0
            norm = np.linalg.norm(vectors[row])
            if norm:
                vectors[row] /= norm
        return vectors


def rag_settings(driver: str = "memory", chunk_size: int = 40, overlap: int = 10) -> dict:
    return {
        "rag": {
            "vectorizer": {"platform": "sentence-transformers"},
            "transformer": {"chunk_size": chunk_size, "overlap": overlap},
            "servers": {
                "default": {
                    "driver": driver,
                    "endpoint_url": ".ctxpack/test.db",
                    "embeddings_dimension": DIMENSION,
                },
            },
            "collections": {
                "docs": {"server": "default", "collection": "project_docs", "description": "Docs"},
                "notes": {"server": "default", "collection": "project_notes"},
            },
            "tools": [
                {"id": "notes-search", "description": "Search team notes", "collection": "notes"},
            ],
        },
        "exclude": {"patterns": [".env", "secrets/**"]},
    }


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def dirs(project_root: Path) -> Directories:
    return Directories(root=project_root.resolve())


@pytest.fixture
def exclude() -> ExcludeRegistry:
    return ExcludeRegistry([".env", "secrets/**"])


@pytest.fixture
def project(dirs: Directories) -> ProjectConfig:
    return parse_config(rag_settings(), dirs)


@pytest.fixture
def services(project: ProjectConfig, embedder: HashingEmbedder) -> ServiceFactory:
    return ServiceFactory(project.rag, project.dirs.root, embedder=embedder)


def write_lines(path: Path, count: int, newline: str = "\n", trailing: bool = True) -> Path:
    """Write ``line 1`` ... ``line N`` to a file."""
    text = newline.join(f"line {n}" for n in range(1, count + 1))
    if trailing:
        text += newline
    path.write_bytes(text.encode("utf-8"))
    return path


@pytest.fixture
def numbered_file():
    return write_lines
