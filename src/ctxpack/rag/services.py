"""Factory for collection-specific indexer and retriever services."""

import logging
from pathlib import Path
from typing import Optional

from ctxpack.chunkers import OverlapChunker
from ctxpack.config import RagConfig
from ctxpack.embedders import create_embedder
from ctxpack.errors import ConfigurationError
from ctxpack.protocols import EmbeddingProvider, VectorStore
from ctxpack.rag.indexer import Indexer
from ctxpack.rag.metadata import MetadataFactory
from ctxpack.rag.retriever import Retriever
from ctxpack.storage import create_store

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Builds indexers and retrievers per logical collection.

    The vectorizer, the stores and the services are created lazily and
    cached, so one factory can back a long-running server.
    """

    def __init__(
        self,
        config: RagConfig,
        root: Path,
        embedder: Optional[EmbeddingProvider] = None,
        metadata_factory: Optional[MetadataFactory] = None,
    ):
        self.config = config
        self.root = root
        self.metadata_factory = metadata_factory or MetadataFactory()
        self._embedder = embedder
        self._stores: dict[tuple[str, int], VectorStore] = {}
        self._indexers: dict[str, Indexer] = {}
        self._retrievers: dict[str, Retriever] = {}

    @property
    def collection_names(self) -> list[str]:
        return list(self.config.collections)

    def has_collection(self, name: str) -> bool:
        return name in self.config.collections

    def get_indexer(self, collection: str) -> Indexer:
        if collection not in self._indexers:
            self._indexers[collection] = self._create_indexer(collection)
        return self._indexers[collection]

    def get_retriever(self, collection: str) -> Retriever:
        if collection not in self._retrievers:
            self._retrievers[collection] = self._create_retriever(collection)
        return self._retrievers[collection]

    def get_store(self, collection: str) -> VectorStore:
        coll = self.config.get_collection(collection)
        server = self.config.get_server(coll.server)
        dimension = coll.effective_dimension(server)
        key = (server.name, dimension)
        if key not in self._stores:
            logger.debug(f"Creating {server.driver} store for server {server.name}")
            self._stores[key] = create_store(server, dimension, self.root)
        return self._stores[key]

    def get_embedder(self, dimension: int = 0) -> EmbeddingProvider:
        if self._embedder is None:
            self._embedder = create_embedder(self.config.vectorizer, dimension)
        return self._embedder

    def _check_dimension(self, collection: str) -> int:
        coll = self.config.get_collection(collection)
        dimension = coll.effective_dimension(self.config.get_server(coll.server))
        embedder = self.get_embedder(dimension)
        if embedder.dimension != dimension:
            raise ConfigurationError(
                f"Vectorizer {embedder.model_name} produces {embedder.dimension}-dimensional "
                f"vectors but collection '{collection}' expects {dimension}"
            )
        return dimension

    def _create_indexer(self, collection: str) -> Indexer:
        coll = self.config.get_collection(collection)
        transformer = coll.effective_transformer(self.config.transformer)
        self._check_dimension(collection)

        logger.debug(
            f"Creating indexer for {collection} "
            f"(chunk_size={transformer.chunk_size}, overlap={transformer.overlap})"
        )
        return Indexer(
            store=self.get_store(collection),
            embedder=self.get_embedder(),
            chunker=OverlapChunker(transformer.chunk_size, transformer.overlap),
            collection=coll.collection,
            metadata_factory=self.metadata_factory,
        )

    def _create_retriever(self, collection: str) -> Retriever:
        coll = self.config.get_collection(collection)
        self._check_dimension(collection)

        logger.debug(f"Creating retriever for {collection}")
        return Retriever(
            store=self.get_store(collection),
            embedder=self.get_embedder(),
            collection=coll.collection,
        )
