"""Readers that turn files on disk into documents for indexing."""

from ctxpack.ingesters.folder_ingester import FolderIngester

__all__ = ["FolderIngester"]
