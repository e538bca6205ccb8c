"""Metadata attached to every stored chunk."""

from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Iterable, Optional

from ctxpack.models import DocumentType

FIXED_KEYS = ("type", "source_path", "tags", "indexed_at")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class MetadataFactory:
    """Builds chunk metadata from document attributes.

    The fixed keys (type, source_path, tags, indexed_at) always win over
    keys of the same name passed in ``extra``.
    """

    def create(
        self,
        doc_type: DocumentType,
        source_path: Optional[str] = None,
        tags: Iterable[str] = (),
        indexed_at: Optional[str] = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = dict(extra or {})
        metadata.update(
            {
                "type": doc_type.value,
                "source_path": source_path,
                "tags": [tag for tag in tags if tag],
                "indexed_at": indexed_at or now_iso(),
            }
        )
        if source_path:
            metadata.setdefault("filename", PurePosixPath(source_path.replace("\\", "/")).name)
        return metadata

    def for_chunk(
        self,
        base: dict[str, Any],
        index: int,
        chunk_text: str,
        document_size: int,
    ) -> dict[str, Any]:
        """Extend document metadata with per-chunk position and size."""
        metadata = dict(base)
        metadata["chunk_index"] = index
        metadata["chunk_size"] = len(chunk_text)
        metadata["size"] = document_size
        return metadata


def parse_tags(tags: Optional[str | Iterable[str]]) -> tuple[str, ...]:
    """Parse a comma-separated tag string (or iterable) into clean tags."""
    if tags is None:
        return ()
    items = tags.split(",") if isinstance(tags, str) else list(tags)
    return tuple(tag.strip() for tag in items if tag and tag.strip())
