"""Fixed-size chunking with overlapping boundaries."""

from ctxpack.errors import ConfigurationError


class OverlapChunker:
    """Split text into windows of at most ``chunk_size`` characters.

    Each window after the first starts ``overlap`` characters before the
    end of the previous one, so joining the chunks while dropping the
    first ``overlap`` characters of every chunk but the first restores the
    original text exactly.

    For text of length ``n``:
    - ``n <= chunk_size`` gives a single chunk
    - otherwise ``ceil((n - overlap) / (chunk_size - overlap))`` chunks
    """

    def __init__(self, chunk_size: int, overlap: int):
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be a positive integer, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap

    def chunk(self, text: str) -> list[str]:
        """Split text into overlapping chunk strings.

        Args:
            text: The text content to chunk

        Returns:
            Chunk strings in document order; empty for blank text
        """
        return [text[start:end] for start, end in self.spans(text)]

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return (start, end) character offsets of every chunk."""
        if not text or not text.strip():
            return []

        length = len(text)
        spans = []
        start = 0
        while True:
            end = min(start + self.chunk_size, length)
            spans.append((start, end))
            if end >= length:
                break
            start += self.step

        return spans

    @staticmethod
    def merge(chunks: list[str], overlap: int) -> str:
        """Rebuild the original text from chunks produced with ``overlap``."""
        if not chunks:
            return ""
        return chunks[0] + "".join(piece[overlap:] for piece in chunks[1:])
