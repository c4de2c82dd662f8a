"""Text chunking for extracted document text.

Splits text into fixed-size, contiguous, non-overlapping slices. Position in
the resulting list is significant: the relevance selector falls back to
first/middle/last chunks by index.
"""

import logging

from config import get_settings

logger = logging.getLogger(__name__)


class InvalidChunkSizeError(ValueError):
    """Raised when a chunk size is not a positive integer."""


def chunk_text(text: str, size: int) -> list[str]:
    """Split text into consecutive slices of at most ``size`` characters.

    Every slice except possibly the last has exactly ``size`` characters and
    joining the slices gives back ``text``.

    Args:
        text: Text to split.
        size: Slice length in characters.

    Returns:
        Ordered list of slices; empty for empty text.

    Raises:
        InvalidChunkSizeError: If size is not positive.
    """
    if size <= 0:
        raise InvalidChunkSizeError(f"Chunk size must be positive, got {size}")
    return [text[start : start + size] for start in range(0, len(text), size)]


class Chunker:
    """Chunks document text using the configured chunk size."""

    def __init__(self, chunk_size: int | None = None) -> None:
        """Initialize chunker with settings."""
        self.chunk_size = chunk_size or get_settings().chunk_size

    def chunk(self, text: str) -> list[str]:
        """Split text into chunks of ``chunk_size`` characters.

        Args:
            text: Full document text to chunk.

        Returns:
            List of chunks in document order.
        """
        chunks = chunk_text(text, self.chunk_size)

        logger.info(
            "Chunking complete: %d chars -> %d chunks (size: %d)",
            len(text),
            len(chunks),
            self.chunk_size,
        )
        return chunks
