"""Tests for the chunker service."""

import pytest

from services.chunker import Chunker, InvalidChunkSizeError, chunk_text


class TestChunkText:
    """Tests for chunk_text."""

    def test_chunk_empty_text(self):
        """Test chunking empty text returns empty list."""
        assert chunk_text("", 10) == []

    def test_chunk_short_text(self):
        """Test text shorter than chunk size returns single chunk."""
        assert chunk_text("abc", 10) == ["abc"]

    def test_chunk_exact_multiple(self):
        """Test text of exactly n * size splits into n full chunks."""
        result = chunk_text("abcdef", 3)
        assert result == ["abc", "def"]

    def test_chunk_last_chunk_shorter(self):
        """Test only the last chunk may be shorter than size."""
        result = chunk_text("abcdefg", 3)
        assert result == ["abc", "def", "g"]

    def test_chunks_rejoin_to_original(self):
        """Test concatenating chunks gives back the text."""
        text = "Привет, мир! " * 37
        result = chunk_text(text, 50)
        assert "".join(result) == text
        assert all(len(chunk) == 50 for chunk in result[:-1])

    def test_long_document_chunk_count(self):
        """Test a 20000 char document at size 6000 gives 4 chunks."""
        result = chunk_text("x" * 20000, 6000)
        assert [len(chunk) for chunk in result] == [6000, 6000, 6000, 2000]

    def test_whitespace_is_kept(self):
        """Test whitespace-only text is still split, never dropped."""
        assert chunk_text("   ", 2) == ["  ", " "]

    @pytest.mark.parametrize("size", [0, -1])
    def test_invalid_size(self, size):
        """Test non-positive size is rejected."""
        with pytest.raises(InvalidChunkSizeError):
            chunk_text("abc", size)


class TestChunker:
    """Tests for Chunker."""

    def setup_method(self):
        """Set up test fixtures."""
        self.chunker = Chunker(chunk_size=100)

    def test_default_size_from_settings(self):
        """Test chunk size defaults to settings."""
        assert Chunker().chunk_size == 6000

    def test_chunk(self):
        """Test chunk uses the configured size."""
        result = self.chunker.chunk("a" * 250)
        assert [len(chunk) for chunk in result] == [100, 100, 50]

    def test_chunk_empty(self):
        """Test empty text returns no chunks."""
        assert self.chunker.chunk("") == []
