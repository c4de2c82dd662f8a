"""Tests for keyword relevance selection."""

import pytest

from services.relevance import (
    FallbackPolicy,
    RelevanceSelector,
    is_overview_query,
    select_relevant,
    structural_sample,
    tokenize,
)

CHUNKS = [
    "Introduction to the annual report.",
    "Revenue grew by ten percent.",
    "Logistics costs were stable.",
    "Revenue forecast for next year.",
    "Conclusion and outlook.",
]


class TestTokenize:
    """Tests for tokenize."""

    def test_drops_short_words(self):
        """Test words of length <= 3 are dropped."""
        assert tokenize("what is the revenue") == ["what", "revenue"]

    def test_lowercases_and_dedupes(self):
        """Test tokens are lowercased and unique."""
        assert tokenize("Revenue REVENUE revenue") == ["revenue"]

    def test_splits_on_punctuation(self):
        """Test punctuation separates tokens."""
        assert tokenize("costs, logistics?") == ["costs", "logistics"]

    def test_cyrillic(self):
        """Test non-latin words are tokenized."""
        assert tokenize("Какая выручка?") == ["какая", "выручка"]

    def test_custom_min_length(self):
        """Test minimum length is configurable."""
        assert tokenize("a big cat", min_length=2) == ["big", "cat"]


class TestSelectRelevant:
    """Tests for select_relevant."""

    def test_matches_in_document_order(self):
        """Test matching chunks keep their original order."""
        result = select_relevant(CHUNKS, "Revenue?", 3)
        assert result == [CHUNKS[1], CHUNKS[3]]

    def test_match_is_case_insensitive_substring(self):
        """Test tokens match as substrings of lowercased chunks."""
        result = select_relevant(CHUNKS, "LOGISTIC", 3)
        assert result == [CHUNKS[2]]

    def test_limit_caps_matches(self):
        """Test at most limit chunks are returned."""
        result = select_relevant(CHUNKS, "revenue logistics conclusion", 2)
        assert result == [CHUNKS[1], CHUNKS[2]]

    def test_empty_chunks(self):
        """Test empty chunk list gives empty result."""
        assert select_relevant([], "revenue", 3) == []

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query(self, query):
        """Test blank query gives empty result."""
        assert select_relevant(CHUNKS, query, 3) == []

    def test_non_positive_limit(self):
        """Test zero limit gives empty result."""
        assert select_relevant(CHUNKS, "revenue", 0) == []

    def test_fallback_first_n(self):
        """Test no match falls back to the first chunks."""
        result = select_relevant(CHUNKS, "weather tomorrow", 3)
        assert result == CHUNKS[:2]

    def test_fallback_first_n_capped_by_limit(self):
        """Test fallback never exceeds the limit."""
        result = select_relevant(CHUNKS, "weather", 1, fallback_count=2)
        assert result == CHUNKS[:1]

    def test_short_words_only_falls_back(self):
        """Test a query with only short words uses the fallback."""
        result = select_relevant(CHUNKS, "the a of", 3)
        assert result == CHUNKS[:2]

    def test_fallback_structural(self):
        """Test structural fallback returns first, middle, last."""
        result = select_relevant(
            CHUNKS, "weather", 3, policy=FallbackPolicy.STRUCTURAL_SAMPLE
        )
        assert result == [CHUNKS[0], CHUNKS[2], CHUNKS[4]]

    def test_fallback_empty(self):
        """Test empty fallback returns nothing."""
        result = select_relevant(CHUNKS, "weather", 3, policy=FallbackPolicy.EMPTY)
        assert result == []

    def test_fallback_overview_aware(self):
        """Test overview questions get a structural sample."""
        chunks = [f"chunk {i}" for i in range(4)]
        result = select_relevant(
            chunks, "о чём файл", 3, policy=FallbackPolicy.OVERVIEW_AWARE
        )
        assert result == ["chunk 0", "chunk 2", "chunk 3"]

    def test_fallback_overview_aware_detail_question(self):
        """Test detail questions keep the first chunks fallback."""
        result = select_relevant(
            CHUNKS, "weather tomorrow", 3, policy=FallbackPolicy.OVERVIEW_AWARE
        )
        assert result == CHUNKS[:2]

    def test_policy_accepts_string(self):
        """Test policy can be given as its string value."""
        result = select_relevant(CHUNKS, "weather", 3, policy="empty")
        assert result == []


class TestStructuralSample:
    """Tests for structural_sample."""

    def test_single_chunk(self):
        """Test one chunk is returned once."""
        assert structural_sample(["only"]) == ["only"]

    def test_two_chunks(self):
        """Test repeated indexes collapse."""
        assert structural_sample(["a", "b"]) == ["a", "b"]

    def test_empty(self):
        assert structural_sample([]) == []


class TestRelevanceSelector:
    """Tests for RelevanceSelector."""

    def test_overview_query_detection(self):
        """Test overview markers."""
        assert is_overview_query("О чём этот документ?")
        assert is_overview_query("Give me a summary")
        assert not is_overview_query("What was revenue in May?")

    def test_select_uses_configuration(self):
        """Test selector passes its settings through."""
        selector = RelevanceSelector(limit=1, policy=FallbackPolicy.FIRST_N)
        assert selector.select(CHUNKS, "revenue") == [CHUNKS[1]]
        assert selector.select(CHUNKS, "weather") == [CHUNKS[0]]

    def test_long_document_without_match(self):
        """Test a 4-chunk document asked about itself falls back to 2 chunks."""
        chunks = ["x" * 6000, "y" * 6000, "z" * 6000, "w" * 2000]
        selector = RelevanceSelector()
        assert selector.select(chunks, "о чём файл") == chunks[:2]
