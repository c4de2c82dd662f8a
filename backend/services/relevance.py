"""Keyword relevance selection over document chunks.

A chunk is relevant when its lowercased text contains ANY query token.
Matches are returned in document order, never ranked. When nothing
matches, a configurable fallback policy decides what the prompt gets.
"""

import logging
import re
from enum import Enum

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)

# Phrases that ask for the document as a whole rather than a detail
OVERVIEW_MARKERS = (
    "о чём",
    "о чем",
    "про что",
    "кратко",
    "суть",
    "резюме",
    "перескажи",
    "summary",
    "summarize",
    "overview",
    "what is this",
    "tl;dr",
)


class FallbackPolicy(str, Enum):
    """What to return when no chunk matches the query."""

    FIRST_N = "first_n"
    STRUCTURAL_SAMPLE = "structural"
    EMPTY = "empty"
    OVERVIEW_AWARE = "overview_aware"


def tokenize(query: str, min_length: int = 3) -> list[str]:
    """Lowercase word tokens of ``query`` longer than ``min_length``.

    Duplicates are dropped, first occurrence order is kept.
    """
    seen: dict[str, None] = {}
    for token in TOKEN_PATTERN.findall(query.lower()):
        if len(token) > min_length:
            seen.setdefault(token, None)
    return list(seen)


def is_overview_query(query: str) -> bool:
    """Check whether the query asks what the document is about."""
    lowered = query.lower()
    return any(marker in lowered for marker in OVERVIEW_MARKERS)


def structural_sample(chunks: list[str]) -> list[str]:
    """First, middle and last chunk, deduplicated, in document order."""
    if not chunks:
        return []
    indexes = sorted({0, len(chunks) // 2, len(chunks) - 1})
    return [chunks[i] for i in indexes]


class RelevanceSelector:
    """Selects the chunks most likely to answer a question.

    Args:
        limit: Max chunks returned.
        policy: Fallback policy when nothing matches. Defaults to FIRST_N.
        fallback_count: Chunks returned by the FIRST_N fallback.
        min_token_length: Query words must be longer than this.
    """

    def __init__(
        self,
        limit: int = 3,
        policy: FallbackPolicy = FallbackPolicy.FIRST_N,
        fallback_count: int = 2,
        min_token_length: int = 3,
    ) -> None:
        self.limit = limit
        self.policy = FallbackPolicy(policy)
        self.fallback_count = fallback_count
        self.min_token_length = min_token_length

    def select(self, chunks: list[str], query: str) -> list[str]:
        """Select relevant chunks for a query using the configured settings."""
        return select_relevant(
            chunks,
            query,
            self.limit,
            policy=self.policy,
            fallback_count=self.fallback_count,
            min_token_length=self.min_token_length,
        )


def select_relevant(
    chunks: list[str],
    query: str,
    limit: int,
    *,
    policy: FallbackPolicy = FallbackPolicy.FIRST_N,
    fallback_count: int = 2,
    min_token_length: int = 3,
) -> list[str]:
    """Return at most ``limit`` chunks matching the query, in original order.

    Args:
        chunks: Document chunks in order.
        query: User question.
        limit: Max chunks returned.
        policy: Fallback when no chunk matches.
        fallback_count: Chunks returned by FIRST_N.
        min_token_length: Query words must be longer than this.

    Returns:
        Order-preserving subsequence of ``chunks``. Empty for an empty chunk
        list, a blank query or a non-positive limit.
    """
    if not chunks or not query or not query.strip() or limit <= 0:
        return []

    tokens = tokenize(query, min_length=min_token_length)

    matches: list[str] = []
    if tokens:
        for chunk in chunks:
            lowered = chunk.lower()
            if any(token in lowered for token in tokens):
                matches.append(chunk)
                if len(matches) >= limit:
                    break

    if matches:
        logger.debug(
            "Selected %d/%d chunks for tokens %s", len(matches), len(chunks), tokens
        )
        return matches

    fallback = _fallback(chunks, query, FallbackPolicy(policy), fallback_count)
    logger.debug(
        "No chunk matched %s, fallback %s returned %d chunks",
        tokens,
        policy,
        min(len(fallback), limit),
    )
    return fallback[:limit]


def _fallback(
    chunks: list[str],
    query: str,
    policy: FallbackPolicy,
    fallback_count: int,
) -> list[str]:
    if policy is FallbackPolicy.FIRST_N:
        return chunks[: max(fallback_count, 0)]
    if policy is FallbackPolicy.STRUCTURAL_SAMPLE:
        return structural_sample(chunks)
    if policy is FallbackPolicy.EMPTY:
        return []
    if policy is FallbackPolicy.OVERVIEW_AWARE:
        if is_overview_query(query):
            return structural_sample(chunks)
        return chunks[: max(fallback_count, 0)]
    raise ValueError(f"Unknown fallback policy: {policy}")
