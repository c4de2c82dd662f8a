"""Helper utilities for DocTalk."""

import asyncio
import base64
import json
import logging
import os
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    retry_on: tuple[type[BaseException], ...],
    attempts: int = 1,
    delay: float = 0.5,
    label: str = "call",
) -> T:
    """Await fn(), retrying only on the given exception types.

    Args:
        fn: Zero-argument coroutine factory.
        retry_on: Exception types that are worth another attempt.
        attempts: Retries after the first failure (0 disables retrying).
        delay: Seconds to wait before each retry; doubles every time.
        label: Name used in log lines.

    Returns:
        Whatever fn() returns.

    Raises:
        The last exception once retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except retry_on as e:
            if attempt >= attempts:
                raise
            attempt += 1
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                label,
                attempt,
                attempts + 1,
                delay,
                e,
            )
            await asyncio.sleep(delay)
            delay *= 2


def truncate_text(text: str, max_length: int = 100) -> str:
    """Truncate text with ellipsis.

    Args:
        text: Text to truncate
        max_length: Maximum length

    Returns:
        Truncated text with ellipsis if needed
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def load_google_credentials(creds_value: str) -> dict:
    """Load service account credentials from JSON string, file path, or base64.

    Raises:
        ValueError: If the value is none of those.
    """
    if os.path.isfile(creds_value):
        with open(creds_value) as f:
            return json.load(f)

    try:
        return json.loads(creds_value)
    except json.JSONDecodeError:
        pass

    try:
        decoded = base64.b64decode(creds_value).decode("utf-8")
        return json.loads(decoded)
    except (ValueError, UnicodeDecodeError):
        pass

    raise ValueError("GOOGLE_CREDENTIALS is not valid JSON, file path, or base64")
