"""Telegram Bot API client.

Thin async wrapper over the HTTP Bot API using httpx. Long replies are split
into message-sized parts with the document chunker.
"""

import logging
from typing import Any

import httpx

from config import Settings
from services.chunker import chunk_text
from utils import retry_async

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096


class TelegramError(Exception):
    """Raised when a Bot API call fails."""


class TelegramClient:
    """Async Telegram Bot API client.

    Args:
        token: Bot token.
        timeout: Timeout for API calls and file downloads in seconds.
        retry_attempts: Retries after a timeout or connection error.
        http_client: Optional pre-built httpx client (tests).
    """

    def __init__(
        self,
        token: str,
        *,
        timeout: float = 30.0,
        retry_attempts: int = 1,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self.retry_attempts = retry_attempts
        self._client = http_client or httpx.AsyncClient(
            base_url=TELEGRAM_API_URL,
            timeout=httpx.Timeout(timeout=timeout, connect=10.0),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramClient":
        return cls(
            settings.telegram_bot_token,
            timeout=settings.download_timeout_seconds,
            retry_attempts=settings.retry_attempts,
        )

    async def _call(self, method: str, payload: dict[str, Any]) -> Any:
        try:
            response = await retry_async(
                lambda: self._client.post(f"/bot{self._token}/{method}", json=payload),
                retry_on=(httpx.TimeoutException, httpx.ConnectError),
                attempts=self.retry_attempts,
                label=f"Telegram {method}",
            )
        except httpx.HTTPError as e:
            raise TelegramError(f"{method} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TelegramError(f"{method} returned invalid JSON") from e
        if not body.get("ok"):
            raise TelegramError(
                f"{method} failed: {body.get('error_code')} {body.get('description')}"
            )
        return body.get("result")

    async def send_message(self, chat_id: int, text: str) -> list[int]:
        """Send text, split into parts of at most 4096 characters.

        Returns:
            Ids of the sent messages.
        """
        message_ids = []
        for part in chunk_text(text, MAX_MESSAGE_LENGTH):
            result = await self._call("sendMessage", {"chat_id": chat_id, "text": part})
            message_ids.append(result["message_id"])
        return message_ids

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self._call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    async def download_file(self, file_id: str) -> bytes:
        """Resolve a file id and download its content."""
        result = await self._call("getFile", {"file_id": file_id})
        file_path = result.get("file_path") if result else None
        if not file_path:
            raise TelegramError(f"getFile returned no path for {file_id}")

        try:
            response = await retry_async(
                lambda: self._client.get(f"/file/bot{self._token}/{file_path}"),
                retry_on=(httpx.TimeoutException, httpx.ConnectError),
                attempts=self.retry_attempts,
                label="Telegram file download",
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TelegramError(f"File download failed: {e}") from e

        return response.content

    async def close(self) -> None:
        await self._client.aclose()
