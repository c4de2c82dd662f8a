"""Telegram module - webhook updates and Bot API client."""

from apps.telegram.client import TelegramClient, TelegramError
from apps.telegram.routes import router

__all__ = ["router", "TelegramClient", "TelegramError"]
