"""Telegram handlers."""

from apps.telegram.handlers.receive_update import receive_update

__all__ = ["receive_update"]
