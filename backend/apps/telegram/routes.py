"""Telegram routes - registers the webhook endpoint."""

from fastapi import APIRouter

from apps.telegram.handlers import receive_update

router = APIRouter(prefix="/telegram", tags=["Telegram"])

# POST /telegram/webhook - Receive updates
router.post("/webhook")(receive_update)
