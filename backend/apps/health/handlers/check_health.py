"""GET /health - Report service status."""

from datetime import UTC, datetime

from fastapi import Depends
from pydantic import BaseModel, Field

from config import get_app_config, get_settings
from dependencies import get_conversation_store
from services.conversation_store import ConversationStore

# --- Response Schemas ---


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field("healthy", description="Always healthy while serving")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    conversations: int = Field(..., description="Conversations held by the store")
    timestamp: datetime


# --- Handler ---


async def check_health(
    store: ConversationStore = Depends(get_conversation_store),
) -> HealthResponse:
    """Report process status and the number of tracked conversations."""
    return HealthResponse(
        version=get_app_config()["version"],
        environment=get_settings().environment,
        conversations=await store.count(),
        timestamp=datetime.now(UTC),
    )
