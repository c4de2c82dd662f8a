"""Configuration and settings for the DocTalk bot.

Uses Pydantic Settings for fail-fast validation on startup.
Required credentials are validated the first time settings are loaded.
"""

import logging
import sys
from functools import lru_cache
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils import load_google_credentials

# Fields google-auth needs to build service account credentials
SERVICE_ACCOUNT_KEYS = frozenset({"client_email", "private_key", "token_uri"})


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Raises ValidationError on load if required variables are missing.
    """

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials (required)
    telegram_bot_token: str = Field(..., description="Telegram Bot API token")
    anthropic_api_key: str = Field(..., description="Anthropic API key for Claude")
    # Can be either a JSON string, a file path, or base64 of the JSON
    google_credentials: str = Field(
        ..., description="Google service account JSON string or path to JSON file"
    )

    # Application Settings
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # Model Settings
    llm_model: str = Field(
        default="claude-sonnet-4-20250514", description="Model for plain chat"
    )
    llm_temperature: float = Field(default=0.3, description="Plain chat temperature")
    llm_max_tokens: int = Field(default=1024, description="Plain chat token budget")
    document_max_tokens: int = Field(
        default=2048, description="Token budget for document questions"
    )
    table_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model for spreadsheet analysis (can differ from chat model)",
    )
    table_temperature: float = Field(
        default=0.0, description="Spreadsheet analysis temperature"
    )
    table_max_tokens: int = Field(
        default=1024, description="Token budget for spreadsheet analysis"
    )

    # Timeouts and retries
    llm_timeout_seconds: float = Field(default=60.0, description="Model call timeout")
    download_timeout_seconds: float = Field(
        default=30.0, description="Telegram file download timeout"
    )
    sheets_timeout_seconds: float = Field(
        default=20.0, description="Google Sheets API timeout"
    )
    retry_attempts: int = Field(
        default=1, description="Automatic retries after a timeout or connection error"
    )

    # Conversation memory
    max_history: int = Field(default=20, description="Max messages kept per chat")
    history_window: int = Field(
        default=20, description="Max history messages included in a prompt"
    )
    table_max_messages: int = Field(
        default=12, description="Max messages kept by a spreadsheet session"
    )

    # Document Processing
    max_file_size_mb: int = Field(default=20, description="Max upload size in MB")
    chunk_size: int = Field(default=6000, description="Chunk size in chars")
    relevance_limit: int = Field(
        default=3, description="Max chunks selected for one question"
    )
    relevance_fallback: str = Field(
        default="first_n",
        description="Fallback when nothing matches: first_n, structural, empty, overview_aware",
    )
    fallback_count: int = Field(
        default=2, description="Chunks returned by the first_n fallback"
    )
    min_token_length: int = Field(
        default=3, description="Query words must be longer than this to match"
    )
    document_context_max_chars: int = Field(
        default=12000, description="Character budget for document context"
    )

    # Spreadsheets
    sheet_max_rows: int = Field(
        default=500, description="Max rows returned by one spreadsheet read"
    )

    @field_validator("telegram_bot_token", "anthropic_api_key", "google_credentials")
    @classmethod
    def validate_secret_not_empty(cls, v: str, info) -> str:
        """Ensure credentials are not empty strings."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()

    @field_validator("google_credentials")
    @classmethod
    def validate_google_credentials(cls, v: str) -> str:
        """Ensure the value decodes to service account credentials."""
        info = load_google_credentials(v)
        if not isinstance(info, dict) or info.get("type") != "service_account":
            raise ValueError("google_credentials must be a service account key")
        missing = sorted(SERVICE_ACCOUNT_KEYS - info.keys())
        if missing:
            raise ValueError(f"google_credentials is missing {', '.join(missing)}")
        return v

    @field_validator("relevance_fallback")
    @classmethod
    def validate_fallback(cls, v: str) -> str:
        """Only accept known fallback policies."""
        allowed = {"first_n", "structural", "empty", "overview_aware"}
        value = v.strip().lower()
        if value not in allowed:
            raise ValueError(f"relevance_fallback must be one of {sorted(allowed)}")
        return value

    @field_validator("chunk_size", "max_history", "table_max_messages")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    try:
        return Settings()
    except ValidationError as e:
        missing = ", ".join(
            str(err["loc"][-1]).upper() for err in e.errors() if err.get("loc")
        )
        raise ConfigurationError(f"Invalid or missing settings: {missing}") from e


# FastAPI App Configuration
APP_CONFIG: dict[str, Any] = {
    "title": "DocTalk",
    "description": (
        "Telegram assistant that answers questions about uploaded documents "
        "and connected Google spreadsheets."
    ),
    "version": "0.1.0",
    "docs_url": "/api/docs",
    "redoc_url": "/api/redoc",
    "openapi_url": "/api/openapi.json",
    "openapi_tags": [
        {
            "name": "Health",
            "description": "Health check and service status",
        },
        {
            "name": "Telegram",
            "description": "Telegram webhook updates",
        },
    ],
}


def get_app_config() -> dict[str, Any]:
    """Get FastAPI application configuration."""
    return APP_CONFIG.copy()
