"""FastAPI dependency injection for services.

Services are cached with @lru_cache() to avoid recreation per request.
The conversation store lives as long as the process: it is the only state.
"""

from functools import lru_cache

from fastapi import Depends

from config import get_settings
from llm import BaseLLMService, LLMService
from services.assistant import AssistantService
from services.chunker import Chunker
from services.conversation_store import ConversationStore, InMemoryConversationStore
from services.document import DocumentParser
from services.prompt_builder import PromptAssembler
from services.relevance import RelevanceSelector
from services.sheets import GoogleSheetsReader
from services.table_session import TableSession

# --- Cached Singletons ---
# These are created once and reused across all requests


@lru_cache
def get_conversation_store() -> ConversationStore:
    """Get the process-wide conversation store."""
    settings = get_settings()
    return InMemoryConversationStore(max_history=settings.max_history)


@lru_cache
def get_llm_service() -> BaseLLMService:
    """Get cached LLM service (expensive - has API client)."""
    return LLMService()


@lru_cache
def get_sheets_reader() -> GoogleSheetsReader:
    """Get cached Google Sheets reader (loads service account credentials)."""
    return GoogleSheetsReader.from_settings(get_settings())


@lru_cache
def get_telegram_client():
    """Get cached Telegram Bot API client.

    Returns:
        TelegramClient instance for sending replies and downloading files.
    """
    from apps.telegram.client import TelegramClient

    return TelegramClient.from_settings(get_settings())


# --- Lightweight Services (per-request is fine) ---


def get_chunker() -> Chunker:
    """Get chunker (stateless, cheap to create)."""
    return Chunker()


def get_document_parser() -> DocumentParser:
    """Get document parser (stateless, cheap to create)."""
    return DocumentParser()


def get_relevance_selector() -> RelevanceSelector:
    settings = get_settings()
    return RelevanceSelector(
        limit=settings.relevance_limit,
        policy=settings.relevance_fallback,
        fallback_count=settings.fallback_count,
        min_token_length=settings.min_token_length,
    )


# --- Composed Services ---
# Use Depends() for proper FastAPI DI chaining


def get_table_session(
    llm: BaseLLMService = Depends(get_llm_service),
) -> TableSession:
    """Get table session; the Sheets reader is only built on first tool call."""
    return TableSession(
        llm=llm, reader_factory=get_sheets_reader, settings=get_settings()
    )


def get_assistant_service(
    store: ConversationStore = Depends(get_conversation_store),
    llm: BaseLLMService = Depends(get_llm_service),
    table_session: TableSession = Depends(get_table_session),
    chunker: Chunker = Depends(get_chunker),
    parser: DocumentParser = Depends(get_document_parser),
    selector: RelevanceSelector = Depends(get_relevance_selector),
) -> AssistantService:
    """Get assistant service with injected dependencies.

    FastAPI will automatically inject the cached dependencies.
    """
    return AssistantService(
        store=store,
        llm=llm,
        assembler=PromptAssembler(selector),
        table_session=table_session,
        chunker=chunker,
        parser=parser,
        settings=get_settings(),
    )
