"""Per-conversation state with bounded history and per-key locking.

The store is the only mutable state shared between webhook requests.
Mutation happens inside ``transaction()``, which holds an asyncio lock for
that conversation id, so two updates from the same chat never interleave
while different chats proceed in parallel.

Backends implement ``_load``/``_save``/``_delete``; the in-memory backend
keeps deep copies so callers never hold a live reference outside a
transaction.
"""

import asyncio
import logging
import weakref
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from pydantic import BaseModel, Field

from llm.types import SYSTEM_ROLE, Message

logger = logging.getLogger(__name__)


class SessionMode(str, Enum):
    """Interaction state of a conversation."""

    PLAIN = "plain"
    TABLE_BEGIN = "table_begin"
    TABLE_CHAT = "table_chat"


class Conversation(BaseModel):
    """State of one chat, keyed by conversation id."""

    id: str
    history: list[Message] = Field(default_factory=list)
    document_chunks: list[str] = Field(default_factory=list)
    document_name: str = ""
    mode: SessionMode = SessionMode.PLAIN
    spreadsheet_id: str | None = None
    spreadsheet_url: str | None = None
    table_messages: list[Message] = Field(default_factory=list)
    bot_message_ids: list[int] = Field(default_factory=list)

    @property
    def has_document(self) -> bool:
        return bool(self.document_chunks)

    def append_history(self, message: Message, max_history: int) -> None:
        """Append a message, evicting the oldest entries beyond max_history."""
        self.history.append(message)
        overflow = len(self.history) - max_history
        if overflow > 0:
            del self.history[:overflow]

    def set_document(self, chunks: list[str], name: str) -> None:
        """Replace the loaded document."""
        self.document_chunks = list(chunks)
        self.document_name = name

    def append_table_message(self, message: Message, max_messages: int) -> None:
        """Append to the table session, evicting oldest non-system entries."""
        self.table_messages.append(message)
        while len(self.table_messages) > max_messages:
            index = next(
                (
                    i
                    for i, m in enumerate(self.table_messages)
                    if m.role != SYSTEM_ROLE
                ),
                None,
            )
            if index is None:
                break
            del self.table_messages[index]

    def clear_table(self) -> None:
        self.spreadsheet_id = None
        self.spreadsheet_url = None
        self.table_messages = []


class ConversationStore(ABC):
    """Keyed conversation storage with per-id critical sections.

    Args:
        max_history: Max history entries kept per conversation.
        max_bot_messages: Max remembered bot message ids per conversation.
    """

    def __init__(self, max_history: int = 20, max_bot_messages: int = 200) -> None:
        if max_history <= 0:
            raise ValueError("max_history must be positive")
        self.max_history = max_history
        self.max_bot_messages = max_bot_messages
        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # --- Backend primitives ---

    @abstractmethod
    async def _load(self, conversation_id: str) -> Conversation | None:
        """Load a stored conversation, None if unknown."""

    @abstractmethod
    async def _save(self, conversation: Conversation) -> None:
        """Persist a conversation."""

    @abstractmethod
    async def _delete(self, conversation_id: str) -> bool:
        """Remove a conversation. Returns True if it existed."""

    @abstractmethod
    async def count(self) -> int:
        """Number of stored conversations."""

    async def close(self) -> None:
        """Release backend resources."""

    # --- Public API ---

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    @asynccontextmanager
    async def transaction(self, conversation_id: str) -> AsyncIterator[Conversation]:
        """Hold the conversation's lock and yield its mutable state.

        The state is saved when the block exits without an exception.
        """
        lock = self._lock_for(conversation_id)
        async with lock:
            conversation = await self._load(conversation_id)
            if conversation is None:
                logger.debug("Creating conversation %s", conversation_id)
                conversation = Conversation(id=conversation_id)
            yield conversation
            await self._save(conversation)

    async def get(self, conversation_id: str) -> Conversation:
        """Get a snapshot of the conversation, creating it if absent."""
        async with self.transaction(conversation_id) as conversation:
            return conversation.model_copy(deep=True)

    async def reset(self, conversation_id: str) -> None:
        """Remove the conversation entirely."""
        lock = self._lock_for(conversation_id)
        async with lock:
            if await self._delete(conversation_id):
                logger.info("Conversation %s reset", conversation_id)

    async def append_history(self, conversation_id: str, message: Message) -> None:
        """Append to history, truncating from the front beyond max_history."""
        async with self.transaction(conversation_id) as conversation:
            conversation.append_history(message, self.max_history)

    async def set_document(
        self, conversation_id: str, chunks: list[str], name: str
    ) -> None:
        """Replace the conversation's document wholesale."""
        async with self.transaction(conversation_id) as conversation:
            conversation.set_document(chunks, name)

    async def remember_bot_messages(
        self, conversation_id: str, message_ids: list[int]
    ) -> None:
        """Remember ids of messages sent by the bot, for /clear."""
        if not message_ids:
            return
        async with self.transaction(conversation_id) as conversation:
            conversation.bot_message_ids.extend(message_ids)
            overflow = len(conversation.bot_message_ids) - self.max_bot_messages
            if overflow > 0:
                del conversation.bot_message_ids[:overflow]


class InMemoryConversationStore(ConversationStore):
    """Process-local store backed by a dict. State is lost on restart."""

    def __init__(self, max_history: int = 20, max_bot_messages: int = 200) -> None:
        super().__init__(max_history=max_history, max_bot_messages=max_bot_messages)
        self._conversations: dict[str, Conversation] = {}

    async def _load(self, conversation_id: str) -> Conversation | None:
        stored = self._conversations.get(conversation_id)
        return stored.model_copy(deep=True) if stored is not None else None

    async def _save(self, conversation: Conversation) -> None:
        self._conversations[conversation.id] = conversation.model_copy(deep=True)

    async def _delete(self, conversation_id: str) -> bool:
        return self._conversations.pop(conversation_id, None) is not None

    async def count(self) -> int:
        return len(self._conversations)

    async def close(self) -> None:
        self._conversations.clear()
        self._locks.clear()
