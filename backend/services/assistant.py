"""Chat orchestration independent of the messaging transport.

Every public method returns the reply text for one inbound event. Failures
below this boundary are logged and turned into short user-facing replies,
so a broken interaction never takes the webhook down with it.

Flow for a text message:
1. Lock the conversation (ConversationStore.transaction)
2. Table session active? -> TableSession (tool loop)
3. Otherwise assemble persona + document context + history + message
4. Call the model; on success append question and answer to history
"""

import logging

from config import Settings
from llm.base import BaseLLMService, LLMError
from llm.types import Message
from services.chunker import Chunker
from services.conversation_store import Conversation, ConversationStore
from services.document import (
    DocumentParser,
    ExtractionError,
    FileTooLargeError,
    UnsupportedFileTypeError,
)
from services.prompt_builder import PromptAssembler, PromptOptions
from services.replies import ReplyCode, get_reply
from services.table_session import TableSession
from services.types import InboundMessage
from utils import format_file_size, truncate_text

logger = logging.getLogger(__name__)

DOCUMENT_ERROR_MAP = {
    UnsupportedFileTypeError: ReplyCode.UNSUPPORTED_FORMAT,
    FileTooLargeError: ReplyCode.FILE_TOO_LARGE,
}


class AssistantService:
    """Handles chat events for all conversations."""

    def __init__(
        self,
        store: ConversationStore,
        llm: BaseLLMService,
        assembler: PromptAssembler,
        table_session: TableSession,
        chunker: Chunker,
        parser: DocumentParser,
        settings: Settings,
    ) -> None:
        self.store = store
        self.llm = llm
        self.assembler = assembler
        self.table_session = table_session
        self.chunker = chunker
        self.parser = parser
        self.settings = settings

    # --- Text ---

    async def handle_text(self, event: InboundMessage) -> str:
        """Answer a text message."""
        logger.info(
            "[%s] Text: %s", event.conversation_id, truncate_text(event.text, 100)
        )
        try:
            async with self.store.transaction(event.conversation_id) as conversation:
                if self.table_session.is_active(conversation):
                    return await self.table_session.handle(
                        conversation, event.text, event.urls
                    )
                return await self._answer(conversation, event.text)
        except Exception:
            logger.exception("[%s] Failed to handle text", event.conversation_id)
            return get_reply(ReplyCode.INTERNAL_ERROR)

    async def _answer(self, conversation: Conversation, text: str) -> str:
        has_document = conversation.has_document
        options = PromptOptions(
            history_window=min(self.settings.history_window, self.settings.max_history),
            max_context_chars=self.settings.document_context_max_chars,
        )
        messages = self.assembler.assemble(conversation, text, options)

        try:
            reply = await self.llm.complete(
                messages,
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.document_max_tokens
                if has_document
                else self.settings.llm_max_tokens,
            )
        except LLMError as e:
            logger.error(
                "[%s] Generation failed (%s): %s", conversation.id, e.status, e
            )
            return get_reply(ReplyCode.MODEL_ERROR)

        answer = reply.content.strip()
        if not answer:
            return get_reply(ReplyCode.EMPTY_ANSWER)

        conversation.append_history(Message.user(text), self.settings.max_history)
        conversation.append_history(Message.assistant(answer), self.settings.max_history)
        return answer

    # --- Documents ---

    def check_document(self, filename: str, file_size: int | None) -> str | None:
        """Validate an upload before downloading it.

        Returns:
            A rejection reply, or None when the file may be downloaded.
        """
        try:
            self.parser.validate_file(filename, file_size)
        except tuple(DOCUMENT_ERROR_MAP) as e:
            logger.info("Rejected upload %s: %s", filename, e)
            return self._document_reply(DOCUMENT_ERROR_MAP[type(e)])
        return None

    async def handle_document(
        self, conversation_id: str, filename: str, content: bytes
    ) -> str:
        """Extract, chunk and store an uploaded document."""
        logger.info(
            "[%s] Document: %s (%s)",
            conversation_id,
            filename,
            format_file_size(len(content)),
        )
        try:
            parsed = await self.parser.parse_bytes(content, filename)
        except tuple(DOCUMENT_ERROR_MAP) as e:
            logger.warning("[%s] %s: %s", conversation_id, type(e).__name__, e)
            return self._document_reply(DOCUMENT_ERROR_MAP[type(e)])
        except ExtractionError as e:
            logger.warning("[%s] Extraction failed: %s", conversation_id, e)
            return get_reply(ReplyCode.EXTRACTION_FAILED)
        except Exception:
            logger.exception("[%s] Unexpected error while parsing", conversation_id)
            return get_reply(ReplyCode.FILE_ERROR)

        chunks = self.chunker.chunk(parsed.text)
        await self.store.set_document(conversation_id, chunks, parsed.filename)
        logger.info(
            "[%s] Stored %s: %d chars in %d chunks",
            conversation_id,
            parsed.filename,
            len(parsed.text),
            len(chunks),
        )
        return get_reply(ReplyCode.DOCUMENT_READY, name=parsed.filename)

    def _document_reply(self, code: ReplyCode) -> str:
        if code is ReplyCode.FILE_TOO_LARGE:
            return get_reply(
                code, limit=format_file_size(self.parser.max_file_size_bytes)
            )
        return get_reply(code)

    # --- Commands ---

    async def reset(self, conversation_id: str) -> str:
        await self.store.reset(conversation_id)
        return get_reply(ReplyCode.RESET_DONE)

    async def enter_table_mode(self, conversation_id: str) -> str:
        async with self.store.transaction(conversation_id) as conversation:
            return self.table_session.enter(conversation)

    async def exit_table_mode(self, conversation_id: str) -> str:
        async with self.store.transaction(conversation_id) as conversation:
            return self.table_session.exit(conversation)
