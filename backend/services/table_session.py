"""Spreadsheet analysis session.

States:
    PLAIN        free chat, the table session is inactive
    TABLE_BEGIN  waiting for a Google Sheets link
    TABLE_CHAT   spreadsheet connected, questions go through the tool loop

Transitions:
    enter()                  any      -> TABLE_BEGIN
    handle() with a sheet id TABLE_BEGIN -> TABLE_CHAT
    handle() without one     TABLE_BEGIN -> TABLE_BEGIN
    exit()                   any      -> PLAIN
"""

import logging
from collections.abc import Callable

from config import Settings
from llm.base import BaseLLMService
from llm.prompts import SPREADSHEET_CONTEXT_TEMPLATE, TABLE_ANALYST_SYSTEM_PROMPT
from llm.types import Message
from services.conversation_store import Conversation, SessionMode
from services.replies import ReplyCode, get_reply
from services.sheets import GoogleSheetsReader, extract_spreadsheet_id
from services.tool_loop import ModelFailure, ToolFailure, run_with_tools
from services.tools import SpreadsheetToolDispatcher

logger = logging.getLogger(__name__)

ANSWER_PREFIX = "📊 "


class TableSession:
    """Drives the table-analysis sub-flow of a conversation.

    Args:
        llm: Completion service.
        reader_factory: Returns the Google Sheets reader (built lazily).
        settings: Application settings.
    """

    def __init__(
        self,
        llm: BaseLLMService,
        reader_factory: Callable[[], GoogleSheetsReader],
        settings: Settings,
    ) -> None:
        self.llm = llm
        self.reader_factory = reader_factory
        self.settings = settings

    @staticmethod
    def is_active(conversation: Conversation) -> bool:
        return conversation.mode in (SessionMode.TABLE_BEGIN, SessionMode.TABLE_CHAT)

    def enter(self, conversation: Conversation) -> str:
        """Start waiting for a spreadsheet link, dropping any previous one."""
        conversation.clear_table()
        conversation.mode = SessionMode.TABLE_BEGIN
        logger.info("Conversation %s entered table mode", conversation.id)
        return get_reply(ReplyCode.TABLE_ASK_LINK)

    def exit(self, conversation: Conversation) -> str:
        """Leave the table session."""
        if not self.is_active(conversation):
            return get_reply(ReplyCode.TABLE_NOT_ACTIVE)
        conversation.clear_table()
        conversation.mode = SessionMode.PLAIN
        logger.info("Conversation %s left table mode", conversation.id)
        return get_reply(ReplyCode.TABLE_EXITED)

    async def handle(
        self, conversation: Conversation, text: str, urls: list[str]
    ) -> str:
        """Handle a text message while the table session is active."""
        if conversation.mode == SessionMode.TABLE_BEGIN:
            return self._connect(conversation, urls)
        if conversation.mode == SessionMode.TABLE_CHAT:
            return await self._answer(conversation, text)
        raise ValueError(f"Table session is not active in mode {conversation.mode}")

    def _connect(self, conversation: Conversation, urls: list[str]) -> str:
        if not urls:
            return get_reply(ReplyCode.TABLE_NO_LINK)

        url = urls[0]
        spreadsheet_id = extract_spreadsheet_id(url)
        if not spreadsheet_id:
            return get_reply(ReplyCode.TABLE_BAD_LINK)

        conversation.spreadsheet_id = spreadsheet_id
        conversation.spreadsheet_url = url
        conversation.mode = SessionMode.TABLE_CHAT
        conversation.table_messages = [
            Message.system(TABLE_ANALYST_SYSTEM_PROMPT),
            Message.system(
                SPREADSHEET_CONTEXT_TEMPLATE.format(
                    url=url, spreadsheet_id=spreadsheet_id
                )
            ),
        ]
        logger.info(
            "Conversation %s connected spreadsheet %s", conversation.id, spreadsheet_id
        )
        return get_reply(ReplyCode.TABLE_CONNECTED)

    async def _answer(self, conversation: Conversation, text: str) -> str:
        user_message = Message.user(text)
        dispatcher = SpreadsheetToolDispatcher(
            self.reader_factory, conversation.spreadsheet_id or ""
        )

        result = await run_with_tools(
            [*conversation.table_messages, user_message],
            dispatcher.declarations,
            self.llm,
            dispatcher,
            model=self.settings.table_model,
            temperature=self.settings.table_temperature,
            max_tokens=self.settings.table_max_tokens,
            log=logger,
        )

        if isinstance(result, ToolFailure):
            logger.warning(
                "Table analysis aborted in %s: %s (%s)",
                conversation.id,
                result.message,
                result.tool_name,
            )
            return get_reply(ReplyCode.TABLE_ERROR)
        if isinstance(result, ModelFailure):
            logger.error("Table analysis failed in %s: %s", conversation.id, result.as_dict())
            return get_reply(ReplyCode.MODEL_ERROR)

        answer = result.message.content.strip()
        if not answer:
            return get_reply(ReplyCode.EMPTY_ANSWER)

        limit = self.settings.table_max_messages
        conversation.append_table_message(user_message, limit)
        conversation.append_table_message(Message.assistant(answer), limit)
        return f"{ANSWER_PREFIX}{answer}"
