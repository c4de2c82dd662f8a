"""POST /telegram/webhook - Handle one Telegram update.

Orchestrates the update flow:
1. Route by content (command, document, text)
2. Let AssistantService produce the reply
3. Send the reply and remember its message ids for /clear

The webhook always acknowledges the update; failures are answered in chat.
"""

import logging
import uuid

from fastapi import Depends
from fastapi.responses import JSONResponse

from apps.telegram.client import TelegramClient, TelegramError
from apps.telegram.models import TelegramMessage, Update, extract_urls, parse_command
from dependencies import get_assistant_service, get_telegram_client
from responses import ResponseCode, success_response
from services import AssistantService, InboundMessage
from services.replies import ReplyCode, get_reply

logger = logging.getLogger(__name__)

# Commands whose reply must not be remembered: they wipe the conversation
STATELESS_COMMANDS = frozenset({"reset", "clear"})


async def _clear_chat(
    chat_id: int,
    conversation_id: str,
    assistant: AssistantService,
    telegram: TelegramClient,
) -> str:
    """Delete remembered bot messages, then reset the conversation."""
    conversation = await assistant.store.get(conversation_id)
    for message_id in conversation.bot_message_ids:
        try:
            await telegram.delete_message(chat_id, message_id)
        except TelegramError as e:
            logger.warning("Failed to delete message %s: %s", message_id, e)
    await assistant.reset(conversation_id)
    logger.info("Chat %s cleared (%d messages)", chat_id, len(conversation.bot_message_ids))
    return get_reply(ReplyCode.CLEAR_DONE)


async def _handle_command(
    command: str,
    message: TelegramMessage,
    assistant: AssistantService,
    telegram: TelegramClient,
) -> str:
    conversation_id = str(message.chat.id)

    if command == "start":
        name = message.from_user.first_name if message.from_user else ""
        return get_reply(ReplyCode.WELCOME, name=name or "друг")
    if command == "reset":
        return await assistant.reset(conversation_id)
    if command == "clear":
        return await _clear_chat(message.chat.id, conversation_id, assistant, telegram)
    if command == "table":
        return await assistant.enter_table_mode(conversation_id)
    if command in ("exit", "stop"):
        return await assistant.exit_table_mode(conversation_id)
    return get_reply(ReplyCode.HELP)


async def _handle_document(
    message: TelegramMessage,
    assistant: AssistantService,
    telegram: TelegramClient,
) -> str:
    document = message.document
    filename = document.file_name or "document"

    rejection = assistant.check_document(filename, document.file_size)
    if rejection:
        return rejection

    try:
        content = await telegram.download_file(document.file_id)
    except TelegramError as e:
        logger.error("Download of %s failed: %s", filename, e)
        return get_reply(ReplyCode.FILE_ERROR)

    return await assistant.handle_document(str(message.chat.id), filename, content)


async def _build_reply(
    message: TelegramMessage,
    assistant: AssistantService,
    telegram: TelegramClient,
) -> tuple[str, bool]:
    """Return (reply text, whether to remember the sent message ids)."""
    if message.document:
        return await _handle_document(message, assistant, telegram), True

    text = message.text
    if not text:
        return get_reply(ReplyCode.UNSUPPORTED_MESSAGE), True

    command = parse_command(text)
    if command:
        reply = await _handle_command(command, message, assistant, telegram)
        return reply, command not in STATELESS_COMMANDS

    event = InboundMessage(
        conversation_id=str(message.chat.id),
        text=text,
        urls=extract_urls(text, message.entities),
    )
    return await assistant.handle_text(event), True


async def receive_update(
    update: Update,
    assistant: AssistantService = Depends(get_assistant_service),
    telegram: TelegramClient = Depends(get_telegram_client),
) -> JSONResponse:
    """Handle a Telegram update and reply in the chat."""
    request_id = str(uuid.uuid4())[:8]
    message = update.message
    if message is None:
        logger.debug("[%s] Ignoring update %s", request_id, update.update_id)
        return success_response(ResponseCode.UPDATE_IGNORED, request_id=request_id)

    chat_id = message.chat.id
    logger.info("[%s] Update %s from chat %s", request_id, update.update_id, chat_id)

    try:
        reply, remember = await _build_reply(message, assistant, telegram)
    except Exception:
        logger.exception("[%s] Failed to handle update", request_id)
        reply, remember = get_reply(ReplyCode.INTERNAL_ERROR), True

    try:
        message_ids = await telegram.send_message(chat_id, reply)
        if remember:
            await assistant.store.remember_bot_messages(str(chat_id), message_ids)
    except TelegramError as e:
        logger.error("[%s] Failed to send reply: %s", request_id, e)

    return success_response(ResponseCode.SUCCESS, request_id=request_id)
