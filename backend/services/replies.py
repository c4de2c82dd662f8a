"""User-facing reply texts.

Every outcome of an inbound event maps to one of these codes; errors never
leak exception text to the chat.
"""

from enum import Enum


class ReplyCode(str, Enum):
    """Reply codes for chat answers."""

    # Commands
    WELCOME = "welcome"
    HELP = "help"
    RESET_DONE = "reset_done"
    CLEAR_DONE = "clear_done"

    # Spreadsheet session
    TABLE_ASK_LINK = "table_ask_link"
    TABLE_NO_LINK = "table_no_link"
    TABLE_BAD_LINK = "table_bad_link"
    TABLE_CONNECTED = "table_connected"
    TABLE_EXITED = "table_exited"
    TABLE_NOT_ACTIVE = "table_not_active"
    TABLE_ERROR = "table_error"

    # Documents
    DOCUMENT_READY = "document_ready"
    UNSUPPORTED_FORMAT = "unsupported_format"
    EXTRACTION_FAILED = "extraction_failed"
    FILE_TOO_LARGE = "file_too_large"
    FILE_ERROR = "file_error"

    # Generation
    MODEL_ERROR = "model_error"
    EMPTY_ANSWER = "empty_answer"
    UNSUPPORTED_MESSAGE = "unsupported_message"
    INTERNAL_ERROR = "internal_error"


HELP_TEXT = (
    "📌 Доступные команды:\n"
    "/start — запуск\n"
    "/help — список команд\n"
    "/reset — сбросить память\n"
    "/clear — очистить историю чата\n"
    "/table — подключить Google таблицу\n"
    "/exit — выйти из режима таблицы\n\n"
    "Пришлите файл PDF, DOCX, XLSX или PPTX, чтобы задавать вопросы по нему."
)

REPLY_MESSAGES: dict[ReplyCode, str] = {
    ReplyCode.WELCOME: "👋 Привет, {name}!\n\n"
    + HELP_TEXT
    + "\n\nЗадавай вопросы, и я постараюсь помочь!",
    ReplyCode.HELP: HELP_TEXT,
    ReplyCode.RESET_DONE: "Контекст был сброшен!",
    ReplyCode.CLEAR_DONE: "История чата и сообщения удалены!",
    ReplyCode.TABLE_ASK_LINK: "📊 Пришлите ссылку на Google таблицу.",
    ReplyCode.TABLE_NO_LINK: "❌ Пришлите ссылку на Google Sheets",
    ReplyCode.TABLE_BAD_LINK: "❌ Не удалось извлечь ID таблицы",
    ReplyCode.TABLE_CONNECTED: "✅ Таблица подключена. Задайте вопрос по данным.",
    ReplyCode.TABLE_EXITED: "Режим таблицы завершён. Можно общаться как обычно.",
    ReplyCode.TABLE_NOT_ACTIVE: "Режим таблицы не активен.",
    ReplyCode.TABLE_ERROR: "❌ Ошибка анализа таблицы",
    ReplyCode.DOCUMENT_READY: "Файл «{name}» успешно обработан! Задавайте ваши вопросы.",
    ReplyCode.UNSUPPORTED_FORMAT: "❌ Этот формат файла не поддерживается. "
    "Поддерживаются: PDF, DOCX, XLSX, PPTX, TXT.",
    ReplyCode.EXTRACTION_FAILED: "Не удалось извлечь текст из файла. Попробуйте снова.",
    ReplyCode.FILE_TOO_LARGE: "❌ Файл слишком большой (максимум {limit}).",
    ReplyCode.FILE_ERROR: "❌ Ошибка обработки файла.",
    ReplyCode.MODEL_ERROR: "❌ Ошибка генерации ответа. Попробуйте позже.",
    ReplyCode.EMPTY_ANSWER: "❌ Модель вернула пустой ответ",
    ReplyCode.UNSUPPORTED_MESSAGE: "Я понимаю только текст и документы.",
    ReplyCode.INTERNAL_ERROR: "❌ Что-то пошло не так. Попробуйте ещё раз.",
}


def get_reply(code: ReplyCode, **kwargs: object) -> str:
    """Get the reply text for a code, filling in placeholders."""
    template = REPLY_MESSAGES.get(code, REPLY_MESSAGES[ReplyCode.INTERNAL_ERROR])
    return template.format(**kwargs) if kwargs else template
