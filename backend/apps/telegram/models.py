"""Telegram Bot API update schemas.

Only the fields the bot reads are modelled; everything else is ignored.
See https://core.telegram.org/bots/api#update
"""

from pydantic import BaseModel, ConfigDict, Field


class TelegramModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Chat(TelegramModel):
    id: int
    type: str = "private"


class User(TelegramModel):
    id: int
    first_name: str = ""
    username: str | None = None


class MessageEntity(TelegramModel):
    """A special entity in a text message (URL, command, ...)."""

    type: str
    offset: int = Field(..., description="Offset in UTF-16 code units")
    length: int = Field(..., description="Length in UTF-16 code units")
    url: str | None = Field(None, description="Target URL for text_link entities")


class Document(TelegramModel):
    file_id: str
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class TelegramMessage(TelegramModel):
    message_id: int
    chat: Chat
    from_user: User | None = Field(None, alias="from")
    text: str | None = None
    caption: str | None = None
    entities: list[MessageEntity] = Field(default_factory=list)
    caption_entities: list[MessageEntity] = Field(default_factory=list)
    document: Document | None = None


class Update(TelegramModel):
    update_id: int
    message: TelegramMessage | None = None
    edited_message: TelegramMessage | None = None


def entity_text(text: str, entity: MessageEntity) -> str:
    """Slice an entity out of text; Telegram offsets count UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    start = entity.offset * 2
    end = start + entity.length * 2
    return encoded[start:end].decode("utf-16-le", errors="ignore")


def extract_urls(text: str, entities: list[MessageEntity]) -> list[str]:
    """URLs of url and text_link entities, in message order."""
    urls = []
    for entity in entities:
        if entity.type == "url":
            urls.append(entity_text(text, entity))
        elif entity.type == "text_link" and entity.url:
            urls.append(entity.url)
    return urls


def parse_command(text: str) -> str | None:
    """Return the command name of a "/command@bot args" message, else None."""
    if not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0][1:]
    return head.split("@", 1)[0].lower() or None
