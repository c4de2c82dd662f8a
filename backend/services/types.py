"""Shared types and dataclasses for services.

Transport-independent shapes of inbound events and extracted documents.
"""

from dataclasses import dataclass, field


@dataclass
class InboundMessage:
    """A text message from a chat, with the URLs detected in it."""

    conversation_id: str
    text: str
    urls: list[str] = field(default_factory=list)


@dataclass
class ParsedDocument:
    """Result of extracting text from an uploaded file."""

    text: str
    filename: str
    document_type: str
    page_count: int | None = None
