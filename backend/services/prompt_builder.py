"""Prompt assembly for plain and document chat.

Message order is fixed:
1. persona system message
2. document context (only when a document is loaded)
3. trailing window of conversation history
4. the current user message, exactly once
"""

from dataclasses import dataclass

from llm.prompts import (
    ASSISTANT_SYSTEM_PROMPT,
    DOCUMENT_CONTEXT_TEMPLATE,
    DOCUMENT_QA_SYSTEM_PROMPT,
    NO_RELEVANT_CONTEXT_TEMPLATE,
)
from llm.types import Message
from services.conversation_store import Conversation
from services.relevance import RelevanceSelector

TRUNCATION_MARKER = "\n[truncated]"
CHUNK_SEPARATOR = "\n\n---\n\n"


@dataclass
class PromptOptions:
    """Knobs for one prompt assembly."""

    system_prompt: str = ASSISTANT_SYSTEM_PROMPT
    document_system_prompt: str = DOCUMENT_QA_SYSTEM_PROMPT
    history_window: int = 20
    max_context_chars: int = 12000


def truncate_excerpt(excerpt: str, max_chars: int) -> str:
    """Cut excerpt to max_chars, ending with the truncation marker when cut."""
    if len(excerpt) <= max_chars:
        return excerpt
    keep = max(max_chars - len(TRUNCATION_MARKER), 0)
    return excerpt[:keep] + TRUNCATION_MARKER


class PromptAssembler:
    """Builds the message sequence for a model call. Has no side effects."""

    def __init__(self, selector: RelevanceSelector) -> None:
        self.selector = selector

    def assemble(
        self,
        conversation: Conversation,
        user_message: str,
        options: PromptOptions | None = None,
    ) -> list[Message]:
        """Compose persona, document context, history window and user message.

        Args:
            conversation: Current conversation state (read only).
            user_message: The message being answered. Must not yet be in history.
            options: Prompt options; defaults apply when omitted.

        Returns:
            Ordered list of messages for the model.
        """
        options = options or PromptOptions()

        if conversation.has_document:
            messages = [Message.system(options.document_system_prompt)]
            messages.append(self._document_context(conversation, user_message, options))
        else:
            messages = [Message.system(options.system_prompt)]

        window = max(options.history_window, 0)
        if window:
            messages.extend(m.model_copy() for m in conversation.history[-window:])

        messages.append(Message.user(user_message))
        return messages

    def _document_context(
        self,
        conversation: Conversation,
        user_message: str,
        options: PromptOptions,
    ) -> Message:
        selected = self.selector.select(conversation.document_chunks, user_message)
        name = conversation.document_name or "document"

        if not selected:
            return Message.system(NO_RELEVANT_CONTEXT_TEMPLATE.format(document_name=name))

        excerpt = truncate_excerpt(
            CHUNK_SEPARATOR.join(selected), options.max_context_chars
        )
        return Message.system(
            DOCUMENT_CONTEXT_TEMPLATE.format(document_name=name, excerpt=excerpt)
        )
