"""LLM module - unified interface for language model interactions.

Usage:
    from llm import LLMService, Message

    llm = LLMService()
    reply = await llm.complete([Message.system(prompt), Message.user(question)])

Structure:
    - types.py: Message, ToolCall and ToolDeclaration models
    - base.py: Abstract interface (BaseLLMService) and errors
    - anthropic.py: Claude implementation (AnthropicService)
"""

from llm.anthropic import AnthropicService
from llm.base import BaseLLMService, LLMError, MalformedResponseError
from llm.types import Message, ToolCall, ToolDeclaration

# Default provider - can be swapped by changing this alias
LLMService = AnthropicService

__all__ = [
    "AnthropicService",
    "BaseLLMService",
    "LLMError",
    "LLMService",
    "MalformedResponseError",
    "Message",
    "ToolCall",
    "ToolDeclaration",
]
