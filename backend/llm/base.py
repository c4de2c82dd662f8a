"""Base LLM service interface.

Defines the contract that all LLM providers must implement.
"""

from abc import ABC, abstractmethod
from typing import Literal

from llm.types import Message, ToolDeclaration


class LLMError(Exception):
    """Raised when a completion call fails (network, timeout, non-2xx)."""

    def __init__(self, message: str, status: int = 500) -> None:
        super().__init__(message)
        self.status = status


class MalformedResponseError(LLMError):
    """Raised when the provider answers without any usable content."""

    def __init__(self, message: str = "LLM response has no choices") -> None:
        super().__init__(message, status=502)


class BaseLLMService(ABC):
    """Abstract base class for LLM services.

    All LLM providers (Anthropic, OpenAI-compatible, etc.) must implement these methods.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        tools: list[ToolDeclaration] | None = None,
        tool_choice: Literal["auto", "none"] = "auto",
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Message:
        """Run one completion over an ordered message sequence.

        Args:
            messages: Prompt messages in order (system/user/assistant/tool).
            tools: Tool declarations the model may call. None disables tools.
            tool_choice: Tool selection mode when tools are declared. "none"
                keeps the declarations but forbids further calls.
            model: Override model name.
            temperature: Sampling temperature (0-1).
            max_tokens: Maximum tokens to generate.

        Returns:
            The assistant message (content and/or tool calls).

        Raises:
            LLMError: If the call fails.
            MalformedResponseError: If the response carries no content.
        """

    async def close(self) -> None:
        """Release network resources held by the client."""
