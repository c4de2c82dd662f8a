"""Anthropic Claude LLM implementation.

Translates chat-completions style messages into the Messages API:
- system messages are joined into the ``system`` parameter
- assistant tool calls become ``tool_use`` blocks
- tool results become ``tool_result`` blocks inside a user turn
- consecutive turns of the same role are merged into one turn
"""

import logging
from typing import Any, Literal

import httpx
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
    RateLimitError,
)

from config import get_settings
from llm.types import (
    ASSISTANT_ROLE,
    SYSTEM_ROLE,
    TOOL_ROLE,
    Message,
    ToolCall,
    ToolDeclaration,
)
from utils import retry_async

from .base import BaseLLMService, LLMError, MalformedResponseError

logger = logging.getLogger(__name__)


def to_anthropic_tools(tools: list[ToolDeclaration]) -> list[dict[str, Any]]:
    """Convert tool declarations to Anthropic tool definitions."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "input_schema": tool.parameters,
        }
        for tool in tools
    ]


def to_anthropic_messages(
    messages: list[Message],
) -> tuple[str, list[dict[str, Any]]]:
    """Split messages into a system prompt and Anthropic conversation turns.

    Returns:
        Tuple of (system prompt, list of turns).
    """
    system_parts: list[str] = []
    turns: list[dict[str, Any]] = []

    for message in messages:
        if message.role == SYSTEM_ROLE:
            system_parts.append(message.content)
            continue

        if message.role == TOOL_ROLE:
            role = "user"
            blocks: list[dict[str, Any]] = [
                {
                    "type": "tool_result",
                    "tool_use_id": message.tool_call_id,
                    "content": message.content,
                }
            ]
        elif message.role == ASSISTANT_ROLE:
            role = "assistant"
            blocks = []
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            for call in message.tool_calls:
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": call.arguments,
                    }
                )
        else:
            role = "user"
            blocks = [{"type": "text", "text": message.content}]

        if not blocks:
            continue

        # The API expects alternating roles
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"].extend(blocks)
        else:
            turns.append({"role": role, "content": blocks})

    # The first turn has to come from the user
    while turns and turns[0]["role"] == "assistant":
        turns.pop(0)

    return "\n\n".join(system_parts), turns


def from_anthropic_response(response: Any) -> Message:
    """Build an assistant Message from a Messages API response."""
    blocks = getattr(response, "content", None)
    if not blocks:
        raise MalformedResponseError()

    text_parts: list[str] = []
    tool_calls: list[ToolCall] = []
    for block in blocks:
        if block.type == "text":
            text_parts.append(block.text)
        elif block.type == "tool_use":
            tool_calls.append(
                ToolCall(id=block.id, name=block.name, arguments=dict(block.input))
            )

    return Message(
        role=ASSISTANT_ROLE,
        content="".join(text_parts),
        tool_calls=tool_calls,
    )


class AnthropicService(BaseLLMService):
    """Claude LLM service via Anthropic API."""

    def __init__(self, model: str | None = None) -> None:
        settings = get_settings()
        self.model = model or settings.llm_model
        self.settings = settings

        # Retries are handled explicitly below, not by the SDK
        self._client = AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=httpx.Timeout(timeout=settings.llm_timeout_seconds, connect=10.0),
            max_retries=0,
        )

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
        """Generate a response using Claude."""
        system, turns = to_anthropic_messages(messages)

        request: dict[str, Any] = {
            "model": model or self.model,
            "max_tokens": max_tokens or self.settings.llm_max_tokens,
            "temperature": temperature
            if temperature is not None
            else self.settings.llm_temperature,
            "messages": turns,
        }
        if system:
            request["system"] = system
        if tools:
            request["tools"] = to_anthropic_tools(tools)
            request["tool_choice"] = {"type": tool_choice}

        try:
            response = await retry_async(
                lambda: self._client.messages.create(**request),
                retry_on=(APITimeoutError, APIConnectionError),
                attempts=self.settings.retry_attempts,
                label="Claude completion",
            )
        except APITimeoutError as e:
            logger.error("Claude request timed out: %s", e)
            raise LLMError("LLM request timed out", status=504) from e
        except APIConnectionError as e:
            logger.error("Claude connection error: %s", e)
            raise LLMError("LLM service unreachable", status=503) from e
        except RateLimitError as e:
            logger.warning("Claude rate limit hit: %s", e)
            raise LLMError("Rate limit exceeded. Please try again.", status=429) from e
        except APIStatusError as e:
            logger.error("Claude API error %s: %s", e.status_code, e)
            raise LLMError(f"LLM error: {e}", status=e.status_code) from e
        except APIError as e:
            logger.error("Claude API error: %s", e)
            raise LLMError(f"LLM error: {e}") from e

        message = from_anthropic_response(response)
        logger.debug(
            "Claude replied: %d chars, %d tool call(s), stop_reason=%s",
            len(message.content),
            len(message.tool_calls),
            getattr(response, "stop_reason", None),
        )
        return message

    async def close(self) -> None:
        await self._client.close()
