"""Two-phase model interaction with tool dispatch.

1. Call the model with tool declarations (tool_choice="auto").
2. If it requested tools, run each call sequentially in the order returned
   and append one tool-role message per call.
3. Call the model again without tools; that answer is final.

Tool results are injected in request order so every ``tool_call_id``
follows the assistant message that emitted it.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from llm.base import BaseLLMService, LLMError
from llm.types import ASSISTANT_ROLE, Message, ToolCall, ToolDeclaration
from services.tools import ToolDispatchError

logger = logging.getLogger(__name__)

ToolDispatcher = Callable[[ToolCall], Awaitable[Any]]


@dataclass
class ToolLoopSuccess:
    """The model produced a final answer."""

    message: Message
    messages: list[Message] = field(default_factory=list)


@dataclass
class ToolFailure:
    """A tool call failed or named an unknown tool; the loop was aborted."""

    tool_name: str
    message: str


@dataclass
class ModelFailure:
    """A completion call failed or returned a malformed response."""

    message: str
    status: int = 500

    def as_dict(self) -> dict[str, Any]:
        return {"error": {"message": self.message, "status": self.status}}


ToolLoopResult = ToolLoopSuccess | ToolFailure | ModelFailure


async def run_with_tools(
    messages: list[Message],
    tool_declarations: list[ToolDeclaration],
    llm: BaseLLMService,
    dispatcher: ToolDispatcher,
    *,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    log: logging.Logger | None = None,
) -> ToolLoopResult:
    """Run the model, resolve requested tool calls, and get the final answer.

    Args:
        messages: Prompt messages. Not mutated; the loop works on a copy.
        tool_declarations: Tools offered on the first call. The follow-up call
            declares them again with tool_choice "none".
        llm: Completion service.
        dispatcher: Coroutine executing one tool call.
        model: Override model name.
        temperature: Sampling temperature.
        max_tokens: Token budget per call.
        log: Logger for diagnostics. Defaults to this module's logger.

    Returns:
        ToolLoopSuccess with the final assistant message and the full message
        list sent on the last call, or ToolFailure / ModelFailure.
    """
    log = log or logger
    conversation = list(messages)
    options = {"model": model, "temperature": temperature, "max_tokens": max_tokens}

    try:
        reply = await llm.complete(
            list(conversation), tools=tool_declarations, tool_choice="auto", **options
        )
    except LLMError as e:
        log.error("First completion failed: %s", e)
        return ModelFailure(str(e), e.status)

    if not reply.tool_calls:
        log.debug("Model answered without tools")
        conversation.append(reply)
        return ToolLoopSuccess(message=reply, messages=conversation)

    log.info(
        "Model requested %d tool call(s): %s",
        len(reply.tool_calls),
        [call.name for call in reply.tool_calls],
    )
    conversation.append(
        Message(role=ASSISTANT_ROLE, content=reply.content, tool_calls=reply.tool_calls)
    )

    for call in reply.tool_calls:
        try:
            result = await dispatcher(call)
        except ToolDispatchError as e:
            log.warning("Tool call %s (%s) failed: %s", call.id, call.name, e)
            return ToolFailure(tool_name=call.name, message=str(e))

        conversation.append(
            Message.tool(call.id, json.dumps(result, ensure_ascii=False, indent=2))
        )
        log.debug("Tool call %s (%s) resolved", call.id, call.name)

    try:
        # Tool blocks in the history need the tools declared
        final = await llm.complete(
            list(conversation), tools=tool_declarations, tool_choice="none", **options
        )
    except LLMError as e:
        log.error("Follow-up completion failed: %s", e)
        return ModelFailure(str(e), e.status)

    return ToolLoopSuccess(message=final, messages=conversation)
