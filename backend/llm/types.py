"""Message and tool types shared by the LLM layer and the chat pipeline.

Messages follow the chat-completions convention (system/user/assistant/tool
roles, tool calls with ids). Provider implementations translate them to
their own wire format.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

SYSTEM_ROLE = "system"
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
TOOL_ROLE = "tool"
Role = Literal["system", "user", "assistant", "tool"]


class ToolCall(BaseModel):
    """A model-emitted request to invoke a declared tool."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """A single message in a prompt or conversation history."""

    role: Role
    content: str = ""
    tool_call_id: str | None = Field(
        None, description="Id of the tool call answered (role=tool only)"
    )
    tool_calls: list[ToolCall] = Field(
        default_factory=list, description="Tool requests (role=assistant only)"
    )

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=SYSTEM_ROLE, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=USER_ROLE, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=ASSISTANT_ROLE, content=content)

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "Message":
        return cls(role=TOOL_ROLE, content=content, tool_call_id=tool_call_id)


class ToolDeclaration(BaseModel):
    """A tool the model may call, described by a JSON schema."""

    name: str
    description: str
    parameters: dict[str, Any]
