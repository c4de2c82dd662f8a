"""Tool declarations and dispatch for the spreadsheet session."""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from llm.types import ToolCall, ToolDeclaration
from services.sheets import GoogleSheetsReader, SpreadsheetReadError

logger = logging.getLogger(__name__)

READ_SPREADSHEET = "read_spreadsheet"


class ToolDispatchError(Exception):
    """Raised when a tool call cannot be executed."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class UnknownToolError(ToolDispatchError):
    """Raised when the model calls a tool that was never declared."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f"Unknown tool: {tool_name}")


class ReadSpreadsheetArgs(BaseModel):
    """Arguments of the read_spreadsheet tool."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    spreadsheet_id: str = Field(..., alias="spreadsheetId", min_length=1)
    sheet_name: str | None = Field(None, alias="sheetName")


READ_SPREADSHEET_DECLARATION = ToolDeclaration(
    name=READ_SPREADSHEET,
    description="Read all available data from a Google Sheet",
    parameters={
        "type": "object",
        "properties": {
            "spreadsheetId": {
                "type": "string",
                "description": "Google Sheets document ID",
            },
            "sheetName": {
                "type": "string",
                "description": "Optional sheet name",
            },
        },
        "required": ["spreadsheetId"],
    },
)


class SpreadsheetToolDispatcher:
    """Executes tool calls against one connected spreadsheet.

    Calls for any other spreadsheet id are rejected.

    Args:
        reader_factory: Returns the Google Sheets reader. Called when a
            tool call is dispatched.
        spreadsheet_id: The spreadsheet connected to the session.
    """

    declarations = [READ_SPREADSHEET_DECLARATION]

    def __init__(
        self,
        reader_factory: Callable[[], GoogleSheetsReader],
        spreadsheet_id: str,
    ) -> None:
        self.reader_factory = reader_factory
        self.spreadsheet_id = spreadsheet_id

    async def __call__(self, tool_call: ToolCall) -> dict[str, Any]:
        """Dispatch a tool call and return its JSON-serializable result.

        Raises:
            UnknownToolError: If the tool name is not declared.
            ToolDispatchError: If arguments are invalid or the call fails.
        """
        if tool_call.name != READ_SPREADSHEET:
            raise UnknownToolError(tool_call.name)

        arguments = dict(tool_call.arguments)
        arguments.setdefault("spreadsheetId", self.spreadsheet_id)
        try:
            args = ReadSpreadsheetArgs.model_validate(arguments)
        except ValidationError as e:
            raise ToolDispatchError(
                tool_call.name, f"Invalid arguments: {e.errors()}"
            ) from e

        if args.spreadsheet_id != self.spreadsheet_id:
            raise ToolDispatchError(
                tool_call.name,
                f"Spreadsheet {args.spreadsheet_id} is not connected to this chat",
            )

        try:
            reader = self.reader_factory()
        except Exception as e:
            logger.error("Spreadsheet reader unavailable: %s", e)
            raise ToolDispatchError(
                tool_call.name, "Spreadsheet reader unavailable"
            ) from e

        try:
            data = await reader.read(args.spreadsheet_id, args.sheet_name)
        except SpreadsheetReadError as e:
            raise ToolDispatchError(tool_call.name, str(e)) from e

        return data.to_dict()
