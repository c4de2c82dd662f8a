"""Services module for the chat pipeline.

Contains the transport-independent business logic:
- Chunking and keyword relevance selection
- Conversation state (history, document, session mode)
- Prompt assembly
- Tool orchestration and the spreadsheet session
- Document parsing

Note: Service instances are managed via dependencies.py using FastAPI DI.
"""

from services.assistant import AssistantService
from services.chunker import Chunker, InvalidChunkSizeError, chunk_text
from services.conversation_store import (
    Conversation,
    ConversationStore,
    InMemoryConversationStore,
    SessionMode,
)
from services.document import (
    DocumentParseError,
    DocumentParser,
    EmptyDocumentError,
    ExtractionError,
    FileTooLargeError,
    UnsupportedFileTypeError,
)
from services.prompt_builder import PromptAssembler, PromptOptions
from services.relevance import FallbackPolicy, RelevanceSelector, select_relevant
from services.sheets import GoogleSheetsReader, SpreadsheetReadError
from services.table_session import TableSession
from services.tool_loop import (
    ModelFailure,
    ToolFailure,
    ToolLoopResult,
    ToolLoopSuccess,
    run_with_tools,
)
from services.tools import ToolDispatchError, UnknownToolError
from services.types import InboundMessage, ParsedDocument

__all__ = [
    # Core services
    "AssistantService",
    "TableSession",
    "PromptAssembler",
    "PromptOptions",
    "RelevanceSelector",
    "FallbackPolicy",
    "select_relevant",
    "run_with_tools",
    "ToolLoopResult",
    "ToolLoopSuccess",
    "ToolFailure",
    "ModelFailure",
    "ToolDispatchError",
    "UnknownToolError",
    # State
    "Conversation",
    "ConversationStore",
    "InMemoryConversationStore",
    "SessionMode",
    # Document services
    "Chunker",
    "chunk_text",
    "InvalidChunkSizeError",
    "DocumentParser",
    "DocumentParseError",
    "EmptyDocumentError",
    "ExtractionError",
    "FileTooLargeError",
    "UnsupportedFileTypeError",
    # Spreadsheets
    "GoogleSheetsReader",
    "SpreadsheetReadError",
    # Types
    "InboundMessage",
    "ParsedDocument",
]
