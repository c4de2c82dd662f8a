"""LLM prompts for various use cases."""

from llm.prompts.assistant import ASSISTANT_SYSTEM_PROMPT
from llm.prompts.document_qa import (
    DOCUMENT_CONTEXT_TEMPLATE,
    DOCUMENT_QA_SYSTEM_PROMPT,
    NO_RELEVANT_CONTEXT_TEMPLATE,
)
from llm.prompts.table_analyst import (
    SPREADSHEET_CONTEXT_TEMPLATE,
    TABLE_ANALYST_SYSTEM_PROMPT,
)

__all__ = [
    "ASSISTANT_SYSTEM_PROMPT",
    "DOCUMENT_CONTEXT_TEMPLATE",
    "DOCUMENT_QA_SYSTEM_PROMPT",
    "NO_RELEVANT_CONTEXT_TEMPLATE",
    "SPREADSHEET_CONTEXT_TEMPLATE",
    "TABLE_ANALYST_SYSTEM_PROMPT",
]
