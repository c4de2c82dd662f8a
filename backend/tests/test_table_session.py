"""Tests for the spreadsheet session state machine."""

import pytest

from conftest import FakeLLM
from llm.base import LLMError
from llm.types import ASSISTANT_ROLE, SYSTEM_ROLE, Message, ToolCall
from services.conversation_store import Conversation, SessionMode
from services.replies import ReplyCode, get_reply
from services.sheets import SpreadsheetReadError
from services.table_session import ANSWER_PREFIX, TableSession
from services.tools import READ_SPREADSHEET

SHEET_URL = "https://docs.google.com/spreadsheets/d/1AbC-d_9/edit#gid=0"


def connected(session, conversation):
    session.enter(conversation)
    session._connect(conversation, [SHEET_URL])
    return conversation


class TestTableSession:
    """Tests for TableSession."""

    def setup_method(self):
        """Set up test fixtures."""
        self.conversation = Conversation(id="1")

    def make_session(self, llm, reader, settings):
        return TableSession(llm=llm, reader_factory=lambda: reader, settings=settings)

    def test_enter(self, fake_llm, mock_sheets_reader, mock_settings):
        """Test /table moves to TABLE_BEGIN and asks for a link."""
        session = self.make_session(fake_llm, mock_sheets_reader, mock_settings)

        reply = session.enter(self.conversation)

        assert reply == get_reply(ReplyCode.TABLE_ASK_LINK)
        assert self.conversation.mode == SessionMode.TABLE_BEGIN
        assert session.is_active(self.conversation)

    def test_enter_drops_previous_spreadsheet(
        self, fake_llm, mock_sheets_reader, mock_settings
    ):
        """Test re-entering forgets the connected spreadsheet."""
        session = self.make_session(fake_llm, mock_sheets_reader, mock_settings)
        connected(session, self.conversation)

        session.enter(self.conversation)

        assert self.conversation.spreadsheet_id is None
        assert self.conversation.table_messages == []

    @pytest.mark.asyncio
    async def test_message_without_link(self, fake_llm, mock_sheets_reader, mock_settings):
        """Test text without a URL keeps waiting."""
        session = self.make_session(fake_llm, mock_sheets_reader, mock_settings)
        session.enter(self.conversation)

        reply = await session.handle(self.conversation, "here it is", [])

        assert reply == "❌ Пришлите ссылку на Google Sheets"
        assert self.conversation.mode == SessionMode.TABLE_BEGIN
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_link_without_id(self, fake_llm, mock_sheets_reader, mock_settings):
        """Test a URL that is not a spreadsheet link is refused."""
        session = self.make_session(fake_llm, mock_sheets_reader, mock_settings)
        session.enter(self.conversation)

        reply = await session.handle(
            self.conversation, "https://example.com", ["https://example.com"]
        )

        assert reply == get_reply(ReplyCode.TABLE_BAD_LINK)
        assert self.conversation.mode == SessionMode.TABLE_BEGIN

    @pytest.mark.asyncio
    async def test_connect(self, fake_llm, mock_sheets_reader, mock_settings):
        """Test a sheet link connects and seeds the system messages."""
        session = self.make_session(fake_llm, mock_sheets_reader, mock_settings)
        session.enter(self.conversation)

        reply = await session.handle(self.conversation, SHEET_URL, [SHEET_URL])

        assert reply == get_reply(ReplyCode.TABLE_CONNECTED)
        assert self.conversation.mode == SessionMode.TABLE_CHAT
        assert self.conversation.spreadsheet_id == "1AbC-d_9"
        assert [m.role for m in self.conversation.table_messages] == [
            SYSTEM_ROLE,
            SYSTEM_ROLE,
        ]
        assert SHEET_URL in self.conversation.table_messages[1].content
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_question_with_tool_call(self, mock_sheets_reader, mock_settings):
        """Test a question runs the tool loop and records the exchange."""
        llm = FakeLLM(
            [
                Message(
                    role=ASSISTANT_ROLE,
                    tool_calls=[
                        ToolCall(
                            id="t1",
                            name=READ_SPREADSHEET,
                            arguments={"spreadsheetId": "1AbC-d_9"},
                        )
                    ],
                ),
                "Total revenue is 250.",
            ]
        )
        session = self.make_session(llm, mock_sheets_reader, mock_settings)
        connected(session, self.conversation)

        reply = await session.handle(self.conversation, "Total revenue?", [])

        assert reply == f"{ANSWER_PREFIX}Total revenue is 250."
        mock_sheets_reader.read.assert_awaited_once_with("1AbC-d_9", None)
        assert llm.calls[0]["model"] == "claude-table-test"
        assert llm.calls[0]["temperature"] == 0.0
        assert [m.content for m in self.conversation.table_messages[2:]] == [
            "Total revenue?",
            "Total revenue is 250.",
        ]

    @pytest.mark.asyncio
    async def test_tool_failure(self, mock_sheets_reader, mock_settings):
        """Test a failed sheet read gives the table error and keeps state."""
        mock_sheets_reader.read.side_effect = SpreadsheetReadError("Spreadsheet not found")
        llm = FakeLLM(
            [Message(role=ASSISTANT_ROLE, tool_calls=[ToolCall(id="t1", name=READ_SPREADSHEET)])]
        )
        session = self.make_session(llm, mock_sheets_reader, mock_settings)
        connected(session, self.conversation)

        reply = await session.handle(self.conversation, "Total?", [])

        assert reply == get_reply(ReplyCode.TABLE_ERROR)
        assert self.conversation.mode == SessionMode.TABLE_CHAT
        assert len(self.conversation.table_messages) == 2

    @pytest.mark.asyncio
    async def test_model_failure(self, mock_sheets_reader, mock_settings):
        """Test a model error gives the generation error."""
        llm = FakeLLM([LLMError("overloaded", 503)])
        session = self.make_session(llm, mock_sheets_reader, mock_settings)
        connected(session, self.conversation)

        reply = await session.handle(self.conversation, "Total?", [])

        assert reply == get_reply(ReplyCode.MODEL_ERROR)
        assert len(self.conversation.table_messages) == 2

    @pytest.mark.asyncio
    async def test_empty_answer(self, mock_sheets_reader, mock_settings):
        """Test an empty final answer is reported."""
        llm = FakeLLM(["   "])
        session = self.make_session(llm, mock_sheets_reader, mock_settings)
        connected(session, self.conversation)

        reply = await session.handle(self.conversation, "Total?", [])

        assert reply == get_reply(ReplyCode.EMPTY_ANSWER)

    @pytest.mark.asyncio
    async def test_answer_without_reader(self, mock_settings):
        """Test a question the model answers directly never builds the reader."""

        def broken_factory():
            raise ValueError("GOOGLE_CREDENTIALS is not valid JSON, file path, or base64")

        llm = FakeLLM(["The sheet has two columns."])
        session = TableSession(
            llm=llm, reader_factory=broken_factory, settings=mock_settings
        )
        connected(session, self.conversation)

        reply = await session.handle(self.conversation, "Columns?", [])

        assert reply == f"{ANSWER_PREFIX}The sheet has two columns."

    @pytest.mark.asyncio
    async def test_reader_unavailable_on_tool_call(self, mock_settings):
        """Test a reader that cannot be built gives the table error."""

        def broken_factory():
            raise ValueError("GOOGLE_CREDENTIALS is not valid JSON, file path, or base64")

        llm = FakeLLM(
            [Message(role=ASSISTANT_ROLE, tool_calls=[ToolCall(id="t1", name=READ_SPREADSHEET)])]
        )
        session = TableSession(
            llm=llm, reader_factory=broken_factory, settings=mock_settings
        )
        connected(session, self.conversation)

        reply = await session.handle(self.conversation, "Total?", [])

        assert reply == get_reply(ReplyCode.TABLE_ERROR)
        assert self.conversation.mode == SessionMode.TABLE_CHAT

    @pytest.mark.asyncio
    async def test_table_messages_bounded(self, mock_sheets_reader, mock_settings):
        """Test the session keeps system messages and the newest exchanges."""
        mock_settings.table_max_messages = 6
        llm = FakeLLM([f"a{i}" for i in range(4)])
        session = self.make_session(llm, mock_sheets_reader, mock_settings)
        connected(session, self.conversation)

        for i in range(4):
            await session.handle(self.conversation, f"q{i}", [])

        messages = self.conversation.table_messages
        assert len(messages) == 6
        assert [m.role for m in messages[:2]] == [SYSTEM_ROLE, SYSTEM_ROLE]
        assert [m.content for m in messages[2:]] == ["q2", "a2", "q3", "a3"]

    def test_exit(self, fake_llm, mock_sheets_reader, mock_settings):
        """Test /exit returns to plain mode."""
        session = self.make_session(fake_llm, mock_sheets_reader, mock_settings)
        connected(session, self.conversation)

        reply = session.exit(self.conversation)

        assert reply == get_reply(ReplyCode.TABLE_EXITED)
        assert self.conversation.mode == SessionMode.PLAIN
        assert self.conversation.spreadsheet_id is None

    def test_exit_when_inactive(self, fake_llm, mock_sheets_reader, mock_settings):
        """Test /exit outside the session says so."""
        session = self.make_session(fake_llm, mock_sheets_reader, mock_settings)

        assert session.exit(self.conversation) == get_reply(ReplyCode.TABLE_NOT_ACTIVE)
