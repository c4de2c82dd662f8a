"""Tests for the document parsing service."""

import io

import pytest
from docx import Document as DocxDocument
from openpyxl import Workbook

from services.document import (
    DocumentParser,
    EmptyDocumentError,
    FileTooLargeError,
    UnsupportedFileTypeError,
)


class TestDocumentParser:
    """Tests for DocumentParser."""

    def setup_method(self):
        """Set up test fixtures."""
        self.parser = DocumentParser(max_file_size_bytes=10 * 1024 * 1024)

    def test_sanitize_filename_basic(self):
        """Test basic filename sanitization."""
        result = self.parser.sanitize_filename("document.pdf")
        assert result == "document.pdf"

    def test_sanitize_filename_path_traversal(self):
        """Test path traversal prevention."""
        result = self.parser.sanitize_filename("../../../etc/passwd")
        assert "/" not in result
        assert ".." not in result

    def test_sanitize_filename_special_chars(self):
        """Test special character removal."""
        result = self.parser.sanitize_filename('doc<>:"|?*.pdf')
        assert "<" not in result
        assert ">" not in result
        assert ":" not in result

    def test_sanitize_filename_long_name(self):
        """Test long filename truncation."""
        result = self.parser.sanitize_filename("a" * 300 + ".pdf")
        assert len(result) <= 255
        assert result.endswith(".pdf")

    def test_sanitize_filename_empty(self):
        """Test empty filename handling."""
        assert self.parser.sanitize_filename("").startswith("document")

    def test_validate_file_supported_types(self):
        """Test validation of supported file types."""
        for ext in (".pdf", ".docx", ".xlsx", ".pptx", ".txt"):
            assert self.parser.validate_file(f"doc{ext}", 1000) == ext

    def test_validate_file_unsupported_type(self):
        """Test rejection of unsupported file types."""
        with pytest.raises(UnsupportedFileTypeError):
            self.parser.validate_file("doc.exe", 1000)

        with pytest.raises(UnsupportedFileTypeError):
            self.parser.validate_file("photo.jpg", 1000)

    def test_validate_file_too_large(self):
        """Test rejection of files exceeding size limit."""
        with pytest.raises(FileTooLargeError):
            self.parser.validate_file("doc.pdf", 100 * 1024 * 1024)

    def test_validate_file_unknown_size(self):
        """Test a missing size is accepted."""
        assert self.parser.validate_file("doc.pdf", None) == ".pdf"

    def test_validate_file_case_insensitive(self):
        """Test file extension is case insensitive."""
        assert self.parser.validate_file("DOC.PDF", 1000) == ".pdf"

    @pytest.mark.asyncio
    async def test_parse_txt(self):
        """Test parsing plain text content."""
        result = await self.parser.parse_bytes(
            "This is test content.\n\nSecond paragraph.".encode(), "notes.txt"
        )

        assert "This is test content" in result.text
        assert result.filename == "notes.txt"
        assert result.document_type == "txt"

    @pytest.mark.asyncio
    async def test_parse_docx(self):
        """Test paragraphs and tables are extracted from Word files."""
        doc = DocxDocument()
        doc.add_paragraph("Quarterly report")
        table = doc.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "Revenue"
        table.rows[0].cells[1].text = "100"
        buffer = io.BytesIO()
        doc.save(buffer)

        result = await self.parser.parse_bytes(buffer.getvalue(), "report.docx")

        assert "Quarterly report" in result.text
        assert "Revenue | 100" in result.text

    @pytest.mark.asyncio
    async def test_parse_xlsx(self):
        """Test every sheet is extracted with its title."""
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "Sales"
        sheet.append(["Month", "Revenue"])
        sheet.append(["Jan", 100])
        buffer = io.BytesIO()
        workbook.save(buffer)

        result = await self.parser.parse_bytes(buffer.getvalue(), "sales.xlsx")

        assert "[Sheet Sales]" in result.text
        assert "Jan | 100" in result.text
        assert result.page_count == 1

    @pytest.mark.asyncio
    async def test_parse_empty_txt(self):
        """Test empty content raises error."""
        with pytest.raises(EmptyDocumentError):
            await self.parser.parse_bytes(b"", "empty.txt")

    @pytest.mark.asyncio
    async def test_parse_whitespace_txt(self):
        """Test whitespace-only content raises error."""
        with pytest.raises(EmptyDocumentError):
            await self.parser.parse_bytes(b"   \n\n   ", "whitespace.txt")

    @pytest.mark.asyncio
    async def test_parse_unsupported(self):
        """Test unsupported extensions are rejected before parsing."""
        with pytest.raises(UnsupportedFileTypeError):
            await self.parser.parse_bytes(b"MZ", "tool.exe")

    def test_normalize_text(self):
        """Test text normalization."""
        result = self.parser._normalize_text("Line one\n\n\n\nLine two   with   spaces")

        assert "\n\n\n" not in result
        assert "   " not in result
