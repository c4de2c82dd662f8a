"""Document parsing service for uploaded files.

Handles:
- File validation (extension, size)
- Text extraction from PDF (PyMuPDF), DOCX (python-docx), XLSX (openpyxl),
  PPTX (python-pptx) and TXT files
- Filename sanitization

All blocking parsing runs in a worker thread via asyncio.to_thread.
"""

import asyncio
import io
import logging
import re
from pathlib import Path

import fitz  # PyMuPDF
from docx import Document as DocxDocument
from openpyxl import load_workbook
from pptx import Presentation

from config import get_settings
from services.types import ParsedDocument

logger = logging.getLogger(__name__)

# Supported file types
SUPPORTED_EXTENSIONS = frozenset({".pdf", ".docx", ".xlsx", ".pptx", ".txt"})


class UnsupportedFileTypeError(Exception):
    """Raised when file type is not supported."""

    pass


class FileTooLargeError(Exception):
    """Raised when file exceeds size limit."""

    pass


class ExtractionError(Exception):
    """Base class for failures to get text out of a supported file."""


class DocumentParseError(ExtractionError):
    """Raised when document parsing fails."""

    pass


class EmptyDocumentError(ExtractionError):
    """Raised when document contains no extractable text."""

    pass


class DocumentParser:
    """Service for extracting text from uploaded documents."""

    def __init__(self, max_file_size_bytes: int | None = None) -> None:
        """Initialize document parser."""
        self.max_file_size_bytes = (
            max_file_size_bytes or get_settings().max_file_size_bytes
        )

    def sanitize_filename(self, filename: str) -> str:
        """Sanitize filename to prevent path traversal and other issues."""
        filename = Path(filename or "").name
        filename = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", filename)

        max_length = 255
        if len(filename) > max_length:
            name, ext = Path(filename).stem, Path(filename).suffix
            filename = name[: max_length - len(ext)] + ext

        if not filename or filename.startswith("."):
            filename = "document" + Path(filename).suffix

        return filename

    def validate_file(self, filename: str, file_size: int | None) -> str:
        """Validate an upload before downloading it and return its extension.

        Raises:
            UnsupportedFileTypeError: If the extension is not supported.
            FileTooLargeError: If the declared size exceeds the limit.
        """
        ext = Path(filename or "").suffix.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFileTypeError(
                f"File type '{ext}' not supported. Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
            )

        if file_size and file_size > self.max_file_size_bytes:
            raise FileTooLargeError(
                f"File size {file_size} exceeds limit of {self.max_file_size_bytes} bytes"
            )

        return ext

    async def parse_bytes(self, content: bytes, filename: str) -> ParsedDocument:
        """Extract text from file content.

        Raises:
            UnsupportedFileTypeError: If the extension is not supported.
            EmptyDocumentError: If no text could be extracted.
            DocumentParseError: If the parser failed.
        """
        ext = self.validate_file(filename, len(content))
        parsers = {
            ".pdf": self._parse_pdf_sync,
            ".docx": self._parse_docx_sync,
            ".xlsx": self._parse_xlsx_sync,
            ".pptx": self._parse_pptx_sync,
            ".txt": self._parse_txt_sync,
        }

        try:
            text, page_count = await asyncio.to_thread(parsers[ext], content)
        except DocumentParseError:
            raise
        except Exception as e:
            logger.error("Failed to parse document %s: %s", filename, e)
            raise DocumentParseError(f"Failed to parse document: {e}") from e

        text = self._normalize_text(text)
        if not text:
            raise EmptyDocumentError("Document contains no extractable text")

        return ParsedDocument(
            text=text,
            filename=self.sanitize_filename(filename),
            document_type=ext.lstrip("."),
            page_count=page_count,
        )

    def _normalize_text(self, text: str) -> str:
        """Normalize text by cleaning up whitespace."""
        text = re.sub(r"\n{3,}", "\n\n", text)
        text = re.sub(r" {2,}", " ", text)
        lines = [line.strip() for line in text.split("\n")]
        return "\n".join(lines).strip()

    def _parse_pdf_sync(self, content: bytes) -> tuple[str, int | None]:
        """Parse PDF using PyMuPDF (synchronous)."""
        try:
            with fitz.open(stream=content, filetype="pdf") as doc:
                text_parts = []
                for page_num, page in enumerate(doc, start=1):
                    try:
                        page_text = page.get_text()
                        if page_text:
                            text_parts.append(page_text)
                    except Exception as e:
                        logger.warning(
                            "Failed to extract text from page %d: %s", page_num, e
                        )
                return "\n\n".join(text_parts), len(doc)
        except Exception as e:
            raise DocumentParseError(f"Failed to parse PDF: {e}") from e

    def _parse_docx_sync(self, content: bytes) -> tuple[str, int | None]:
        """Parse Word document using python-docx (synchronous)."""
        try:
            doc = DocxDocument(io.BytesIO(content))
            text_parts = [p.text for p in doc.paragraphs if p.text.strip()]

            for table in doc.tables:
                for row in table.rows:
                    row_text = " | ".join(cell.text.strip() for cell in row.cells)
                    if row_text.strip(" |"):
                        text_parts.append(row_text)

            return "\n\n".join(text_parts), None
        except Exception as e:
            raise DocumentParseError(f"Failed to parse DOCX: {e}") from e

    def _parse_xlsx_sync(self, content: bytes) -> tuple[str, int | None]:
        """Parse Excel workbook using openpyxl (synchronous)."""
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
            try:
                text_parts = []
                for sheet in workbook.worksheets:
                    rows = []
                    for row in sheet.iter_rows(values_only=True):
                        cells = ["" if v is None else str(v) for v in row]
                        if any(cells):
                            rows.append(" | ".join(cells))
                    if rows:
                        text_parts.append(f"[Sheet {sheet.title}]\n" + "\n".join(rows))
                return "\n\n".join(text_parts), len(workbook.worksheets)
            finally:
                workbook.close()
        except Exception as e:
            raise DocumentParseError(f"Failed to parse XLSX: {e}") from e

    def _parse_pptx_sync(self, content: bytes) -> tuple[str, int | None]:
        """Parse PowerPoint deck using python-pptx (synchronous)."""
        try:
            prs = Presentation(io.BytesIO(content))
            text_parts = []

            for i, slide in enumerate(prs.slides, start=1):
                text_parts.append(f"[Slide {i}]")
                for shape in slide.shapes:
                    if getattr(shape, "has_text_frame", False) and shape.text_frame.text:
                        text_parts.append(shape.text_frame.text)
                    if getattr(shape, "has_table", False):
                        for row in shape.table.rows:
                            row_text = " | ".join(
                                cell.text.strip() for cell in row.cells if cell.text.strip()
                            )
                            if row_text:
                                text_parts.append(row_text)

            return "\n".join(text_parts), len(prs.slides)
        except Exception as e:
            raise DocumentParseError(f"Failed to parse PPTX: {e}") from e

    def _parse_txt_sync(self, content: bytes) -> tuple[str, int | None]:
        """Decode plain text (synchronous)."""
        try:
            return content.decode("utf-8"), None
        except UnicodeDecodeError:
            return content.decode("latin-1"), None
