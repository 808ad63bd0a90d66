"""
Plain-text extraction for uploaded answer files.
Supports: .txt, .md, .docx (python-docx), .pdf (PyMuPDF)
"""
import io
from pathlib import Path

import fitz  # PyMuPDF
import mammoth
from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph

from teacherspet.config import SUPPORTED_FILE_TYPES


class UnsupportedFileType(ValueError):
    """Raised for uploads whose extension has no extractor."""


def read_text_file(file_data: bytes) -> str:
    return file_data.decode('utf-8', errors='ignore')


def read_docx_file(file_data: bytes) -> str:
    """
    Read text from a Word document, keeping body order.
    Table rows become one line with cells joined by " | ".
    """
    doc = Document(io.BytesIO(file_data))
    full_text = []
    for element in doc.element.body:
        if element.tag.endswith('}p'):
            para = Paragraph(element, doc)
            if para.text.strip():
                full_text.append(para.text)
        elif element.tag.endswith('}tbl'):
            table = Table(element, doc)
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    full_text.append(' | '.join(row_text))
    return '\n'.join(full_text)


def read_pdf_file(file_data: bytes) -> str:
    """Extract page text from a PDF, pages separated by a blank line."""
    doc = fitz.open(stream=file_data, filetype="pdf")
    try:
        pages = [page.get_text() for page in doc]
    finally:
        doc.close()
    return '\n\n'.join(pages)


EXTRACTORS = {
    '.txt': read_text_file,
    '.md': read_text_file,
    '.docx': read_docx_file,
    '.pdf': read_pdf_file,
}


def extract_text(filename: str, file_data: bytes) -> str:
    """
    Extract plain text from an uploaded file based on its extension.

    Raises UnsupportedFileType for unknown extensions; extractor errors
    (corrupt documents) propagate to the caller.
    """
    extension = Path(filename).suffix.lower()
    extractor = EXTRACTORS.get(extension)
    if extractor is None:
        raise UnsupportedFileType(
            f"Unsupported file type '{extension or filename}'. Use {', '.join(SUPPORTED_FILE_TYPES)}"
        )
    return extractor(file_data)


def convert_docx_to_html(file_data: bytes) -> str:
    """Convert a Word document to HTML for preview."""
    result = mammoth.convert_to_html(io.BytesIO(file_data))
    return result.value
