"""
Text Extraction Module

Reads plain-text, Markdown and PDF documents into a single string.
PDF pages are extracted with PyMuPDF and lightly repaired.
"""

import re
from pathlib import Path
from typing import List, Optional

import fitz  # PyMuPDF

from docreader.utils import logger

TEXT_SUFFIXES = {".txt", ".md", ".markdown"}
PDF_SUFFIXES = {".pdf"}


class InputError(Exception):
    """Raised when a document is missing, unsupported or empty."""
    pass


class PDFExtractor:
    """Extract and process text from PDF files."""

    def __init__(self, pdf_path: Path):
        self.pdf_path = Path(pdf_path)
        if not self.pdf_path.exists():
            raise InputError(f"PDF not found: {pdf_path}")

        try:
            self.doc = fitz.open(self.pdf_path)
        except Exception as e:
            raise InputError(f"Failed to read PDF file: {e}") from e
        self.total_pages = len(self.doc)

    def extract_all(self, skip_pages: Optional[List[int]] = None) -> str:
        """
        Extract all text from the PDF.

        Args:
            skip_pages: List of page numbers to skip (0-indexed)

        Returns:
            Extracted text, pages separated by blank lines
        """
        skip_pages = skip_pages or []
        text_parts = []

        logger.debug(f"Extracting text from {self.total_pages} pages...")

        for page_num in range(self.total_pages):
            if page_num in skip_pages:
                continue

            text = self._clean_page_text(self.doc[page_num].get_text("text"))
            if text.strip():
                text_parts.append(text)

        return "\n\n".join(text_parts)

    def _clean_page_text(self, text: str) -> str:
        """Clean extracted text from a single page."""
        text = self._fix_encoding(text)

        # Remove form feeds and page breaks
        text = text.replace("\f", "\n")

        # Remove excessive whitespace
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r"\n{3,}", "\n\n", text)

        # Remove standalone page numbers (common in PDFs)
        text = re.sub(r"^\s*\d+\s*$", "", text, flags=re.MULTILINE)

        return text.strip()

    def _fix_encoding(self, text: str) -> str:
        """Fix common encoding issues in PDF text."""
        replacements = {
            "ﬁ": "fi",
            "ﬂ": "fl",
            "ﬀ": "ff",
            "ﬃ": "ffi",
            "ﬄ": "ffl",
            "‘": "'",  # Left single quote
            "’": "'",  # Right single quote
            "“": '"',  # Left double quote
            "”": '"',  # Right double quote
            "…": "...",  # Ellipsis
            "\xa0": " ",  # Non-breaking space
        }

        for old, new in replacements.items():
            text = text.replace(old, new)

        return text

    def close(self) -> None:
        """Close the PDF document."""
        self.doc.close()

    def __enter__(self) -> "PDFExtractor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def is_pdf(path: Path) -> bool:
    return Path(path).suffix.lower() in PDF_SUFFIXES


def read_document(path: Path) -> str:
    """
    Read a document into text.

    Args:
        path: Path to a .txt, .md or .pdf file

    Returns:
        Extracted text

    Raises:
        InputError: unsupported type, missing file or undecodable text
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in PDF_SUFFIXES:
        with PDFExtractor(path) as extractor:
            return extractor.extract_all()

    if suffix not in TEXT_SUFFIXES:
        raise InputError(
            f"Unsupported file type: {suffix or path.name}. Please use .txt, .md or .pdf files."
        )

    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise InputError(f"File not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Failed to read text file: {e}") from e
