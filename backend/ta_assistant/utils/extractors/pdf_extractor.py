"""
PDF Text Extractor - Reads the text layer of a PDF.

Responsibilities:
1. Extract raw text, one form-feed separated segment per page
2. Report the parser's page count
3. Split and label pages for the normalized document

PyMuPDF is tried first (faster); pdfplumber is the fallback when PyMuPDF
cannot open the document.
"""
import io
import threading
from typing import List, Optional

import fitz  # PyMuPDF
import pdfplumber

from ta_assistant.ingestion.errors import DocumentParseError
from ta_assistant.models.document import PAGE_BREAK, PageText, ParsedPdf
from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)

# MuPDF is not thread-safe; every fitz call made off the event loop holds this.
mupdf_lock = threading.Lock()


class PDFTextExtractor:
    """Extracts the text layer of a PDF held in memory."""

    def parse(self, data: bytes) -> ParsedPdf:
        """
        Extract text from PDF bytes.

        Args:
            data: Raw PDF bytes

        Returns:
            ParsedPdf with pages separated by form feeds

        Raises:
            DocumentParseError: If neither backend can read the document
        """
        try:
            return self._parse_pymupdf(data)
        except Exception as e:
            logger.warning(f"PyMuPDF failed, using pdfplumber: {e}")

        try:
            return self._parse_pdfplumber(data)
        except Exception as e:
            logger.warning(f"pdfplumber failed: {e}")
            raise DocumentParseError(f"Could not read PDF text layer: {e}") from e

    def _parse_pymupdf(self, data: bytes) -> ParsedPdf:
        with mupdf_lock:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = [page.get_text("text") or "" for page in doc]
                page_count = doc.page_count

        logger.debug(f"PyMuPDF extracted {page_count} pages")
        return ParsedPdf(text=PAGE_BREAK.join(pages), page_count=page_count)

    def _parse_pdfplumber(self, data: bytes) -> ParsedPdf:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]

        logger.debug(f"pdfplumber extracted {len(pages)} pages")
        return ParsedPdf(text=PAGE_BREAK.join(pages), page_count=len(pages))


def label_pages(parsed: ParsedPdf, max_pages: Optional[int] = None) -> List[PageText]:
    """
    Split raw text on page breaks and keep the leading ``max_pages`` pages.

    Args:
        parsed: Direct extraction result
        max_pages: Page cap; ``None`` or non-positive keeps every page

    Returns:
        PageText list numbered from 1, each segment trimmed
    """
    segments = parsed.pages
    if max_pages is not None and max_pages > 0:
        segments = segments[:max_pages]

    return [
        PageText(page_number=index, text=segment.strip())
        for index, segment in enumerate(segments, start=1)
    ]
