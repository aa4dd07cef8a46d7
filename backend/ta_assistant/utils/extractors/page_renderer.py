"""
Page Renderer - Rasterizes PDF pages for vision-based recognition.

Single responsibility: turn pages of a PDF into PNG images.

The document is opened once per rasterization; every page is rendered from
that handle.
"""
import asyncio
from typing import Any, List, Protocol

import fitz  # PyMuPDF

from ta_assistant.ingestion.errors import NoProcessablePagesError
from ta_assistant.models.document import PageImage
from ta_assistant.utils.concurrency import map_bounded
from ta_assistant.utils.extractors.pdf_extractor import mupdf_lock
from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SCALE = 2.0
DEFAULT_CONCURRENCY = 4


class Renderer(Protocol):
    def open(self, data: bytes) -> Any: ...

    def page_count(self, doc: Any) -> int: ...

    def render(self, doc: Any, page_number: int, scale: float) -> bytes: ...

    def close(self, doc: Any) -> None: ...


class PageRenderer:
    """Renders PDF pages to PNG with PyMuPDF."""

    def open(self, data: bytes) -> fitz.Document:
        """
        Open a document for rendering.

        Raises:
            NoProcessablePagesError: If the document cannot be opened
        """
        try:
            with mupdf_lock:
                return fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.error(f"Failed to open PDF for rendering: {e}")
            raise NoProcessablePagesError(str(e)) from e

    def page_count(self, doc: fitz.Document) -> int:
        with mupdf_lock:
            return doc.page_count

    def render(self, doc: fitz.Document, page_number: int, scale: float = DEFAULT_SCALE) -> bytes:
        """
        Render one page.

        Args:
            doc: Handle returned by ``open``
            page_number: Page number (1-indexed)
            scale: Zoom factor applied to the page's 72 dpi size

        Returns:
            PNG bytes
        """
        with mupdf_lock:
            page = doc[page_number - 1]
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
            return pix.tobytes("png")

    def close(self, doc: fitz.Document) -> None:
        with mupdf_lock:
            doc.close()


async def rasterize_pdf(
        data: bytes,
        renderer: Renderer,
        max_pages: int,
        scale: float = DEFAULT_SCALE,
        concurrency: int = DEFAULT_CONCURRENCY,
) -> List[PageImage]:
    """
    Rasterize the leading ``max_pages`` pages of a PDF.

    Args:
        data: Raw PDF bytes
        renderer: Rendering backend
        max_pages: Page cap
        scale: Render scale factor
        concurrency: Number of render workers

    Returns:
        PageImage list ordered by page number, no gaps

    Raises:
        NoProcessablePagesError: Document cannot be opened or has no pages
    """
    doc = await asyncio.to_thread(renderer.open, data)
    try:
        total_pages = renderer.page_count(doc)

        if total_pages > max_pages:
            logger.warning(
                f"PDF has {total_pages} pages; processing only the first {max_pages}."
            )

        pages_count = min(total_pages, max_pages)
        if pages_count <= 0:
            raise NoProcessablePagesError()

        async def render_page(index: int) -> PageImage:
            page_number = index + 1
            png = await asyncio.to_thread(renderer.render, doc, page_number, scale)
            logger.debug(f"Rendered page {page_number}: {len(png)} bytes")
            return PageImage(page_number=page_number, data=png)

        images = await map_bounded(pages_count, render_page, concurrency, name="rasterize")
    finally:
        renderer.close(doc)

    logger.info(f"Rasterized {len(images)} pages at scale {scale}")
    return images
