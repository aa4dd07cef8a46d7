"""
Document Normalizer - Main ingestion orchestrator.

Turns a PDF submission into one page-labeled text document using exactly one
of two strategies:
1. Direct: read the PDF text layer
2. Recognition: rasterize pages and transcribe them with a vision model,
   used when the text layer holds fewer than `text_threshold` characters

Actual extraction logic lives in utils/extractors/
"""
import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from opentelemetry import trace

from ta_assistant.core.config import Settings, settings
from ta_assistant.ingestion.errors import (
    DocumentParseError,
    IngestionTimeoutError,
    RecognizerNotConfiguredError,
)
from ta_assistant.models.document import NormalizedDocument, ParsedPdf
from ta_assistant.utils.extractors.ocr_extractor import TextRecognizer, VisionRecognizer, recognize_pages
from ta_assistant.utils.extractors.page_renderer import PageRenderer, Renderer, rasterize_pdf
from ta_assistant.utils.extractors.pdf_extractor import PDFTextExtractor, label_pages
from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


class DocumentParser(Protocol):
    def parse(self, data: bytes) -> ParsedPdf: ...


@dataclass(frozen=True)
class NormalizerConfig:
    """Tunables for one normalization run."""
    text_threshold: int = 500
    max_pages: int = 30
    render_scale: float = 2.0
    render_concurrency: int = 4
    ocr_concurrency: int = 4
    model: str = "gpt-4o-mini"
    timeout_seconds: Optional[float] = None

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "NormalizerConfig":
        return cls(
            text_threshold=config.INGEST_TEXT_THRESHOLD,
            max_pages=config.INGEST_MAX_PAGES,
            render_scale=config.INGEST_RENDER_SCALE,
            render_concurrency=config.INGEST_RENDER_CONCURRENCY,
            ocr_concurrency=config.OCR_CONCURRENCY,
            model=config.ocr_model,
            timeout_seconds=config.INGEST_TIMEOUT_SECONDS,
        )


# ==================== Main Document Normalizer ====================

class DocumentNormalizer:
    """
    Orchestrates PDF normalization.

    This class:
    1. Runs direct text extraction
    2. Decides whether the extracted text is sufficient
    3. Otherwise rasterizes and recognizes every page (up to the cap)
    """

    def __init__(
            self,
            recognizer: Optional[TextRecognizer],
            config: Optional[NormalizerConfig] = None,
            parser: Optional[DocumentParser] = None,
            renderer: Optional[Renderer] = None,
    ):
        """
        Initialize normalizer.

        Args:
            recognizer: Text-recognition capability for the fallback path
            config: Thresholds, caps and concurrency (defaults from settings)
            parser: Direct text extractor (PyMuPDF/pdfplumber by default)
            renderer: Page rasterizer (PyMuPDF by default)
        """
        self.recognizer = recognizer
        self.config = config or NormalizerConfig.from_settings()
        self.parser = parser or PDFTextExtractor()
        self.renderer = renderer or PageRenderer()

    async def normalize(self, data: bytes) -> NormalizedDocument:
        """
        Normalize a PDF held in memory.

        Args:
            data: Raw PDF bytes (not retained)

        Returns:
            NormalizedDocument with text, page count and strategy flag

        Raises:
            RecognizerNotConfiguredError: No recognizer supplied
            NoProcessablePagesError: Recognition path could not open the PDF
            PageRecognitionError: A page could not be recognized
            IngestionTimeoutError: The configured deadline expired
        """
        if self.recognizer is None:
            raise RecognizerNotConfiguredError()

        start_time = time.time()

        with tracer.start_as_current_span("normalize_pdf") as span:
            timeout = self.config.timeout_seconds
            try:
                if timeout:
                    document = await asyncio.wait_for(self._normalize(data), timeout=timeout)
                else:
                    document = await self._normalize(data)
            except asyncio.TimeoutError:
                logger.error(f"Normalization timed out after {timeout}s")
                raise IngestionTimeoutError(timeout)

            span.set_attribute("ingest.ocr_used", document.ocr_used)
            span.set_attribute("ingest.pages_count", document.pages_count)

        logger.info(f"Normalized in {time.time() - start_time:.2f}s: {document.summary}")
        return document

    async def _normalize(self, data: bytes) -> NormalizedDocument:
        parsed = await self._try_direct_extraction(data)
        text = parsed.text.strip()

        if text and len(text) >= self.config.text_threshold:
            return self._accept_direct(parsed)

        logger.info(
            f"Insufficient text content ({len(text)} < {self.config.text_threshold} chars); "
            f"switching to vision OCR"
        )
        return await self._recognize(data)

    async def _try_direct_extraction(self, data: bytes) -> ParsedPdf:
        """
        Read the text layer.

        A document the parser cannot read yields empty text, which always
        falls below the threshold: corrupt or image-only PDFs go to
        recognition rather than failing here.
        """
        try:
            return await asyncio.to_thread(self.parser.parse, data)
        except DocumentParseError as e:
            logger.warning(f"Direct extraction failed, redirecting to recognition: {e}")
            return ParsedPdf(text="", page_count=None)

    def _accept_direct(self, parsed: ParsedPdf) -> NormalizedDocument:
        max_pages = self.config.max_pages
        reported = parsed.page_count or len(parsed.pages)
        pages_count = min(reported, max_pages)

        pages = label_pages(parsed, pages_count or max_pages)
        normalized = "\n".join(page.labeled for page in pages).strip()

        total_pages = pages_count or len(pages)
        logger.info(f"Direct text extraction accepted: {total_pages} pages")
        return NormalizedDocument(text=normalized, pages_count=total_pages or 1, ocr_used=False)

    async def _recognize(self, data: bytes) -> NormalizedDocument:
        images = await rasterize_pdf(
            data,
            self.renderer,
            max_pages=self.config.max_pages,
            scale=self.config.render_scale,
            concurrency=self.config.render_concurrency,
        )
        text = await recognize_pages(
            images,
            self.recognizer,
            model=self.config.model,
            concurrency=self.config.ocr_concurrency,
        )
        return NormalizedDocument(text=text, pages_count=len(images), ocr_used=True)


# ==================== Convenience Functions ====================

def get_document_normalizer(config: Optional[NormalizerConfig] = None) -> DocumentNormalizer:
    """Normalizer wired to the configured LLM for recognition."""
    return DocumentNormalizer(recognizer=VisionRecognizer(), config=config)


async def normalize_pdf(
        file_path: Path,
        config: Optional[NormalizerConfig] = None,
        normalizer: Optional[DocumentNormalizer] = None,
) -> NormalizedDocument:
    """
    Convenience function for normalizing a PDF on disk.

    Args:
        file_path: Path to PDF file
        config: Optional normalizer configuration
        normalizer: Optional pre-built normalizer

    Returns:
        NormalizedDocument

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    normalizer = normalizer or get_document_normalizer(config)
    data = await asyncio.to_thread(file_path.read_bytes)
    return await normalizer.normalize(data)
