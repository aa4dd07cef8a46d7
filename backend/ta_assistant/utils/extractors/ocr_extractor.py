"""
OCR Extractor - Transcribes rasterized pages with a multimodal LLM.

Single responsibility: turn page images into page-labeled text.
"""
from typing import Callable, Dict, List, Protocol

from ta_assistant.ingestion.errors import PageRecognitionError
from ta_assistant.models.document import PageImage, PageText
from ta_assistant.services.llm_service import LLMService, get_llm_service
from ta_assistant.utils.concurrency import map_bounded
from ta_assistant.utils.logger import get_logger
from ta_assistant.utils.prompts import OCR_PAGE_REQUEST, OCR_PROMPT

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 4


class TextRecognizer(Protocol):
    async def recognize(self, image: PageImage, page_number: int, model: str) -> str: ...


class VisionRecognizer:
    """Recognizes page text through LLMService, one service per model."""

    def __init__(
            self,
            service_factory: Callable[[str], LLMService] = lambda model: get_llm_service(model=model),
            instruction: str = OCR_PROMPT,
    ):
        """
        Initialize recognizer.

        Args:
            service_factory: Builds the LLMService for a model identifier
            instruction: System prompt sent with every page
        """
        self.service_factory = service_factory
        self.instruction = instruction
        self._services: Dict[str, LLMService] = {}

    def _service_for(self, model: str) -> LLMService:
        if model not in self._services:
            self._services[model] = self.service_factory(model)
        return self._services[model]

    async def recognize(self, image: PageImage, page_number: int, model: str) -> str:
        service = self._service_for(model)
        response = await service.arecognize_image(
            image=image.data,
            instruction=self.instruction,
            text=OCR_PAGE_REQUEST.format(page_number=page_number),
            mime_type=image.mime_type,
            temperature=0,
        )
        return response.content.strip()


async def recognize_pages(
        images: List[PageImage],
        recognizer: TextRecognizer,
        model: str,
        concurrency: int = DEFAULT_CONCURRENCY,
) -> str:
    """
    Recognize every page and join the results in page order.

    Args:
        images: Rasterized pages, ordered by page number
        recognizer: Text-recognition capability
        model: Model identifier passed to the recognizer
        concurrency: Number of recognition workers

    Returns:
        Page-labeled text for all pages

    Raises:
        PageRecognitionError: If any page fails; no partial text is returned
    """
    async def recognize_page(index: int) -> PageText:
        page_number = index + 1
        try:
            text = await recognizer.recognize(images[index], page_number, model)
        except Exception as e:
            logger.error(f"OCR failed for page {page_number}: {e}")
            raise PageRecognitionError(page_number, e) from e

        text = (text or "").strip()
        logger.debug(f"OCR page {page_number}: text_length={len(text)}")
        return PageText(page_number=page_number, text=text)

    pages = await map_bounded(len(images), recognize_page, concurrency, name="ocr")
    return "\n".join(page.labeled for page in pages)

