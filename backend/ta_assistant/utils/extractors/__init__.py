"""
Extractors package - Specialized content extractors.

Available extractors:
- PDFTextExtractor: Read the text layer of a PDF (PyMuPDF, pdfplumber fallback)
- PageRenderer: Rasterize PDF pages to PNG (PyMuPDF)
- VisionRecognizer: Transcribe page images with a multimodal LLM
"""
from ta_assistant.utils.extractors.pdf_extractor import PDFTextExtractor, label_pages
from ta_assistant.utils.extractors.page_renderer import PageRenderer, rasterize_pdf
from ta_assistant.utils.extractors.ocr_extractor import VisionRecognizer, recognize_pages

__all__ = [
    'PDFTextExtractor',
    'label_pages',
    'PageRenderer',
    'rasterize_pdf',
    'VisionRecognizer',
    'recognize_pages',
]
