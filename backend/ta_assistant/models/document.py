"""
Schemas for the document ingestion pipeline - defines the data structures a PDF
submission passes through on its way to a normalized text document.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

PAGE_HEADER = "# Página {page_number}"
PAGE_BREAK = "\f"


def page_header(page_number: int) -> str:
    return PAGE_HEADER.format(page_number=page_number)


def label_page(page_number: int, text: str) -> str:
    """Render one page as `# Página N` followed by its text."""
    return f"{page_header(page_number)}\n{text}\n"


class ExtractionStrategy(str, Enum):
    """
    Strategy that produced the normalized text - exactly one per document.
    """
    DIRECT = "direct"  # Text layer read straight from the PDF
    RECOGNITION = "recognition"  # Pages rasterized and transcribed by a vision model


# ==================== Pipeline Values ====================

@dataclass(frozen=True)
class ParsedPdf:
    """
    Raw output of the direct text extractor.

    Pages are separated by form-feed characters, the way text-layer parsers
    report page breaks.
    """
    text: str
    page_count: Optional[int] = None

    @property
    def pages(self) -> list[str]:
        if not self.text:
            return []
        return self.text.split(PAGE_BREAK)


@dataclass(frozen=True)
class PageImage:
    """A rasterized page. Lives only until its page has been recognized."""
    page_number: int
    data: bytes
    mime_type: str = "image/png"

    def __repr__(self) -> str:
        return f"PageImage(page_number={self.page_number}, bytes={len(self.data)})"


@dataclass(frozen=True)
class PageText:
    """Text of a single page, extracted or recognized."""
    page_number: int
    text: str

    @property
    def labeled(self) -> str:
        return label_page(self.page_number, self.text)


# ==================== Core Document Models ====================

class NormalizedDocument(BaseModel):
    """
    Final output of normalization: one ordered, labeled plain-text document.
    """
    text: str = Field(..., description="Page-labeled text, pages in ascending order")
    pages_count: int = Field(..., ge=0, description="Number of pages processed")
    ocr_used: bool = Field(..., description="Whether the recognition fallback produced the text")

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @property
    def strategy(self) -> ExtractionStrategy:
        return ExtractionStrategy.RECOGNITION if self.ocr_used else ExtractionStrategy.DIRECT

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def summary(self) -> str:
        return (
            f"{self.pages_count} pages, {self.char_count} chars, "
            f"strategy={self.strategy.value}"
        )


class DocumentUploadResponse(BaseModel):
    """
    Response returned once a submission has been ingested into a session.
    """
    ok: bool = True
    file_ref: str = Field(..., description="Where the submission was stored")
    pages_count: int
    ocr_used: bool
    question_count: int = Field(0, description="Number of evaluation questions generated")
    assistant: str = Field(..., description="Opening message from the assistant")
