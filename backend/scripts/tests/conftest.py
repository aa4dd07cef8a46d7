"""
Shared fixtures for the test suite.

Environment is set before any ta_assistant import so Settings picks it up.
"""
import asyncio
import dataclasses
import os
import tempfile
from typing import Dict, List, Optional

_DATA_DIR = tempfile.mkdtemp(prefix="ta-assistant-tests-")
os.environ.setdefault("DATA_DIR", _DATA_DIR)
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("VALIDATE_LLM_ON_STARTUP", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import fitz  # PyMuPDF
import pytest

from ta_assistant.ingestion.document_processor import DocumentNormalizer, NormalizerConfig
from ta_assistant.ingestion.errors import DocumentParseError, NoProcessablePagesError
from ta_assistant.models.document import PAGE_BREAK, PageImage, ParsedPdf
from ta_assistant.services.llm_service import LLMResponse


# ==================== Fake Collaborators ====================

class FakeParser:
    """Direct extractor returning canned pages."""

    def __init__(self, pages: Optional[List[str]] = None, page_count: Optional[int] = None, fail: bool = False):
        self.pages = pages or []
        self.page_count = page_count
        self.fail = fail
        self.calls = 0

    def parse(self, data: bytes) -> ParsedPdf:
        self.calls += 1
        if self.fail:
            raise DocumentParseError("unreadable")
        return ParsedPdf(text=PAGE_BREAK.join(self.pages), page_count=self.page_count)


class FakeRenderer:
    """Renderer producing a distinct byte string per page."""

    def __init__(self, total_pages: int, fail_open: bool = False):
        self.total_pages = total_pages
        self.fail_open = fail_open
        self.rendered: List[int] = []
        self.opened = 0
        self.closed = 0

    def open(self, data: bytes) -> bytes:
        if self.fail_open:
            raise NoProcessablePagesError("cannot open")
        self.opened += 1
        return data

    def page_count(self, doc: bytes) -> int:
        return self.total_pages

    def render(self, doc: bytes, page_number: int, scale: float) -> bytes:
        self.rendered.append(page_number)
        return f"png-{page_number}".encode()

    def close(self, doc: bytes) -> None:
        self.closed += 1


class FakeRecognizer:
    """
    Recognizer that answers "texto da página N".

    Later pages finish first when ``stagger`` is set, so completion order
    differs from page order.
    """

    def __init__(self, fail_on: Optional[int] = None, stagger: bool = True):
        self.fail_on = fail_on
        self.stagger = stagger
        self.calls: List[int] = []
        self.models: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def recognize(self, image: PageImage, page_number: int, model: str) -> str:
        self.calls.append(page_number)
        self.models.append(model)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.stagger:
                await asyncio.sleep(0.01 / page_number)
            else:
                await asyncio.sleep(0)
            if page_number == self.fail_on:
                raise RuntimeError("vision API unavailable")
            assert image.data == f"png-{page_number}".encode()
            return f"texto da página {page_number}"
        finally:
            self.in_flight -= 1


class ScriptedLLM:
    """LLMService stand-in answering from queued replies."""

    def __init__(self, replies=None, structured=None):
        self.replies = list(replies or [])
        self.structured = list(structured or [])
        self.generate_calls = []
        self.structured_prompts: List[str] = []

    async def agenerate(self, messages, system_prompt=None, temperature=None):
        self.generate_calls.append({"messages": list(messages), "system_prompt": system_prompt})
        content = self.replies.pop(0) if self.replies else ""
        return LLMResponse(content=content, model="fake")

    async def agenerate_structured(self, prompt, schema=None, system_prompt=None, temperature=None):
        self.structured_prompts.append(prompt)
        result = self.structured.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def questions_payload(n: int):
    return {
        "perguntas": [
            {"id": f"Q{i}", "tipo": "compreensao", "texto": f"Pergunta {i}?", "rationale_esperado": "..."}
            for i in range(1, n + 1)
        ]
    }


# ==================== Fixtures ====================

@pytest.fixture
def config() -> NormalizerConfig:
    return NormalizerConfig(
        text_threshold=500,
        max_pages=30,
        render_scale=2.0,
        render_concurrency=4,
        ocr_concurrency=4,
        model="test-vision-model",
        timeout_seconds=None,
    )


@pytest.fixture
def make_normalizer(config):
    def factory(parser=None, renderer=None, recognizer=None, **overrides) -> DocumentNormalizer:
        cfg = dataclasses.replace(config, **overrides)
        return DocumentNormalizer(
            recognizer=recognizer if recognizer is not None else FakeRecognizer(),
            config=cfg,
            parser=parser or FakeParser(),
            renderer=renderer or FakeRenderer(total_pages=1),
        )
    return factory


def build_pdf(pages: List[str]) -> bytes:
    """Build a real PDF with one text block per page (empty string = blank page)."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_textbox(fitz.Rect(36, 36, 560, 800), text, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_factory():
    return build_pdf


@pytest.fixture
def long_text() -> Dict[int, str]:
    """Page texts long enough to pass the default threshold when combined."""
    return {
        n: f"Conteúdo da página {n}. " + "A análise discute metodologia e resultados. " * 8
        for n in range(1, 41)
    }
