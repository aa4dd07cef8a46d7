"""
Tests for LLMService and the vision recognizer built on it.

The LangChain chat model is replaced by a recording fake; no network calls.

Usage:
    pytest backend/scripts/tests/test_llm_service.py
"""
import base64

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from ta_assistant.ingestion.errors import PageRecognitionError
from ta_assistant.models.document import PageImage
from ta_assistant.models.message import Message
from ta_assistant.services.llm_service import (
    LLMProvider,
    LLMResponse,
    LLMService,
    _content_to_text,
    _strip_code_fences,
)
from ta_assistant.utils.extractors.ocr_extractor import VisionRecognizer, recognize_pages
from ta_assistant.utils.prompts import OCR_PROMPT


class RecordingChatModel:
    """Stands in for a LangChain chat model."""

    def __init__(self, reply="ok"):
        self.reply = reply
        self.calls = []
        self.bound = {}

    def bind(self, **kwargs):
        self.bound.update(kwargs)
        return self

    async def ainvoke(self, messages):
        self.calls.append(messages)
        content = self.reply(messages) if callable(self.reply) else self.reply
        return AIMessage(content=content, response_metadata={"token_usage": {"total_tokens": 7}})

    def invoke(self, messages):
        self.calls.append(messages)
        return AIMessage(content=self.reply if isinstance(self.reply, str) else "")


@pytest.fixture
def service():
    llm_service = LLMService(provider=LLMProvider.OPENAI, model="gpt-4o-mini", api_key="sk-test")
    llm_service.llm = RecordingChatModel()
    return llm_service


# ==================== Provider Setup ====================

def test_openai_requires_api_key(monkeypatch):
    from ta_assistant.core.config import settings
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")

    with pytest.raises(ValueError):
        LLMService(provider=LLMProvider.OPENAI, api_key="")


def test_ollama_needs_no_key():
    service = LLMService(provider=LLMProvider.OLLAMA, model="llava")

    assert service.model == "llava"
    assert service.base_url


# ==================== Generation ====================

async def test_agenerate_prepends_system_prompt(service):
    history = [
        Message.create(sender="user", content="Olá"),
        Message.create(sender="assistant", content="Oi!"),
        Message.create(sender="user", content="Pode começar"),
    ]

    response = await service.agenerate(history, system_prompt="Seja breve")

    sent = service.llm.calls[0]
    assert isinstance(sent[0], SystemMessage)
    assert [type(m) for m in sent[1:]] == [HumanMessage, AIMessage, HumanMessage]
    assert response.content == "ok"
    assert response.total_tokens == 7
    assert response.has_token_info


async def test_agenerate_structured_parses_fenced_json(service):
    service.llm.reply = '```json\n{"perguntas": [{"id": 1, "texto": "Por quê?"}]}\n```'

    payload = await service.agenerate_structured("Gere perguntas", temperature=0.2)

    assert payload["perguntas"][0]["texto"] == "Por quê?"
    assert service.llm.bound["temperature"] == 0.2


async def test_agenerate_structured_rejects_invalid_json(service):
    service.llm.reply = "Claro! Aqui estão as perguntas."

    with pytest.raises(ValueError):
        await service.agenerate_structured("Gere perguntas")


async def test_arecognize_image_sends_data_uri(service):
    service.llm.reply = "  texto reconhecido  "

    response = await service.arecognize_image(
        image=b"png-bytes", instruction="Transcreva", text="Processar página 2"
    )

    system, human = service.llm.calls[0]
    assert system.content == "Transcreva"
    text_block, image_block = human.content
    assert text_block == {"type": "text", "text": "Processar página 2"}
    expected = base64.b64encode(b"png-bytes").decode("ascii")
    assert image_block["image_url"]["url"] == f"data:image/png;base64,{expected}"
    assert service.llm.bound["temperature"] == 0
    assert response.content == "  texto reconhecido  "


def test_validate_connection(service):
    assert service.validate_connection() is True

    service.llm.reply = ""
    assert service.validate_connection() is False


def test_content_to_text_joins_blocks():
    blocks = [{"type": "text", "text": "a"}, {"type": "image_url"}, "b"]

    assert _content_to_text(blocks) == "ab"
    assert _content_to_text(None) == ""


def test_strip_code_fences():
    assert _strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert _strip_code_fences(' {"a": 1} ') == '{"a": 1}'


# ==================== Vision Recognizer ====================

class FakeVisionService:
    def __init__(self, model):
        self.model = model
        self.calls = []

    async def arecognize_image(self, **kwargs):
        self.calls.append(kwargs)
        return LLMResponse(content=f"\n página {len(self.calls)} \n", model=self.model)


async def test_vision_recognizer_builds_request():
    created = {}

    def factory(model):
        created[model] = FakeVisionService(model)
        return created[model]

    recognizer = VisionRecognizer(service_factory=factory)
    image = PageImage(page_number=4, data=b"png")

    text = await recognizer.recognize(image, 4, "gpt-4o-mini")

    assert text == "página 1"
    call = created["gpt-4o-mini"].calls[0]
    assert call["image"] == b"png"
    assert call["instruction"] == OCR_PROMPT
    assert call["text"] == "Processar página 4"
    assert call["mime_type"] == "image/png"
    assert call["temperature"] == 0


async def test_vision_recognizer_reuses_service_per_model():
    created = []

    def factory(model):
        created.append(model)
        return FakeVisionService(model)

    recognizer = VisionRecognizer(service_factory=factory)
    image = PageImage(page_number=1, data=b"png")

    await recognizer.recognize(image, 1, "a")
    await recognizer.recognize(image, 2, "a")
    await recognizer.recognize(image, 3, "b")

    assert created == ["a", "b"]


async def test_recognize_pages_labels_and_trims():
    class Recognizer:
        async def recognize(self, image, page_number, model):
            return None if page_number == 2 else f"  conteúdo {page_number}  "

    images = [PageImage(page_number=n, data=b"png") for n in (1, 2, 3)]

    text = await recognize_pages(images, Recognizer(), model="m", concurrency=2)

    assert text == (
        "# Página 1\nconteúdo 1\n\n"
        "# Página 2\n\n\n"
        "# Página 3\nconteúdo 3\n"
    )


async def test_recognize_pages_wraps_failures():
    class Recognizer:
        async def recognize(self, image, page_number, model):
            raise TimeoutError("vision timeout")

    images = [PageImage(page_number=1, data=b"png")]

    with pytest.raises(PageRecognitionError) as exc_info:
        await recognize_pages(images, Recognizer(), model="m")

    assert exc_info.value.page_number == 1
    assert isinstance(exc_info.value.cause, TimeoutError)
