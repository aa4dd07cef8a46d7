"""
API Dependencies - Shared dependencies for FastAPI routes.

Services are resolved here and injected into route handlers, so tests can
replace any of them through ``app.dependency_overrides``.
"""

from pathlib import Path
from typing import Optional

from fastapi import Depends, HTTPException, status

from ta_assistant.core.config import Settings, settings
from ta_assistant.services.conversation_service import ConversationService, get_conversation_service
from ta_assistant.services.document_service import DocumentService, get_document_service
from ta_assistant.services.llm_service import LLMService, get_llm_service
from ta_assistant.services.question_service import QuestionService, get_question_service
from ta_assistant.services.scoring_service import ScoringService, get_scoring_service
from ta_assistant.services.session_store import SessionStore, get_session_store


# ==================== Configuration ====================

def get_settings() -> Settings:
    """
    Get application settings.

    Usage:
        @app.get("/config")
        def show_config(settings: Settings = Depends(get_settings)):
            return {"model": settings.OPENAI_MODEL}
    """
    return settings


# ==================== Services ====================

def get_session_store_dep() -> SessionStore:
    return get_session_store()


def get_llm_service_dep() -> LLMService:
    return get_llm_service()


def get_document_service_dep() -> DocumentService:
    """
    Document service wired to the default normalizer.

    Usage:
        @app.post("/upload")
        def upload(
            file: UploadFile,
            service: DocumentService = Depends(get_document_service_dep)
        ):
            ...
    """
    return get_document_service()


def get_question_service_dep(
        llm: LLMService = Depends(get_llm_service_dep)
) -> QuestionService:
    return get_question_service(llm_service=llm)


def get_conversation_service_dep(
        store: SessionStore = Depends(get_session_store_dep),
        llm: LLMService = Depends(get_llm_service_dep)
) -> ConversationService:
    return get_conversation_service(store=store, llm_service=llm)


def get_scoring_service_dep() -> ScoringService:
    return get_scoring_service()


# ==================== Validation ====================

def validate_file_upload(
        content_type: str,
        content_length: int,
        filename: Optional[str] = None,
) -> None:
    """
    Validate uploaded file.

    Args:
        content_type: MIME type of file
        content_length: Size in bytes
        filename: Client-supplied name; its extension must be in ALLOWED_EXTENSIONS

    Raises:
        HTTPException: If validation fails
    """
    allowed_types = ["application/pdf"]
    if content_type not in allowed_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not supported. Allowed: {', '.join(allowed_types)}"
        )

    extension = Path(filename).suffix.lower() if filename else ""
    if filename and extension not in settings.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File extension not supported. Allowed: {', '.join(sorted(settings.ALLOWED_EXTENSIONS))}"
        )

    if content_length > settings.MAX_UPLOAD_SIZE:
        max_mb = settings.MAX_UPLOAD_SIZE / 1024 / 1024
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {max_mb:.0f}MB"
        )
