"""
Session API - Endpoints for the evaluation flow.

1. Create a session
2. Upload the student's PDF (normalize, generate questions, open the dialogue)
3. Chat
4. Finalize with a heuristic score
"""
import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ta_assistant.api.deps import (
    get_conversation_service_dep,
    get_document_service_dep,
    get_question_service_dep,
    get_scoring_service_dep,
    get_session_store_dep,
    get_settings,
    validate_file_upload,
)
from ta_assistant.core.config import Settings
from ta_assistant.ingestion.errors import IngestionError
from ta_assistant.models.document import DocumentUploadResponse
from ta_assistant.models.message import Message
from ta_assistant.models.session import (
    ChatRequest,
    ChatResponse,
    ScoreResponse,
    SessionCreateRequest,
    SessionCreateResponse,
)
from ta_assistant.services.conversation_service import ConversationService
from ta_assistant.services.document_service import DocumentService
from ta_assistant.services.question_service import QuestionGenerationError, QuestionService
from ta_assistant.services.scoring_service import ScoringService
from ta_assistant.services.session_store import SessionStore
from ta_assistant.utils.helper import load_json_file
from ta_assistant.utils.logger import get_logger
from ta_assistant.utils.prompts import load_system_prompt

logger = get_logger(__name__)

router = APIRouter()


# ==================== Create Session ====================

@router.post("", response_model=SessionCreateResponse)
async def create_session(
        request: Optional[SessionCreateRequest] = None,
        store: SessionStore = Depends(get_session_store_dep),
        service: DocumentService = Depends(get_document_service_dep),
        config: Settings = Depends(get_settings),
):
    """
    Start an evaluation session.

    Assignment and rubric come from the request body, or from the configured
    ASSIGNMENT_FILE / RUBRIC_FILE when the body omits them.
    """
    request = request or SessionCreateRequest()
    session = store.create(
        system_prompt=load_system_prompt(config.SYSTEM_PROMPT_FILE),
        assignment=request.assignment or load_json_file(config.ASSIGNMENT_FILE),
        rubric=request.rubric or load_json_file(config.RUBRIC_FILE),
    )
    service.session_dir(session.id)
    return SessionCreateResponse(session_id=session.id)


# ==================== Upload Submission ====================

@router.post("/{session_id}/upload", response_model=DocumentUploadResponse)
async def upload_submission(
        session_id: str,
        file: UploadFile = File(..., description="Student PDF submission"),
        store: SessionStore = Depends(get_session_store_dep),
        documents: DocumentService = Depends(get_document_service_dep),
        questions: QuestionService = Depends(get_question_service_dep),
        conversation: ConversationService = Depends(get_conversation_service_dep),
):
    """
    Upload and ingest the student's submission.

    Process:
    1. Validate file (type, size)
    2. Store it in the session directory
    3. Normalize (text layer or vision OCR)
    4. Generate the question script
    5. Produce the assistant's opening message

    Raises:
        400: Invalid file type
        404: Unknown session
        413: File too large
        502: Ingestion or LLM failure
    """
    session = store.require(session_id)
    logger.info(f"Received upload for session {session_id}: {file.filename}")

    validate_file_upload(file.content_type, file.size or 0, file.filename)

    file_path = await asyncio.to_thread(
        documents.save_submission, session.id, file.filename, file.file
    )

    try:
        document = await documents.ingest_submission(session, file_path)
    except IngestionError as e:
        logger.error(f"Ingestion failed for session {session_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Falha ao processar o PDF enviado"
        )

    try:
        session.questions = await questions.generate_questions(
            document.text, session.assignment, session.rubric
        )
        assistant = await conversation.open_evaluation(session)
    except QuestionGenerationError as e:
        logger.error(f"Question generation failed for session {session_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Erro ao gerar o roteiro de perguntas"
        )
    except Exception as e:
        logger.error(f"Erro ao processar arquivo com a IA: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Erro ao processar arquivo com a IA"
        )

    return DocumentUploadResponse(
        file_ref=str(file_path),
        pages_count=document.pages_count,
        ocr_used=document.ocr_used,
        question_count=len(session.questions),
        assistant=assistant,
    )


# ==================== Chat ====================

@router.post("/{session_id}/chat", response_model=ChatResponse)
async def chat(
        session_id: str,
        request: ChatRequest,
        store: SessionStore = Depends(get_session_store_dep),
        conversation: ConversationService = Depends(get_conversation_service_dep),
):
    """Answer one student message within the session's dialogue."""
    session = store.require(session_id)

    message = request.message.strip()
    if not message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="empty message")

    try:
        assistant = await conversation.reply(session, message)
    except Exception as e:
        logger.error(f"Error in chat for session {session_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Erro ao processar mensagem"
        )

    return ChatResponse(assistant=assistant)


# ==================== Finalize ====================

@router.post("/{session_id}/finalize", response_model=ScoreResponse)
async def finalize(
        session_id: str,
        store: SessionStore = Depends(get_session_store_dep),
        scoring: ScoringService = Depends(get_scoring_service_dep),
):
    """Score the conversation from the student's participation and writing volume."""
    history = store.history(session_id)
    result = scoring.score(history)
    logger.info(f"Session {session_id} finalized: score={result.score_total}")
    return result


# ==================== Session Management ====================

@router.get("/{session_id}/messages", response_model=List[Message])
async def get_messages(
        session_id: str,
        store: SessionStore = Depends(get_session_store_dep),
):
    """Retrieve the session's message history."""
    return store.history(session_id)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
        session_id: str,
        store: SessionStore = Depends(get_session_store_dep),
):
    """Forget a session. Stored submission files are left on disk."""
    if not store.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="invalid session")
