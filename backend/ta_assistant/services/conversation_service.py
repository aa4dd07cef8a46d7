"""
Conversation Service - Runs the evaluation dialogue for a session.
"""
from typing import Optional

from ta_assistant.models.message import Message
from ta_assistant.models.session import EvaluationSession
from ta_assistant.services.llm_service import LLMService, get_llm_service
from ta_assistant.services.session_store import SessionStore
from ta_assistant.utils.logger import get_logger
from ta_assistant.utils.prompts import (
    CHAT_FALLBACK,
    UPLOAD_FALLBACK,
    UPLOAD_KICKOFF,
    build_session_instructions,
)

logger = get_logger(__name__)


class ConversationService:
    """
    Builds each turn from the session's history and instructions, and records
    both sides of the exchange in the SessionStore.
    """
    def __init__(self, store: SessionStore, llm_service: LLMService):
        self.store = store
        self.llm = llm_service
        logger.debug("ConversationService initialized.")

    def instructions(self, session: EvaluationSession) -> str:
        document = session.document
        return build_session_instructions(
            system_prompt=session.system_prompt,
            normalized_text=document.text if document else None,
            questions=session.questions,
        )

    async def open_evaluation(self, session: EvaluationSession) -> str:
        """
        Produce the assistant's first message after a submission is ingested.

        The kickoff request is sent to the model but not stored in the history.
        """
        kickoff = Message.create(sender="user", content=UPLOAD_KICKOFF, conversation_id=session.id)
        response = await self.llm.agenerate(
            messages=[kickoff],
            system_prompt=self.instructions(session),
        )

        assistant = response.content.strip() or UPLOAD_FALLBACK
        self.store.append_message(session, "assistant", assistant)
        logger.info(f"Evaluation opened for session {session.id}")
        return assistant

    async def reply(self, session: EvaluationSession, message: str) -> str:
        """
        Record the student's message and answer it with the full history.
        """
        self.store.append_message(session, "user", message)

        response = await self.llm.agenerate(
            messages=list(session.history),
            system_prompt=self.instructions(session),
        )

        assistant = response.content.strip() or CHAT_FALLBACK
        self.store.append_message(session, "assistant", assistant)
        logger.debug(f"Replied in session {session.id}: {len(assistant)} chars")
        return assistant


# ==================== Factory ====================

def get_conversation_service(
        store: SessionStore,
        llm_service: Optional[LLMService] = None,
) -> ConversationService:
    return ConversationService(store=store, llm_service=llm_service or get_llm_service())
