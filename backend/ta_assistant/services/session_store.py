"""
Session Store - Keeps evaluation sessions for the lifetime of the process.

Sessions are not persisted; a restart starts from an empty store.
"""
import threading
import uuid
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from ta_assistant.models.message import Message
from ta_assistant.models.session import EvaluationSession
from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Thread-safe in-memory map of session id to EvaluationSession."""

    def __init__(self):
        self._sessions: Dict[str, EvaluationSession] = {}
        self._lock = threading.Lock()

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex[:12]

    def create(
            self,
            system_prompt: str,
            assignment: Optional[Dict[str, Any]] = None,
            rubric: Optional[Dict[str, Any]] = None,
    ) -> EvaluationSession:
        session = EvaluationSession(
            id=self.new_session_id(),
            system_prompt=system_prompt,
            assignment=assignment or {},
            rubric=rubric or {},
        )
        with self._lock:
            self._sessions[session.id] = session
        logger.info(f"Created session: {session.id}")
        return session

    def get(self, session_id: str) -> Optional[EvaluationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def require(self, session_id: str) -> EvaluationSession:
        """
        Get a session or fail the request.

        Raises:
            HTTPException: 404 if the session does not exist
        """
        session = self.get(session_id)
        if session is None:
            logger.warning(f"Unknown session requested: {session_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="invalid session")
        return session

    def append_message(self, session: EvaluationSession, sender: str, content: str) -> Message:
        message = Message.create(sender=sender, content=content, conversation_id=session.id)
        with self._lock:
            session.history.append(message)
        logger.debug(f"Added message from '{sender}' to session {session.id}")
        return message

    def history(self, session_id: str) -> List[Message]:
        session = self.require(session_id)
        with self._lock:
            return list(session.history)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is None:
            logger.warning(f"Attempted to delete non-existent session {session_id}")
            return False
        logger.info(f"Deleted session {session_id}")
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# ==================== Module-level instance ====================

_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """FastAPI dependency returning the process-wide store."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store
