"""
Pydantic schemas for evaluation sessions and their API payloads.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ta_assistant.models.document import NormalizedDocument
from ta_assistant.models.message import Message


class Question(BaseModel):
    """One item of the evaluation script."""
    id: str = Field(..., description="Question label, e.g. Q1")
    tipo: str = Field("", description="compreensao, aplicacao, critica or verificacao")
    texto: str = Field(..., description="Question shown to the student")
    rationale_esperado: str = Field("", description="Expected reasoning, shown to the instructor only")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v)


class EvaluationSession(BaseModel):
    """
    State of one student's evaluation: submission, question script and chat history.
    """
    id: str
    system_prompt: str
    assignment: Dict[str, Any] = Field(default_factory=dict)
    rubric: Dict[str, Any] = Field(default_factory=dict)

    history: List[Message] = Field(default_factory=list)
    submission_path: Optional[str] = None
    document: Optional[NormalizedDocument] = None
    questions: List[Question] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_submission(self) -> bool:
        return self.document is not None


# ==================== API Payloads ====================

class SessionCreateRequest(BaseModel):
    assignment: Optional[Dict[str, Any]] = Field(None, description="Title and objectives of the assignment")
    rubric: Optional[Dict[str, Any]] = Field(None, description="Rubric criteria with weights")


class SessionCreateResponse(BaseModel):
    session_id: str


class ChatRequest(BaseModel):
    message: str = Field("", description="The student's message.")


class ChatResponse(BaseModel):
    assistant: str


class ScoreBreakdown(BaseModel):
    participacao: float
    clareza: float


class ScoreResponse(BaseModel):
    score_total: float
    breakdown: ScoreBreakdown
