"""
Question Service - Builds the evaluation question script from a submission.
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ta_assistant.core.config import settings
from ta_assistant.services.llm_service import LLMService, get_llm_service
from ta_assistant.models.session import Question
from ta_assistant.utils.logger import get_logger
from ta_assistant.utils.prompts import STRICT_JSON_REMINDER, build_question_master_prompt

logger = get_logger(__name__)


class QuestionGenerationError(Exception):
    """The model did not produce a usable question set."""


class QuestionService:
    """
    Asks the LLM for an ordered question script with expected rationales.

    The model gets one retry with a stricter instruction when its first answer
    is not valid JSON.
    """

    def __init__(
            self,
            llm_service: LLMService,
            min_questions: int = settings.QUESTIONS_MIN,
            max_questions: int = settings.QUESTIONS_MAX,
    ):
        self.llm = llm_service
        self.min_questions = min_questions
        self.max_questions = max_questions

    async def generate_questions(
            self,
            normalized_text: str,
            assignment: Optional[Dict[str, Any]] = None,
            rubric: Optional[Dict[str, Any]] = None,
    ) -> List[Question]:
        """
        Generate the question script.

        Args:
            normalized_text: Page-labeled submission text
            assignment: Title and objectives
            rubric: Rubric criteria

        Returns:
            Questions in the order the model produced them

        Raises:
            QuestionGenerationError: If both attempts fail
        """
        prompt = build_question_master_prompt(
            normalized_text,
            assignment,
            rubric,
            min_questions=self.min_questions,
            max_questions=self.max_questions,
        )

        try:
            questions = await self._request(prompt)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Question generation returned invalid output, retrying: {e}")
            try:
                questions = await self._request(f"{prompt}\n\n{STRICT_JSON_REMINDER}")
            except (ValueError, ValidationError) as retry_error:
                logger.error(f"Question generation failed after retry: {retry_error}")
                raise QuestionGenerationError(str(retry_error)) from retry_error

        self._check_count(questions)
        logger.info(f"Generated {len(questions)} questions")
        return questions

    async def _request(self, prompt: str) -> List[Question]:
        payload = await self.llm.agenerate_structured(prompt, temperature=0.2)
        items = payload.get("perguntas") if isinstance(payload, dict) else None
        if not isinstance(items, list) or not items:
            raise ValueError("response has no 'perguntas' list")
        return [Question.model_validate(item) for item in items]

    def _check_count(self, questions: List[Question]) -> None:
        # Soft guidance: out-of-range counts are logged and accepted
        if not self.min_questions <= len(questions) <= self.max_questions:
            logger.warning(
                f"Question count {len(questions)} outside "
                f"[{self.min_questions}, {self.max_questions}]; accepting anyway"
            )


# ==================== Factory ====================

def get_question_service(llm_service: Optional[LLMService] = None) -> QuestionService:
    return QuestionService(llm_service=llm_service or get_llm_service())
