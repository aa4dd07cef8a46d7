"""
Scoring Service - Heuristic score for a finished evaluation conversation.

Participation and clarity are measured from the student's messages only:
- participation: number of messages, saturating at 5
- clarity: total characters written, saturating at 600
"""
import math
from typing import List

from ta_assistant.models.message import Message
from ta_assistant.models.session import ScoreBreakdown, ScoreResponse

TARGET_INTERACTIONS = 5
TARGET_CHARACTERS = 600


def _round1(value: float) -> float:
    # half-up, one decimal
    return math.floor(value * 10 + 0.5) / 10


class ScoringService:

    def score(self, history: List[Message]) -> ScoreResponse:
        user_messages = [m for m in history if m.sender == "user"]
        user_text = " ".join(m.content for m in user_messages)

        interactions = min(len(user_messages) / TARGET_INTERACTIONS, 1)
        clarity = min(len(user_text) / TARGET_CHARACTERS, 1)

        return ScoreResponse(
            score_total=_round1(10 * (0.5 * interactions + 0.5 * clarity)),
            breakdown=ScoreBreakdown(
                participacao=_round1(10 * interactions),
                clareza=_round1(10 * clarity),
            ),
        )


def get_scoring_service() -> ScoringService:
    return ScoringService()
