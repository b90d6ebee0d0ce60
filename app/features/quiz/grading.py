from __future__ import annotations

"""
Quiz grading.

Rules:
	- max_score is the sum of points over every question
	- a question earns its points only when the selected option equals
	  correct_option_index; unanswered (None) earns nothing
	- is_perfect needs a positive max_score that was reached in full
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from app.common.errors import InvalidInput
from app.features.modules.schemas import Question

MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class ScoreResult:
    score: int
    max_score: int
    is_perfect: bool


def calculate_score(questions: Sequence[Question], answers: Sequence[Optional[int]]) -> ScoreResult:
    if len(questions) != len(answers):
        raise InvalidInput(
            f"answers length {len(answers)} does not match questions length {len(questions)}"
        )
    max_score = sum(q.points for q in questions)
    score = sum(
        q.points
        for q, selected in zip(questions, answers)
        if selected is not None and selected == q.correct_option_index
    )
    return ScoreResult(
        score=score,
        max_score=max_score,
        is_perfect=max_score > 0 and score == max_score,
    )


def attempts_left(attempt_number: int, max_attempts: int = MAX_ATTEMPTS) -> int:
    return max(0, max_attempts - attempt_number)


def summarize(result: ScoreResult, attempt_number: int) -> dict:
    remaining = attempts_left(attempt_number)
    return {
        "score": result.score,
        "max_score": result.max_score,
        "is_perfect": result.is_perfect,
        "attempt_number": attempt_number,
        "attempts_left": remaining,
        "is_last_attempt": remaining == 0,
    }
