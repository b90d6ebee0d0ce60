"""Admission control for quiz attempts.

A ``QuizGate`` lives for one viewing session of one module by one user:

    locked --video finished--> unlockable --start--> in_progress --submit--> completed
    attempt_count >= max_attempts at open       -> exhausted_or_locked
    module deleted before submit (in_progress) -> exhausted_or_locked

``completed`` and ``exhausted_or_locked`` are terminal. A fresh gate always
starts ``locked`` again, so the video has to be finished once per session.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from app.common.errors import GateTransitionError, InvalidInput, StaleReference
from app.features.modules.schemas import Question
from app.features.quiz.grading import MAX_ATTEMPTS, ScoreResult, calculate_score

logger = logging.getLogger("quiz.gate")


class GateState(str, Enum):
    locked = "locked"
    unlockable = "unlockable"
    in_progress = "in_progress"
    completed = "completed"
    exhausted_or_locked = "exhausted_or_locked"


TERMINAL_STATES = frozenset({GateState.completed, GateState.exhausted_or_locked})


@dataclass
class QuizSession:
    """In-memory quiz progress. Never persisted; submitting yields one attempt row."""

    questions: List[Question]
    attempt_number: int
    current_index: int = 0
    answers: List[Optional[int]] = field(default_factory=list)
    result: Optional[ScoreResult] = None

    def __post_init__(self) -> None:
        if not self.answers:
            self.answers = [None] * len(self.questions)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index == len(self.questions) - 1

    @property
    def can_go_next(self) -> bool:
        return not self.is_last_question and self.answers[self.current_index] is not None

    @property
    def can_go_previous(self) -> bool:
        return self.current_index > 0

    @property
    def all_answered(self) -> bool:
        return all(a is not None for a in self.answers)

    def select(self, option_index: int) -> None:
        options = self.current_question.options
        if not 0 <= option_index < len(options):
            raise InvalidInput(f"option_index {option_index} outside 0..{len(options) - 1}")
        self.answers[self.current_index] = option_index


class QuizGate:
    """State machine deciding whether a quiz may start, is running, or is closed.

    ``attempt_count`` must come from the stored attempt set at evaluation time,
    never from anything the client remembers.

    The store handed to ``submit`` needs two coroutines:
    ``module_exists(module_id) -> bool`` and
    ``submit_attempt(user_id, module_id, score) -> dict``.
    """

    def __init__(
        self,
        module_id: str,
        user_id: str,
        attempt_count: int,
        questions: Sequence[Question],
        max_attempts: int = MAX_ATTEMPTS,
        best_score: Optional[int] = None,
        gate_id: Optional[str] = None,
    ) -> None:
        self.gate_id = gate_id or uuid4().hex
        self.module_id = module_id
        self.user_id = user_id
        self.attempt_count = attempt_count
        self.max_attempts = max_attempts
        self.best_score = best_score
        self.questions = list(questions)
        self.session: Optional[QuizSession] = None
        self.attempt_record: Optional[Dict[str, Any]] = None
        self.last_seen = time.monotonic()
        self._submitting = False
        self.state = GateState.exhausted_or_locked if attempt_count >= max_attempts else GateState.locked

    # --- Queries -----------------------------------------------------------

    @property
    def quiz_available(self) -> bool:
        return bool(self.questions)

    @property
    def attempt_number(self) -> int:
        """Number the next recorded attempt will carry."""
        return self.attempt_count + 1

    @property
    def attempts_left(self) -> int:
        used = self.attempt_count + (1 if self.state == GateState.completed else 0)
        return max(0, self.max_attempts - used)

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def _require(self, *states: GateState, code: str) -> None:
        if self.state not in states:
            raise GateTransitionError(code, self.state.value)

    def _require_session(self) -> QuizSession:
        session = self.session
        if self.state != GateState.in_progress or session is None:
            raise GateTransitionError("quiz_not_in_progress", self.state.value)
        return session

    # --- Transitions -------------------------------------------------------

    def video_finished(self) -> GateState:
        """External player signal. Only ``locked`` moves; everything else ignores it."""
        if self.state == GateState.locked:
            self.state = GateState.unlockable
            logger.info("gate_unlockable gate_id=%s module_id=%s user_id=%s", self.gate_id, self.module_id, self.user_id)
        return self.state

    def start(self) -> QuizSession:
        self._require(GateState.unlockable, code="quiz_not_unlockable")
        if not self.quiz_available:
            raise GateTransitionError("quiz_unavailable", self.state.value)
        self.session = QuizSession(questions=self.questions, attempt_number=self.attempt_number)
        self.state = GateState.in_progress
        logger.info(
            "gate_started gate_id=%s module_id=%s user_id=%s attempt_number=%d",
            self.gate_id,
            self.module_id,
            self.user_id,
            self.session.attempt_number,
        )
        return self.session

    def select_answer(self, option_index: int) -> QuizSession:
        session = self._require_session()
        session.select(option_index)
        return session

    def next_question(self) -> QuizSession:
        session = self._require_session()
        if not session.can_go_next:
            raise GateTransitionError("current_question_unanswered" if not session.is_last_question else "no_next_question", self.state.value)
        session.current_index += 1
        return session

    def previous_question(self) -> QuizSession:
        session = self._require_session()
        if not session.can_go_previous:
            raise GateTransitionError("no_previous_question", self.state.value)
        session.current_index -= 1
        return session

    async def submit(self, store: Any) -> ScoreResult:
        """Grade and record the attempt.

        Raises ``StaleReference`` (and closes the gate without writing) if the
        module vanished. A failing insert leaves the gate ``in_progress``.
        """
        session = self._require_session()
        if self._submitting:
            raise GateTransitionError("submission_in_progress", self.state.value)
        if not session.all_answered:
            raise GateTransitionError("unanswered_questions", self.state.value)
        self._submitting = True
        try:
            if not await store.module_exists(self.module_id):
                self.state = GateState.exhausted_or_locked
                self.session = None
                logger.warning(
                    "gate_stale_module gate_id=%s module_id=%s user_id=%s",
                    self.gate_id,
                    self.module_id,
                    self.user_id,
                )
                raise StaleReference(self.module_id)
            result = calculate_score(session.questions, session.answers)
            self.attempt_record = await store.submit_attempt(self.user_id, self.module_id, result.score)
        finally:
            self._submitting = False
        session.result = result
        if self.best_score is None or result.score > self.best_score:
            self.best_score = result.score
        self.state = GateState.completed
        logger.info(
            "gate_completed gate_id=%s module_id=%s user_id=%s score=%d/%d",
            self.gate_id,
            self.module_id,
            self.user_id,
            result.score,
            result.max_score,
        )
        return result

    def abandon(self) -> None:
        """Drop the in-memory session; nothing is written."""
        if self.state == GateState.in_progress:
            logger.info("gate_abandoned gate_id=%s module_id=%s user_id=%s", self.gate_id, self.module_id, self.user_id)
        self.session = None
        if self.state not in TERMINAL_STATES:
            self.state = GateState.exhausted_or_locked
