from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from app.common.errors import InvalidInput, StaleReference
from app.features.modules.schemas import Question, QuestionPublic
from app.features.progress.aggregation import progress_for
from app.features.quiz.gate import GateState, QuizGate
from app.features.quiz.grading import MAX_ATTEMPTS, summarize
from app.features.quiz.repository import QuizRepository, quiz_repository
from app.features.quiz.schemas import GateOut, QuizResult, RawAttempt
from app.features.quiz.sessions import QuizSessionStore, quiz_sessions

logger = logging.getLogger("quiz.service")


def load_questions(rows: Iterable[Dict[str, Any]]) -> List[Question]:
    try:
        return [Question.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise InvalidInput(f"malformed question data: {exc.error_count()} error(s)") from exc


def load_attempts(rows: Iterable[Dict[str, Any]]) -> List[RawAttempt]:
    return [RawAttempt.model_validate(row) for row in rows]


class QuizService:
    def __init__(
        self,
        repository: QuizRepository = quiz_repository,
        sessions: QuizSessionStore = quiz_sessions,
    ) -> None:
        self.repository = repository
        self.sessions = sessions

    async def open_gate(self, user_id: str, module_id: str) -> Optional[QuizGate]:
        """Evaluate the gate for a new viewing session; None if the module is gone.

        The attempt count is re-derived from the stored attempts on every call.
        """
        if not await self.repository.module_exists(module_id):
            return None
        attempts = load_attempts(await self.repository.get_attempts(user_id=user_id, module_id=module_id))
        questions = load_questions(await self.repository.get_questions(module_id))
        progress = progress_for(attempts, user_id, module_id)
        gate = QuizGate(
            module_id=module_id,
            user_id=user_id,
            attempt_count=progress.attempt_count if progress else 0,
            best_score=progress.best_score if progress else None,
            questions=questions,
            max_attempts=MAX_ATTEMPTS,
        )
        self.sessions.add(gate)
        logger.info(
            "gate_opened gate_id=%s module_id=%s user_id=%s attempt_count=%d state=%s",
            gate.gate_id,
            module_id,
            user_id,
            gate.attempt_count,
            gate.state.value,
        )
        return gate

    def get_gate(self, gate_id: str, user_id: str) -> Optional[QuizGate]:
        return self.sessions.get(gate_id, user_id)

    async def submit(self, gate: QuizGate) -> QuizResult:
        try:
            result = await gate.submit(self.repository)
        except StaleReference:
            self.sessions.discard(gate.gate_id)
            raise
        return QuizResult(**summarize(result, gate.attempt_number))

    def abandon(self, gate_id: str, user_id: str) -> bool:
        gate = self.sessions.get(gate_id, user_id)
        if gate is None:
            return False
        gate.abandon()
        self.sessions.discard(gate_id)
        return True


def gate_view(gate: QuizGate) -> GateOut:
    session = gate.session
    out = GateOut(
        gate_id=gate.gate_id,
        module_id=gate.module_id,
        state=gate.state.value,
        attempt_count=gate.attempt_count,
        max_attempts=gate.max_attempts,
        attempts_left=gate.attempts_left,
        best_score=gate.best_score,
        quiz_available=gate.quiz_available,
        total_questions=len(gate.questions),
    )
    if session is None:
        return out
    out.attempt_number = session.attempt_number
    out.selected_answers = list(session.answers)
    if session.result is not None:
        out.result = QuizResult(**summarize(session.result, session.attempt_number))
        return out
    if gate.state == GateState.in_progress:
        q = session.current_question
        out.current_question_index = session.current_index
        out.current_question = QuestionPublic(id=q.id, question_text=q.question_text, options=q.options, points=q.points)
        out.can_go_next = session.can_go_next
        out.can_go_previous = session.can_go_previous
        out.can_submit = session.all_answered
    return out


quiz_service = QuizService()
