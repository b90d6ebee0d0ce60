from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.common.deps import CurrentUser, get_current_user
from app.common.errors import GateTransitionError, InvalidInput, StaleReference
from app.features.quiz.gate import QuizGate
from app.features.quiz.schemas import AnswerIn, GateOut
from app.features.quiz.service import gate_view, quiz_service

logger = logging.getLogger("quiz")

router = APIRouter(prefix="/quiz", tags=["quiz"])


def _load_gate(gate_id: str, current_user: CurrentUser) -> QuizGate:
    gate = quiz_service.get_gate(gate_id, current_user.id)
    if gate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="gate_not_found")
    return gate


def _conflict(exc: GateTransitionError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.code)


@router.post("/{module_id}/gates", response_model=GateOut, status_code=status.HTTP_201_CREATED)
async def open_gate(module_id: str, current_user: CurrentUser = Depends(get_current_user)) -> GateOut:
    """Open a viewing session for a module. Starts locked, or closed when attempts are spent."""
    try:
        gate = await quiz_service.open_gate(current_user.id, module_id)
    except InvalidInput as exc:
        logger.error("quiz_questions_invalid module_id=%s error=%s", module_id, exc)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="invalid_question_data") from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if gate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="module_not_found")
    return gate_view(gate)


@router.get("/gates/{gate_id}", response_model=GateOut)
async def read_gate(gate_id: str, current_user: CurrentUser = Depends(get_current_user)) -> GateOut:
    return gate_view(_load_gate(gate_id, current_user))


@router.post("/gates/{gate_id}/video-finished", response_model=GateOut)
async def video_finished(gate_id: str, current_user: CurrentUser = Depends(get_current_user)) -> GateOut:
    """Player reports the video reached its end."""
    gate = _load_gate(gate_id, current_user)
    gate.video_finished()
    return gate_view(gate)


@router.post("/gates/{gate_id}/start", response_model=GateOut)
async def start_quiz(gate_id: str, current_user: CurrentUser = Depends(get_current_user)) -> GateOut:
    gate = _load_gate(gate_id, current_user)
    try:
        gate.start()
    except GateTransitionError as exc:
        raise _conflict(exc) from exc
    return gate_view(gate)


@router.put("/gates/{gate_id}/answer", response_model=GateOut)
async def select_answer(
    gate_id: str,
    answer: AnswerIn,
    current_user: CurrentUser = Depends(get_current_user),
) -> GateOut:
    gate = _load_gate(gate_id, current_user)
    try:
        gate.select_answer(answer.option_index)
    except GateTransitionError as exc:
        raise _conflict(exc) from exc
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_option") from exc
    return gate_view(gate)


@router.post("/gates/{gate_id}/next", response_model=GateOut)
async def next_question(gate_id: str, current_user: CurrentUser = Depends(get_current_user)) -> GateOut:
    gate = _load_gate(gate_id, current_user)
    try:
        gate.next_question()
    except GateTransitionError as exc:
        raise _conflict(exc) from exc
    return gate_view(gate)


@router.post("/gates/{gate_id}/previous", response_model=GateOut)
async def previous_question(gate_id: str, current_user: CurrentUser = Depends(get_current_user)) -> GateOut:
    gate = _load_gate(gate_id, current_user)
    try:
        gate.previous_question()
    except GateTransitionError as exc:
        raise _conflict(exc) from exc
    return gate_view(gate)


@router.post("/gates/{gate_id}/submit", response_model=GateOut)
async def submit_quiz(gate_id: str, current_user: CurrentUser = Depends(get_current_user)) -> GateOut:
    """Grade and store the attempt. 410 when the module was deleted mid-quiz."""
    gate = _load_gate(gate_id, current_user)
    try:
        await quiz_service.submit(gate)
    except GateTransitionError as exc:
        raise _conflict(exc) from exc
    except StaleReference as exc:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail="module_deleted") from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return gate_view(gate)


@router.delete("/gates/{gate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_quiz(gate_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """Leave the quiz. Nothing is recorded."""
    if not quiz_service.abandon(gate_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="gate_not_found")
    return None
