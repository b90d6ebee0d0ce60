from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.common.errors import InvalidInput
from app.features.modules.repository import ModuleRepository, module_repository
from app.features.modules.schemas import (
    Module,
    ModuleCard,
    ModuleDetail,
    ModuleEdit,
    ModuleSave,
    Question,
    QuestionPublic,
)
from app.features.modules.youtube import extract_youtube_id, thumbnail_url
from app.features.progress.aggregation import aggregate_attempts, history_by_module
from app.features.quiz.grading import MAX_ATTEMPTS
from app.features.quiz.repository import QuizRepository, quiz_repository
from app.features.quiz.service import load_attempts, load_questions

logger = logging.getLogger("modules.service")


def validate_module_payload(payload: ModuleSave) -> List[Question]:
    """Check the admin form and return the questions worth saving.

    Drafts with empty text, fewer than two options or a blank option are
    dropped silently; a complete draft with a bad answer index is an error.
    """
    if not payload.title or not payload.youtube_video_url:
        raise InvalidInput("title_and_video_url_required")
    if not extract_youtube_id(payload.youtube_video_url):
        raise InvalidInput("invalid_youtube_url")
    questions: List[Question] = []
    for draft in payload.questions:
        if not draft.is_complete():
            continue
        try:
            questions.append(Question.model_validate(draft.model_dump()))
        except ValidationError as exc:
            raise InvalidInput("invalid_question") from exc
    return questions


class ModuleService:
    def __init__(
        self,
        repository: ModuleRepository = module_repository,
        attempts: QuizRepository = quiz_repository,
    ) -> None:
        self.repository = repository
        self.attempts = attempts

    async def list_with_history(self, user_id: str) -> List[ModuleCard]:
        """Modules newest first, each with the caller's best score and attempt count."""
        modules = await self.repository.get_modules()
        attempts = load_attempts(await self.attempts.get_attempts(user_id=user_id))
        history = history_by_module(aggregate_attempts(attempts))
        cards: List[ModuleCard] = []
        for row in modules:
            module = Module.model_validate(row)
            progress = history.get(module.id)
            cards.append(
                ModuleCard(
                    **module.model_dump(),
                    thumbnail_url=thumbnail_url(module.youtube_video_url),
                    best_score=progress.best_score if progress else None,
                    attempts_count=progress.attempt_count if progress else None,
                    max_attempts=MAX_ATTEMPTS,
                )
            )
        return cards

    async def get_detail(self, module_id: str) -> Optional[ModuleDetail]:
        row = await self.repository.get_module(module_id)
        if not row:
            return None
        questions = load_questions(await self.repository.get_questions(module_id))
        public = [
            QuestionPublic(id=q.id, question_text=q.question_text, options=q.options, points=q.points)
            for q in questions
        ]
        return ModuleDetail(**Module.model_validate(row).model_dump(), questions=public)

    async def get_for_edit(self, module_id: str) -> Optional[ModuleEdit]:
        row = await self.repository.get_module(module_id)
        if not row:
            return None
        questions = load_questions(await self.repository.get_questions(module_id))
        return ModuleEdit(**Module.model_validate(row).model_dump(), questions=questions)

    async def create(self, payload: ModuleSave) -> ModuleEdit:
        questions = validate_module_payload(payload)
        row = await self.repository.create_module(_module_fields(payload))
        module = Module.model_validate(row)
        saved = await self.repository.replace_questions(module.id, _question_rows(questions))
        logger.info("module_created module_id=%s questions=%d", module.id, len(saved))
        return ModuleEdit(**module.model_dump(), questions=load_questions(saved))

    async def update(self, module_id: str, payload: ModuleSave) -> Optional[ModuleEdit]:
        """Update the module and replace its questions wholesale."""
        questions = validate_module_payload(payload)
        row = await self.repository.update_module(module_id, _module_fields(payload))
        if not row:
            return None
        saved = await self.repository.replace_questions(module_id, _question_rows(questions))
        logger.info("module_updated module_id=%s questions=%d", module_id, len(saved))
        return ModuleEdit(**Module.model_validate(row).model_dump(), questions=load_questions(saved))

    async def delete(self, module_id: str) -> bool:
        """Delete the module's questions, then the module."""
        await self.repository.delete_questions(module_id)
        deleted = await self.repository.delete_module(module_id)
        if deleted:
            logger.info("module_deleted module_id=%s", module_id)
        return deleted


def _module_fields(payload: ModuleSave) -> Dict[str, Any]:
    return {
        "title": payload.title,
        "description": payload.description,
        "youtube_video_url": payload.youtube_video_url,
    }


def _question_rows(questions: List[Question]) -> List[Dict[str, Any]]:
    return [q.model_dump(exclude={"id"}) for q in questions]


module_service = ModuleService()
