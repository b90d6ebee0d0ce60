from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from app.features.modules.repository import ModuleRepository, module_repository
from app.features.profiles.repository import ProfileRepository, profile_repository
from app.features.progress.aggregation import AggregationLookups, aggregate_attempts, most_recent_first
from app.features.progress.export import progress_csv
from app.features.progress.leaderboard import build_leaderboard, split_podium, total_score_for
from app.features.progress.schemas import LeaderboardView, ProgressRow, UserScoreOut
from app.features.quiz.grading import MAX_ATTEMPTS
from app.features.quiz.repository import QuizRepository, quiz_repository
from app.features.quiz.schemas import RawAttempt
from app.features.quiz.service import load_attempts

logger = logging.getLogger("progress.service")


class ProgressService:
    """Dashboard views. Every call refetches and recomputes from the attempt log."""

    def __init__(
        self,
        attempts: QuizRepository = quiz_repository,
        modules: ModuleRepository = module_repository,
        profiles: ProfileRepository = profile_repository,
    ) -> None:
        self.attempts = attempts
        self.modules = modules
        self.profiles = profiles

    async def _snapshot(self, user_id: Optional[str] = None) -> Tuple[List[RawAttempt], AggregationLookups]:
        attempt_rows, profile_rows, module_rows = await asyncio.gather(
            self.attempts.get_attempts(user_id=user_id),
            self.profiles.get_profiles(),
            self.modules.get_modules(),
        )
        lookups = AggregationLookups.from_rows(profile_rows, module_rows)
        return load_attempts(attempt_rows), lookups

    async def leaderboard(self) -> LeaderboardView:
        attempts, lookups = await self._snapshot()
        return split_podium(build_leaderboard(attempts, lookups))

    async def user_score(self, user_id: str, full_name: Optional[str] = None) -> UserScoreOut:
        attempts, lookups = await self._snapshot(user_id=user_id)
        total = total_score_for(build_leaderboard(attempts, lookups), user_id)
        return UserScoreOut(user_id=user_id, full_name=full_name or "User", total_score=total)

    async def all_progress(self) -> List[ProgressRow]:
        """Every (user, module) pair, most recent attempt first."""
        attempts, lookups = await self._snapshot()
        progress = most_recent_first(aggregate_attempts(attempts, lookups))
        logger.info("progress_aggregated attempts=%d pairs=%d", len(attempts), len(progress))
        return [ProgressRow(**p.model_dump(), max_attempts=MAX_ATTEMPTS) for p in progress]

    async def export_csv(self) -> str:
        return progress_csv(await self.all_progress())


progress_service = ProgressService()
