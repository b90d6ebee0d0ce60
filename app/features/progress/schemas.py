from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class ModuleProgress(BaseModel):
    """Best score and attempt count for one (user, module) pair. Derived, never stored."""
    user_id: str
    full_name: str
    module_id: str
    module_title: str
    best_score: int
    attempt_count: int
    last_completed_at: Optional[datetime] = None


class LeaderboardEntry(BaseModel):
    user_id: str
    full_name: str
    total_score: int


class RankedEntry(LeaderboardEntry):
    rank: int


class LeaderboardView(BaseModel):
    podium: List[RankedEntry]
    others: List[RankedEntry]


class UserScoreOut(BaseModel):
    user_id: str
    full_name: str
    total_score: int


class ProgressRow(ModuleProgress):
    max_attempts: int
