"""Fold the raw attempt log into per-(user, module) progress records.

Everything here is a pure recompute over an immutable input: nothing is cached
between calls and the lookups are read-only snapshots built per call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.common.errors import LookupMiss
from app.features.progress.schemas import ModuleProgress
from app.features.quiz.schemas import RawAttempt

logger = logging.getLogger("progress.aggregation")

UNKNOWN_USER = "Unknown User"
UNKNOWN_MODULE = "Unknown Module"

# Attempts without a timestamp sort ahead of every dated attempt.
_EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class AggregationLookups:
    """Read-only id -> label snapshot used during one aggregation call."""

    user_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    module_titles: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_rows(
        cls,
        profiles: Iterable[Dict[str, Any]] = (),
        modules: Iterable[Dict[str, Any]] = (),
    ) -> "AggregationLookups":
        users = {str(p["id"]): p.get("full_name") for p in profiles if p.get("id") is not None}
        titles = {str(m["id"]): m.get("title") for m in modules if m.get("id") is not None}
        return cls(
            user_names=MappingProxyType({k: v for k, v in users.items() if v}),
            module_titles=MappingProxyType({k: v for k, v in titles.items() if v}),
        )

    def user_name(self, user_id: str) -> str:
        try:
            return self.user_names[user_id]
        except KeyError:
            raise LookupMiss(user_id) from None

    def module_title(self, module_id: str) -> str:
        try:
            return self.module_titles[module_id]
        except KeyError:
            raise LookupMiss(module_id) from None


def user_label(lookups: AggregationLookups, user_id: str) -> str:
    try:
        return lookups.user_name(user_id)
    except LookupMiss:
        logger.debug("lookup_miss kind=user id=%s", user_id)
        return UNKNOWN_USER


def module_label(lookups: AggregationLookups, module_id: str) -> str:
    try:
        return lookups.module_title(module_id)
    except LookupMiss:
        logger.debug("lookup_miss kind=module id=%s", module_id)
        return UNKNOWN_MODULE


def chronological(attempts: Iterable[RawAttempt]) -> List[RawAttempt]:
    """Ascending by completed_at; ``sorted`` is stable so ties keep arrival order."""
    return sorted(attempts, key=lambda a: a.completed_at or _EPOCH_FLOOR)


def aggregate_attempts(
    attempts: Iterable[RawAttempt],
    lookups: Optional[AggregationLookups] = None,
) -> List[ModuleProgress]:
    """One ModuleProgress per (user_id, module_id) pair with at least one attempt.

    ``last_completed_at`` tracks the latest processed attempt, which is not
    necessarily the one holding ``best_score``. Output keeps first-seen order.
    """
    lookups = lookups or AggregationLookups()
    running: Dict[Tuple[str, str], ModuleProgress] = {}
    for attempt in chronological(attempts):
        key = (attempt.user_id, attempt.module_id)
        existing = running.get(key)
        if existing is None:
            running[key] = ModuleProgress(
                user_id=attempt.user_id,
                full_name=user_label(lookups, attempt.user_id),
                module_id=attempt.module_id,
                module_title=module_label(lookups, attempt.module_id),
                best_score=attempt.score,
                attempt_count=1,
                last_completed_at=attempt.completed_at,
            )
            continue
        existing.attempt_count += 1
        if attempt.score > existing.best_score:
            existing.best_score = attempt.score
        existing.last_completed_at = attempt.completed_at
    return list(running.values())


def most_recent_first(progress: Iterable[ModuleProgress]) -> List[ModuleProgress]:
    return sorted(progress, key=lambda p: p.last_completed_at or _EPOCH_FLOOR, reverse=True)


def history_by_module(progress: Iterable[ModuleProgress]) -> Dict[str, ModuleProgress]:
    """Index one user's progress records by module id."""
    return {p.module_id: p for p in progress}


def progress_for(attempts: Iterable[RawAttempt], user_id: str, module_id: str) -> Optional[ModuleProgress]:
    """Progress for one pair, re-derived through the aggregator; None when never attempted."""
    pair = [a for a in attempts if a.user_id == user_id and a.module_id == module_id]
    for p in aggregate_attempts(pair):
        return p
    return None
