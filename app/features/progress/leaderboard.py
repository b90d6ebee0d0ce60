from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from app.features.progress.aggregation import AggregationLookups, user_label
from app.features.progress.schemas import LeaderboardEntry, LeaderboardView, RankedEntry
from app.features.quiz.schemas import RawAttempt

PODIUM_SIZE = 3


def best_scores_by_user(attempts: Iterable[RawAttempt]) -> Dict[str, Dict[str, int]]:
    """user_id -> module_id -> max score across that user's attempts in the module."""
    best: Dict[str, Dict[str, int]] = defaultdict(dict)
    for attempt in attempts:
        per_module = best[attempt.user_id]
        current = per_module.get(attempt.module_id)
        if current is None or attempt.score > current:
            per_module[attempt.module_id] = attempt.score
    return dict(best)


def build_leaderboard(
    attempts: Iterable[RawAttempt],
    lookups: Optional[AggregationLookups] = None,
) -> List[LeaderboardEntry]:
    """Total score per user = sum of per-module best scores, never the sum of all attempts.

    Sorted by total_score descending, then user_id ascending so equal totals
    come out in a fixed order.
    """
    lookups = lookups or AggregationLookups()
    entries = [
        LeaderboardEntry(
            user_id=user_id,
            full_name=user_label(lookups, user_id),
            total_score=sum(per_module.values()),
        )
        for user_id, per_module in best_scores_by_user(attempts).items()
    ]
    entries.sort(key=lambda e: e.user_id)
    entries.sort(key=lambda e: e.total_score, reverse=True)
    return entries


def split_podium(entries: Sequence[LeaderboardEntry]) -> LeaderboardView:
    """Ranks 1-3 on the podium, the rest as a flat list ranked index + 4."""
    ranked = [RankedEntry(**e.model_dump(), rank=i + 1) for i, e in enumerate(entries)]
    return LeaderboardView(podium=ranked[:PODIUM_SIZE], others=ranked[PODIUM_SIZE:])


def total_score_for(entries: Iterable[LeaderboardEntry], user_id: str) -> int:
    for entry in entries:
        if entry.user_id == user_id:
            return entry.total_score
    return 0
