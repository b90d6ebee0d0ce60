from app.features.progress.aggregation import AggregationLookups
from app.features.progress.leaderboard import (
    best_scores_by_user,
    build_leaderboard,
    split_podium,
    total_score_for,
)
from app.features.progress.schemas import LeaderboardEntry
from app.features.quiz.schemas import RawAttempt

LOOKUPS = AggregationLookups.from_rows(
    profiles=[{"id": "u1", "full_name": "Alice"}, {"id": "u2", "full_name": "Bob"}],
)


def _attempt(user, module, score):
    return RawAttempt(user_id=user, module_id=module, score=score, completed_at="2024-03-01T10:00:00Z")


def test_total_uses_best_per_module_not_sum_of_attempts():
    attempts = [_attempt("u1", "m1", 20), _attempt("u1", "m2", 15), _attempt("u1", "m1", 5)]
    [entry] = build_leaderboard(attempts, LOOKUPS)
    assert entry.total_score == 35
    assert entry.full_name == "Alice"


def test_best_scores_by_user_tracks_max_per_pair():
    attempts = [_attempt("u1", "m1", 3), _attempt("u1", "m1", 9), _attempt("u2", "m1", 0)]
    assert best_scores_by_user(attempts) == {"u1": {"m1": 9}, "u2": {"m1": 0}}


def test_sorted_descending_with_user_id_tie_break():
    attempts = [
        _attempt("u3", "m1", 10),
        _attempt("u2", "m1", 30),
        _attempt("u1", "m1", 10),
    ]
    board = build_leaderboard(attempts, LOOKUPS)
    assert [(e.user_id, e.total_score) for e in board] == [("u2", 30), ("u1", 10), ("u3", 10)]
    assert board[2].full_name == "Unknown User"


def test_user_with_only_zero_scores_still_listed():
    [entry] = build_leaderboard([_attempt("u1", "m1", 0)], LOOKUPS)
    assert entry.total_score == 0


def test_empty_attempts_give_empty_board():
    assert build_leaderboard([], LOOKUPS) == []
    view = split_podium([])
    assert view.podium == [] and view.others == []


def test_rerun_is_identical():
    attempts = [_attempt("u1", "m1", 4), _attempt("u2", "m1", 4), _attempt("u2", "m2", 1)]
    assert build_leaderboard(attempts, LOOKUPS) == build_leaderboard(attempts, LOOKUPS)


def test_split_podium_ranks():
    entries = [LeaderboardEntry(user_id=f"u{i}", full_name=f"U{i}", total_score=100 - i) for i in range(6)]
    view = split_podium(entries)
    assert [e.rank for e in view.podium] == [1, 2, 3]
    assert [e.rank for e in view.others] == [4, 5, 6]
    assert view.others[0].user_id == "u3"


def test_split_podium_with_fewer_than_three():
    entries = [LeaderboardEntry(user_id="u1", full_name="A", total_score=5)]
    view = split_podium(entries)
    assert len(view.podium) == 1
    assert view.others == []


def test_total_score_for_missing_user_is_zero():
    board = build_leaderboard([_attempt("u1", "m1", 7)], LOOKUPS)
    assert total_score_for(board, "u1") == 7
    assert total_score_for(board, "nobody") == 0
