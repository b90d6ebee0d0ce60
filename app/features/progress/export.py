from __future__ import annotations

import csv
from io import StringIO
from typing import Iterable

from app.common.utils import format_timestamp
from app.features.progress.schemas import ModuleProgress
from app.features.quiz.grading import MAX_ATTEMPTS

CSV_HEADER = ["User", "Module", "Best Score", "Attempts", "Last Attempt Date"]
CSV_FILENAME = "user_progress_summary.csv"


def progress_csv(rows: Iterable[ModuleProgress], max_attempts: int = MAX_ATTEMPTS) -> str:
    """Render the admin progress table; attempts are shown as ``"<n> / <max>"``."""
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for r in rows:
        writer.writerow([
            r.full_name,
            r.module_title,
            r.best_score,
            f"{r.attempt_count} / {max_attempts}",
            format_timestamp(r.last_completed_at),
        ])
    return buffer.getvalue()
