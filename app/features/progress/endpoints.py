from __future__ import annotations

from io import StringIO
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from app.common.deps import CurrentUser, get_current_user, require_admin
from .export import CSV_FILENAME
from .schemas import LeaderboardView, ProgressRow, UserScoreOut
from .service import progress_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/leaderboard", response_model=LeaderboardView)
async def get_leaderboard(current_user: CurrentUser = Depends(get_current_user)):
    """Overall leaderboard: sum of best score per module, podium split."""
    try:
        return await progress_service.leaderboard()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/me", response_model=UserScoreOut)
async def get_my_score(current_user: CurrentUser = Depends(get_current_user)):
    try:
        return await progress_service.user_score(current_user.id, current_user.full_name)
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/progress", response_model=List[ProgressRow])
async def get_all_progress(current_user: CurrentUser = Depends(require_admin())):
    """Admin: best score and attempts for every user and module."""
    try:
        return await progress_service.all_progress()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.get("/progress.csv")
async def export_progress_csv(current_user: CurrentUser = Depends(require_admin())):
    """Admin: export the progress table as CSV"""
    try:
        content = await progress_service.export_csv()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return StreamingResponse(
        StringIO(content),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
    )
