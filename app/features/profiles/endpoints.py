from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, status

from app.common.deps import get_current_user, require_admin, CurrentUser
from .schemas import Profile as ProfileSchema
from .service import get_profile_by_id, list_profiles

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/", response_model=list[ProfileSchema])
async def read_profiles(current_user: CurrentUser = Depends(require_admin())) -> list[ProfileSchema]:
    """Admin: list all profiles."""
    try:
        profiles = await list_profiles()
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [ProfileSchema(**profile) for profile in profiles]


@router.get("/me", response_model=ProfileSchema)
async def read_current_profile(current_user: CurrentUser = Depends(get_current_user)) -> ProfileSchema:
    """Authenticated user: get their own profile."""
    try:
        prof = await get_profile_by_id(current_user.id)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if not prof:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return ProfileSchema(**prof)
