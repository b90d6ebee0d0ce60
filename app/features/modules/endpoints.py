import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.common.deps import CurrentUser, get_current_user, require_admin
from app.common.errors import InvalidInput
from . import schemas
from .service import module_service

logger = logging.getLogger("modules")

router = APIRouter(prefix="/modules", tags=["modules"])


def _unavailable(exc: RuntimeError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def _bad_question_data(module_id: str, exc: InvalidInput) -> HTTPException:
    logger.error("module_questions_invalid module_id=%s error=%s", module_id, exc)
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="invalid_question_data")


@router.get("/", response_model=list[schemas.ModuleCard])
async def list_modules(current_user: CurrentUser = Depends(get_current_user)):
    """List modules with the caller's best score and attempts."""
    try:
        return await module_service.list_with_history(current_user.id)
    except RuntimeError as exc:
        raise _unavailable(exc) from exc


@router.get("/{module_id}", response_model=schemas.ModuleDetail)
async def get_module(module_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """Get a module and its questions without the answer key."""
    try:
        module = await module_service.get_detail(module_id)
    except InvalidInput as exc:
        raise _bad_question_data(module_id, exc) from exc
    except RuntimeError as exc:
        raise _unavailable(exc) from exc
    if not module:
        raise HTTPException(status_code=404, detail="module_not_found")
    return module


@router.get("/{module_id}/edit", response_model=schemas.ModuleEdit)
async def get_module_for_edit(module_id: str, current_user: CurrentUser = Depends(require_admin())):
    """Admin: module with full questions for the editor."""
    try:
        module = await module_service.get_for_edit(module_id)
    except InvalidInput as exc:
        raise _bad_question_data(module_id, exc) from exc
    except RuntimeError as exc:
        raise _unavailable(exc) from exc
    if not module:
        raise HTTPException(status_code=404, detail="module_not_found")
    return module


@router.post("/", response_model=schemas.ModuleEdit, status_code=status.HTTP_201_CREATED)
async def create_module(payload: schemas.ModuleSave, current_user: CurrentUser = Depends(require_admin())):
    """Admin: create a module and its questions."""
    try:
        return await module_service.create(payload)
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise _unavailable(exc) from exc


@router.put("/{module_id}", response_model=schemas.ModuleEdit)
async def update_module(
    module_id: str,
    payload: schemas.ModuleSave,
    current_user: CurrentUser = Depends(require_admin()),
):
    """Admin: update a module and replace its questions."""
    try:
        updated = await module_service.update(module_id, payload)
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise _unavailable(exc) from exc
    if not updated:
        raise HTTPException(status_code=404, detail="module_not_found")
    return updated


@router.delete("/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_module(module_id: str, current_user: CurrentUser = Depends(require_admin())):
    """Admin: delete a module and all of its questions."""
    try:
        deleted = await module_service.delete(module_id)
    except RuntimeError as exc:
        raise _unavailable(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="module_not_found")
    return
