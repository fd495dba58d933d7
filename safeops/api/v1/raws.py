from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response, status

from safeops.core.security import ensure_owner_or_admin, get_container, get_current_user, require_role
from safeops.models.enums import Role
from safeops.schemas.raw import (
    RAWCreate,
    RAWDraft,
    RAWHazardCreate,
    RAWHazardIn,
    RAWHazardRead,
    RAWHazardUpdate,
    RAWRead,
    RAWUpdate,
    ReviewComments,
)

router = APIRouter(prefix="/raws", tags=["raws"])

reviewer = require_role(Role.APPROVER, Role.ADMIN)


async def _raw_or_404(container, raw_id: int):
    raw = await container.raws.get_by_id(raw_id)
    if raw is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="RAW not found")
    return raw


async def _owned_raw(container, raw_id: int, user):
    raw = await _raw_or_404(container, raw_id)
    ensure_owner_or_admin(user, raw["user_id"])
    return raw


async def _hazard_of(container, raw_id: int, hazard_id: int):
    hazard = await container.hazards.get_raw_hazard(hazard_id)
    if hazard is None or hazard["raw_id"] != raw_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hazard not found")
    return hazard


@router.get("", response_model=List[RAWRead])
async def list_raws(mine: bool = False, container=Depends(get_container), user=Depends(get_current_user)):
    return await container.raws.get_all(user["id"] if mine else None)


@router.post("", response_model=RAWRead, status_code=status.HTTP_201_CREATED)
async def create_raw(payload: RAWDraft, container=Depends(get_container), user=Depends(get_current_user)):
    data = RAWCreate(user_id=user["id"], **payload.model_dump(exclude_unset=True))
    return await container.raws.create(data)


@router.get("/{raw_id}", response_model=RAWRead)
async def get_raw(raw_id: int, container=Depends(get_container), user=Depends(get_current_user)):
    """The RAW with its venue name and hazards, highest RPN first."""
    return await _raw_or_404(container, raw_id)


@router.patch("/{raw_id}", response_model=RAWRead)
async def update_raw(raw_id: int, payload: RAWUpdate, container=Depends(get_container),
                     user=Depends(get_current_user)):
    await _owned_raw(container, raw_id, user)
    return await container.raws.update(raw_id, payload)


@router.delete("/{raw_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_raw(raw_id: int, container=Depends(get_container), user=Depends(get_current_user)):
    await _owned_raw(container, raw_id, user)
    await container.raws.delete(raw_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- lifecycle ---------------------------------------------------------------

@router.post("/{raw_id}/submit", response_model=RAWRead)
async def submit_raw(raw_id: int, container=Depends(get_container), user=Depends(get_current_user)):
    await _owned_raw(container, raw_id, user)
    return await container.raws.submit(raw_id, user["id"])


@router.post("/{raw_id}/approve", response_model=RAWRead)
async def approve_raw(raw_id: int, container=Depends(get_container), user=Depends(reviewer)):
    return await container.raws.approve(raw_id, user["id"])


@router.post("/{raw_id}/reject", response_model=RAWRead)
async def reject_raw(raw_id: int, payload: ReviewComments, container=Depends(get_container),
                     user=Depends(reviewer)):
    return await container.raws.reject(raw_id, user["id"], payload.comments)


@router.post("/{raw_id}/request-changes", response_model=RAWRead)
async def request_changes(raw_id: int, payload: ReviewComments, container=Depends(get_container),
                          user=Depends(reviewer)):
    return await container.raws.request_changes(raw_id, user["id"], payload.comments)


# -- hazards -----------------------------------------------------------------

@router.get("/{raw_id}/hazards", response_model=List[RAWHazardRead])
async def list_raw_hazards(raw_id: int, container=Depends(get_container), user=Depends(get_current_user)):
    await _raw_or_404(container, raw_id)
    return await container.raws.get_hazards(raw_id)


@router.post("/{raw_id}/hazards", response_model=RAWHazardRead, status_code=status.HTTP_201_CREATED)
async def add_raw_hazard(raw_id: int, payload: RAWHazardIn, container=Depends(get_container),
                         user=Depends(get_current_user)):
    await _owned_raw(container, raw_id, user)
    return await container.raws.add_hazard(RAWHazardCreate(raw_id=raw_id, **payload.model_dump()))


@router.patch("/{raw_id}/hazards/{hazard_id}", response_model=RAWHazardRead)
async def update_raw_hazard(raw_id: int, hazard_id: int, payload: RAWHazardUpdate,
                            container=Depends(get_container), user=Depends(get_current_user)):
    await _owned_raw(container, raw_id, user)
    await _hazard_of(container, raw_id, hazard_id)
    return await container.raws.update_hazard(hazard_id, payload)


@router.delete("/{raw_id}/hazards/{hazard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_raw_hazard(raw_id: int, hazard_id: int, container=Depends(get_container),
                            user=Depends(get_current_user)):
    await _owned_raw(container, raw_id, user)
    await _hazard_of(container, raw_id, hazard_id)
    await container.raws.delete_hazard(hazard_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
