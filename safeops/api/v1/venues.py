from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status

from safeops.core.security import get_container, get_current_user
from safeops.schemas.venue import (
    HazardStatusUpdate,
    VenueCreate,
    VenueHazardCreate,
    VenueHazardIn,
    VenueHazardRead,
    VenueHazardUpdate,
    VenueRead,
    VenueUpdate,
)

router = APIRouter(prefix="/venues", tags=["venues"])


async def _venue_or_404(container, venue_id: int):
    venue = await container.venues.get_by_id(venue_id)
    if venue is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return venue


async def _hazard_of(container, venue_id: int, hazard_id: int):
    hazard = await container.hazards.get_venue_hazard(hazard_id)
    if hazard is None or hazard["venue_id"] != venue_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hazard not found")
    return hazard


@router.get("", response_model=List[VenueRead])
async def list_venues(q: Optional[str] = None, container=Depends(get_container), user=Depends(get_current_user)):
    """All venues, most recently updated first; ``q`` filters by name, address or postal code."""
    if q:
        return await container.venues.search(q)
    return await container.venues.get_all()


@router.post("", response_model=VenueRead, status_code=status.HTTP_201_CREATED)
async def create_venue(payload: VenueCreate, container=Depends(get_container), user=Depends(get_current_user)):
    data = payload.model_dump(exclude_unset=True)
    data["created_by"] = user["id"]
    return await container.venues.create(data)


@router.get("/{venue_id}", response_model=VenueRead)
async def get_venue(venue_id: int, container=Depends(get_container), user=Depends(get_current_user)):
    return await _venue_or_404(container, venue_id)


@router.patch("/{venue_id}", response_model=VenueRead)
async def update_venue(venue_id: int, payload: VenueUpdate, container=Depends(get_container),
                       user=Depends(get_current_user)):
    return await container.venues.update(venue_id, payload)


@router.get("/{venue_id}/hazards", response_model=List[VenueHazardRead])
async def list_venue_hazards(venue_id: int, container=Depends(get_container), user=Depends(get_current_user)):
    await _venue_or_404(container, venue_id)
    return await container.venues.get_hazards(venue_id)


@router.post("/{venue_id}/hazards", response_model=VenueHazardRead, status_code=status.HTTP_201_CREATED)
async def add_venue_hazard(venue_id: int, payload: VenueHazardIn, container=Depends(get_container),
                           user=Depends(get_current_user)):
    await _venue_or_404(container, venue_id)
    return await container.venues.add_hazard(VenueHazardCreate(venue_id=venue_id, **payload.model_dump()))


@router.patch("/{venue_id}/hazards/{hazard_id}", response_model=VenueHazardRead)
async def update_venue_hazard(venue_id: int, hazard_id: int, payload: VenueHazardUpdate,
                              container=Depends(get_container), user=Depends(get_current_user)):
    await _hazard_of(container, venue_id, hazard_id)
    return await container.hazards.update_venue_hazard(hazard_id, payload)


@router.put("/{venue_id}/hazards/{hazard_id}/status", response_model=VenueHazardRead)
async def set_venue_hazard_status(venue_id: int, hazard_id: int, payload: HazardStatusUpdate,
                                  container=Depends(get_container), user=Depends(get_current_user)):
    await _hazard_of(container, venue_id, hazard_id)
    return await container.hazards.set_venue_hazard_status(hazard_id, payload.status)
