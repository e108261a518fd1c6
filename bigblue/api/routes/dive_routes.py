"""
Dive Log Routes

GET /dives/my - Caller's logbook, newest first, paginated
POST /dives - Log a dive
GET /dives/stats - Caller's dashboard statistics
GET /dives/search - Filter the caller's logbook
GET /dives/user/{user_id} - Another diver's public dives
GET /dives/{dive_id} - Dive details (private dives: owner only)
PUT /dives/{dive_id} - Update (owner only)
DELETE /dives/{dive_id} - Delete (owner only)
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from bigblue.core.auth import get_current_user
from bigblue.services.dive_service import DiveService
from bigblue.schemas.schemas import (
    DiveCreate, DiveUpdate, DiveResponse, DivePageResponse, DiveStats,
    DataResponse, ListResponse, MessageResponse
)

router = APIRouter(prefix="/dives", tags=["Dives"])


@router.get("/my", response_model=DivePageResponse)
async def my_dives(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: dict = Depends(get_current_user)
):
    dives, pagination = DiveService().list_for_user(user["_id"], page=page, limit=limit)
    return DivePageResponse(data=dives, pagination=pagination)


@router.post("", response_model=DataResponse[DiveResponse], status_code=201)
async def log_dive(dive: DiveCreate, user: dict = Depends(get_current_user)):
    """Log a dive. Duration is derived from the entry and exit times."""
    created = DiveService().create(user["_id"], dive.model_dump())
    return DataResponse(data=created)


@router.get("/stats", response_model=DataResponse[DiveStats])
async def dive_stats(user: dict = Depends(get_current_user)):
    return DataResponse(data=DiveService().stats(user["_id"]))


@router.get("/search", response_model=ListResponse[DiveResponse])
async def search_dives(
    min_depth: Optional[float] = Query(None, alias="minDepth"),
    max_depth: Optional[float] = Query(None, alias="maxDepth"),
    dive_type: Optional[str] = Query(None, alias="diveType"),
    location: Optional[str] = Query(None, description="Location id"),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    min_rating: Optional[int] = Query(None, ge=1, le=5, alias="minRating"),
    search: Optional[str] = Query(None, description="Notes or site name"),
    user: dict = Depends(get_current_user)
):
    dives = DiveService().search(
        user["_id"],
        min_depth=min_depth,
        max_depth=max_depth,
        dive_type=dive_type,
        location_id=location,
        date_from=date_from,
        date_to=date_to,
        min_rating=min_rating,
        search=search
    )
    return ListResponse(count=len(dives), data=dives)


@router.get("/user/{user_id}", response_model=ListResponse[DiveResponse])
async def user_public_dives(user_id: str):
    dives = DiveService().public_for_user(user_id)
    return ListResponse(count=len(dives), data=dives)


@router.get("/{dive_id}", response_model=DataResponse[DiveResponse])
async def get_dive(dive_id: str, user: dict = Depends(get_current_user)):
    return DataResponse(data=DiveService().get_visible(dive_id, user["_id"]))


@router.put("/{dive_id}", response_model=DataResponse[DiveResponse])
async def update_dive(dive_id: str, update: DiveUpdate, user: dict = Depends(get_current_user)):
    updated = DiveService().update(dive_id, user["_id"], update.model_dump(exclude_unset=True))
    return DataResponse(data=updated)


@router.delete("/{dive_id}", response_model=MessageResponse)
async def delete_dive(dive_id: str, user: dict = Depends(get_current_user)):
    DiveService().delete(dive_id, user["_id"])
    return MessageResponse(message="Dive log deleted")
