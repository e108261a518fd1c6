"""
Buddy Request Routes

GET /buddy-requests - Active requests, newest first
POST /buddy-requests - Post a request (authenticated)
GET /buddy-requests/my/requests - Created / joined / pending for the caller
GET /buddy-requests/matches - Compatible requests at a site for the caller
GET /buddy-requests/stats - Caller's buddy-board counters
GET /buddy-requests/location/{location_id} - Active requests at a site
GET /buddy-requests/date-range - Active requests overlapping a window
GET /buddy-requests/{request_id} - Request details
PUT /buddy-requests/{request_id} - Update (owner only)
DELETE /buddy-requests/{request_id} - Cancel (owner only)
POST /buddy-requests/{request_id}/respond - Ask to join
PUT /buddy-requests/{request_id}/accept/{responder_id} - Accept a response (owner only)
PUT /buddy-requests/{request_id}/reject/{responder_id} - Reject a response (owner only)

Fixed paths are declared before /{request_id} so they are not captured by it.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query

from bigblue.core.auth import get_current_user
from bigblue.services.buddy_service import BuddyRequestService
from bigblue.services.matching_service import find_matches
from bigblue.schemas.schemas import (
    BuddyRequestCreate, BuddyRequestUpdate, BuddyResponseCreate,
    BuddyRequestResponse, MyBuddyRequests, BuddyStats,
    DataResponse, ListResponse, MessageResponse, to_naive_utc
)

router = APIRouter(prefix="/buddy-requests", tags=["Buddy Requests"])


@router.get("", response_model=ListResponse[BuddyRequestResponse])
async def list_buddy_requests(
    location: Optional[str] = Query(None, description="Location id"),
    experience_level: Optional[str] = Query(None, alias="experienceLevel"),
    dive_type: Optional[str] = Query(None, alias="diveType"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate")
):
    requests = BuddyRequestService().list_active(
        location_id=location,
        experience_level=experience_level,
        dive_type=dive_type,
        start_date=start_date,
        end_date=end_date
    )
    return ListResponse(count=len(requests), data=requests)


@router.post("", response_model=DataResponse[BuddyRequestResponse], status_code=201)
async def create_buddy_request(request: BuddyRequestCreate, user: dict = Depends(get_current_user)):
    """Post a buddy request; level defaults to the requester's own."""
    created = BuddyRequestService().create(user, request.model_dump())
    return DataResponse(data=created)


@router.get("/my/requests", response_model=DataResponse[MyBuddyRequests])
async def my_buddy_requests(user: dict = Depends(get_current_user)):
    return DataResponse(data=BuddyRequestService().my_requests(user["_id"]))


@router.get("/matches", response_model=ListResponse[BuddyRequestResponse])
async def buddy_matches(
    location_id: Optional[str] = Query(None, alias="locationId"),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    user: dict = Depends(get_current_user)
):
    """Requests at a site that the caller's experience level can join."""
    if not location_id:
        raise HTTPException(status_code=400, detail="Please provide a locationId")

    matches = find_matches(
        user["_id"],
        location_id,
        user.get("experience_level", "beginner"),
        date_from,
        date_to
    )
    return ListResponse(count=len(matches), data=matches)


@router.get("/stats", response_model=DataResponse[BuddyStats])
async def buddy_stats(user: dict = Depends(get_current_user)):
    return DataResponse(data=BuddyRequestService().stats(user["_id"]))


@router.get("/location/{location_id}", response_model=ListResponse[BuddyRequestResponse])
async def buddy_requests_at_location(location_id: str):
    requests = BuddyRequestService().list_active(location_id=location_id)
    return ListResponse(count=len(requests), data=requests)


@router.get("/date-range", response_model=ListResponse[BuddyRequestResponse])
async def buddy_requests_in_range(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None)
):
    if start is None or end is None:
        raise HTTPException(status_code=400, detail="Please provide start and end dates")
    if to_naive_utc(end) < to_naive_utc(start):
        raise HTTPException(status_code=400, detail="End date must be on or after start date")

    requests = BuddyRequestService().list_active(start_date=start, end_date=end)
    return ListResponse(count=len(requests), data=requests)


@router.get("/{request_id}", response_model=DataResponse[BuddyRequestResponse])
async def get_buddy_request(request_id: str):
    return DataResponse(data=BuddyRequestService().get(request_id))


@router.put("/{request_id}", response_model=DataResponse[BuddyRequestResponse])
async def update_buddy_request(
    request_id: str,
    update: BuddyRequestUpdate,
    user: dict = Depends(get_current_user)
):
    updated = BuddyRequestService().update(request_id, user["_id"], update.model_dump(exclude_unset=True))
    return DataResponse(data=updated)


@router.delete("/{request_id}", response_model=MessageResponse)
async def cancel_buddy_request(request_id: str, user: dict = Depends(get_current_user)):
    BuddyRequestService().cancel(request_id, user["_id"])
    return MessageResponse(message="Buddy request cancelled")


@router.post("/{request_id}/respond", response_model=DataResponse[BuddyRequestResponse])
async def respond_to_buddy_request(
    request_id: str,
    response: Optional[BuddyResponseCreate] = None,
    user: dict = Depends(get_current_user)
):
    message = response.message if response else None
    updated = BuddyRequestService().respond(request_id, user["_id"], message)
    return DataResponse(data=updated)


@router.put("/{request_id}/accept/{responder_id}", response_model=DataResponse[BuddyRequestResponse])
async def accept_response(request_id: str, responder_id: str, user: dict = Depends(get_current_user)):
    updated = BuddyRequestService().set_response_status(request_id, user["_id"], responder_id, "accepted")
    return DataResponse(data=updated)


@router.put("/{request_id}/reject/{responder_id}", response_model=DataResponse[BuddyRequestResponse])
async def reject_response(request_id: str, responder_id: str, user: dict = Depends(get_current_user)):
    updated = BuddyRequestService().set_response_status(request_id, user["_id"], responder_id, "rejected")
    return DataResponse(data=updated)
