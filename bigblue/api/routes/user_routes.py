"""
User Routes (buddy finder)

GET /users - Divers looking for a buddy, with filters
GET /users/search?q= - Search divers by name
GET /users/{user_id} - Public profile (no email)
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from bigblue.services.mongo_service import UserService
from bigblue.schemas.schemas import PublicUserResponse, DataResponse, ListResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=ListResponse[PublicUserResponse])
async def list_divers(
    search: Optional[str] = Query(None, description="Name or bio"),
    location: Optional[str] = Query(None, description="City or country"),
    certification_level: Optional[str] = Query(None, alias="certificationLevel"),
    experience_level: Optional[str] = Query(None, alias="experienceLevel")
):
    divers = UserService().search(
        search=search,
        location=location,
        certification_level=certification_level,
        experience_level=experience_level
    )
    return ListResponse(count=len(divers), data=divers)


@router.get("/search", response_model=ListResponse[PublicUserResponse])
async def search_divers(q: Optional[str] = Query(None, min_length=1)):
    if not q:
        raise HTTPException(status_code=400, detail="Please provide a search term")
    divers = UserService().search(search=q, looking_only=False, name_only=True)
    return ListResponse(count=len(divers), data=divers)


@router.get("/{user_id}", response_model=DataResponse[PublicUserResponse])
async def get_diver(user_id: str):
    return DataResponse(data=UserService().get_or_404(user_id))
