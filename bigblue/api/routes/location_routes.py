"""
Dive Site Routes

GET /locations - List active sites with filters, sorting and paging
GET /locations/nearby - Sites within a radius of a point, nearest first
GET /locations/countries/list - Distinct countries with active sites
GET /locations/{location_id} - Site details
POST /locations - Add a site (authenticated)
POST /locations/{location_id}/rate - Rate a site 1-5 (authenticated)
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Depends, Query

from bigblue.core.auth import get_current_user
from bigblue.services.mongo_service import LocationService
from bigblue.utils.geo import valid_lng_lat
from bigblue.schemas.schemas import (
    LocationCreate, LocationResponse, LocationListResponse, ListResponse,
    DataResponse, RatingRequest, SiteRating
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["Locations"])

DEFAULT_RADIUS_M = 50000


@router.get("", response_model=LocationListResponse)
async def list_locations(
    country: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    features: Optional[str] = Query(None, description="Comma separated, any match"),
    min_depth: Optional[float] = Query(None, alias="minDepth"),
    max_depth: Optional[float] = Query(None, alias="maxDepth"),
    search: Optional[str] = Query(None, description="Name, description or country"),
    sort_by: Literal["name", "country", "difficulty", "rating", "depth"] = Query("name", alias="sortBy"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100)
):
    """List active dive sites."""
    feature_list = [f.strip() for f in features.split(",") if f.strip()] if features else None

    service = LocationService()
    query = service.build_query(
        country=country,
        difficulty=difficulty,
        features=feature_list,
        min_depth=min_depth,
        max_depth=max_depth,
        search=search
    )
    sites, total = service.list(query, sort_by=sort_by, page=page, limit=limit)
    return LocationListResponse(count=len(sites), total=total, data=sites)


@router.get("/nearby", response_model=ListResponse[LocationResponse])
async def nearby_locations(
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    distance: Optional[float] = Query(None, gt=0, description="Radius in metres"),
    latitude: Optional[float] = Query(None),
    longitude: Optional[float] = Query(None),
    max_distance: Optional[float] = Query(None, gt=0, alias="maxDistance")
):
    """Sites within `distance` metres of a point, each with its distance."""
    lat = lat if lat is not None else latitude
    lng = lng if lng is not None else longitude
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="Please provide latitude and longitude")
    if not valid_lng_lat(lng, lat):
        raise HTTPException(status_code=400, detail="Coordinates out of range")

    radius = distance or max_distance or DEFAULT_RADIUS_M
    sites = LocationService().nearby(lng, lat, radius)
    return ListResponse(count=len(sites), data=sites)


@router.get("/countries/list", response_model=ListResponse[str])
async def list_countries():
    countries = LocationService().countries()
    return ListResponse(count=len(countries), data=countries)


@router.get("/{location_id}", response_model=DataResponse[LocationResponse])
async def get_location(location_id: str):
    return DataResponse(data=LocationService().get(location_id))


@router.post("", response_model=DataResponse[LocationResponse], status_code=201)
async def create_location(location: LocationCreate, user: dict = Depends(get_current_user)):
    """Add a dive site; the caller is recorded as added_by."""
    site = LocationService().create(location.model_dump(), added_by=user["_id"])
    return DataResponse(data=site)


@router.post("/{location_id}/rate", response_model=DataResponse[SiteRating])
async def rate_location(location_id: str, request: RatingRequest, user: dict = Depends(get_current_user)):
    if request.rating is None or not 1 <= request.rating <= 5:
        raise HTTPException(status_code=400, detail="Please provide a rating between 1 and 5")

    rating = LocationService().rate(location_id, request.rating)
    logger.info(f"Site {location_id} rated {request.rating}", extra={"user_id": user["_id"]})
    return DataResponse(data=rating)
