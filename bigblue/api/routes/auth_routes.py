"""
Authentication Routes

POST /auth/register - Register new diver
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
PUT /auth/updateprofile - Update profile fields
PUT /auth/updatepassword - Change password (returns a fresh token)
GET /auth/favorites - List favourite dive sites
POST /auth/favorites/{location_id} - Add a favourite
DELETE /auth/favorites/{location_id} - Remove a favourite
"""

import logging

from fastapi import APIRouter, HTTPException, Depends

from bigblue.core.auth import hash_password, verify_password, create_access_token, get_current_user
from bigblue.services.mongo_service import UserService, LocationService
from bigblue.schemas.schemas import (
    RegisterRequest, LoginRequest, UserUpdate, PasswordUpdate,
    AuthResponse, TokenMessageResponse, UserResponse, DataResponse,
    ListResponse, LocationResponse, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

MIN_PASSWORD_LENGTH = 6


def _auth_response(user: dict) -> AuthResponse:
    return AuthResponse(token=create_access_token(user["_id"]), user=user)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new diver account.

    Returns a token straight away so the client can skip the login step.
    """
    data = request.model_dump(exclude={"password"})
    user = UserService().create(data, hash_password(request.password))
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Please provide an email and password")

    service = UserService()
    user = service.get_by_email_with_password(request.email)
    if not user or not verify_password(request.password, user["password"]):
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    service.touch_last_active(user["_id"])
    user.pop("password")
    return _auth_response(user)


@router.get("/me", response_model=DataResponse[UserResponse])
async def get_me(user: dict = Depends(get_current_user)):
    """Get current user info."""
    return DataResponse(data=user)


@router.put("/updateprofile", response_model=DataResponse[UserResponse])
async def update_profile(update: UserUpdate, user: dict = Depends(get_current_user)):
    """Update only the fields that were sent."""
    fields = update.model_dump(exclude_unset=True)
    if not fields:
        return DataResponse(data=user)
    updated = UserService().update_profile(user["_id"], fields)
    return DataResponse(data=updated)


@router.put("/updatepassword", response_model=TokenMessageResponse)
async def update_password(request: PasswordUpdate, user: dict = Depends(get_current_user)):
    if not request.current_password or not request.new_password:
        raise HTTPException(status_code=400, detail="Please provide current and new password")
    if len(request.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    service = UserService()
    if not verify_password(request.current_password, service.get_password_hash(user["_id"])):
        raise HTTPException(status_code=401, detail="Password is incorrect")

    service.set_password(user["_id"], hash_password(request.new_password))
    logger.info("Password changed", extra={"user_id": user["_id"]})
    return TokenMessageResponse(
        token=create_access_token(user["_id"]),
        message="Password updated successfully"
    )


# ============================================================
# FAVOURITE SITES
# ============================================================

@router.get("/favorites", response_model=ListResponse[LocationResponse])
async def get_favorites(user: dict = Depends(get_current_user)):
    ids = UserService().get_favorite_ids(user["_id"])
    sites = LocationService().get_many(ids)
    return ListResponse(count=len(sites), data=sites)


@router.post("/favorites/{location_id}", response_model=MessageResponse)
async def add_favorite(location_id: str, user: dict = Depends(get_current_user)):
    location_oid = LocationService().require(location_id)
    UserService().add_favorite(user["_id"], location_oid)
    return MessageResponse(message="Location added to favorites")


@router.delete("/favorites/{location_id}", response_model=MessageResponse)
async def remove_favorite(location_id: str, user: dict = Depends(get_current_user)):
    location_oid = LocationService().require(location_id)
    UserService().remove_favorite(user["_id"], location_oid)
    return MessageResponse(message="Location removed from favorites")
