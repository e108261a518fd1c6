"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from bigblue.schemas.schemas import ErrorResponse
from bigblue.api.routes.auth_routes import router as auth_router
from bigblue.api.routes.location_routes import router as location_router
from bigblue.api.routes.buddy_request_routes import router as buddy_request_router
from bigblue.api.routes.dive_routes import router as dive_router
from bigblue.api.routes.user_routes import router as user_router

# Main API router; every route documents the shared error envelope
api_router = APIRouter(responses={
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)
})

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(location_router)
api_router.include_router(buddy_request_router)
api_router.include_router(dive_router)
api_router.include_router(user_router)
