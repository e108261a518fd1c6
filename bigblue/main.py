"""
BigBlue - Main Application

FastAPI backend for the BigBlue diving community:
- MongoDB for users, dive sites, buddy requests and dive logs
- JWT authentication
- React client talks to /api/* (CORS origins from settings)

Run: uvicorn bigblue.main:app --reload --port 5000
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from bigblue import __version__
from bigblue.api.error_handlers import register_error_handlers
from bigblue.api.routes import api_router
from bigblue.core.config import get_settings
from bigblue.core.observability import setup_logging
from bigblue.db.mongodb import close_mongo_client, init_mongo_indexes, test_mongo_connection

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    try:
        init_mongo_indexes()
    except PyMongoError as e:
        logger.warning(f"MongoDB index initialization failed: {e}")
    logger.info(f"BigBlue API started ({settings.environment})")
    yield
    close_mongo_client()
    logger.info("BigBlue API shutting down")


settings = get_settings()

# Create FastAPI app
app = FastAPI(
    title="BigBlue API",
    description="""
    Backend for the BigBlue scuba-diving community.

    ## Features
    - **Authentication**: JWT-based auth, profiles, favourite sites
    - **Locations**: Dive-site directory with filters and nearby search
    - **Buddy Requests**: Post, match and join dive-buddy requests
    - **Dives**: Personal dive log with statistics
    - **Users**: Buddy finder over diver profiles
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/api/health", tags=["Health"])
async def health_check():
    """Liveness plus database connectivity."""
    return {
        "status": "OK",
        "service": "BigBlue API",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }


@app.get("/api/test", tags=["Health"])
async def test_banner():
    return {
        "message": "BigBlue API is running!",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
