"""
MongoDB Connection Utility

BigBlue keeps everything in MongoDB:
- users: diver accounts, credentials and favourite sites
- locations: the dive-site directory (GeoJSON points)
- buddy_requests: the buddy board, with embedded responses
- dives: dive-log entries
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from bigblue.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the bigblue database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """Get a specific collection (see COLLECTIONS)."""
    db = get_mongo_db()
    return db[name]


def close_mongo_client() -> None:
    """Close the client and forget the cached handles."""
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "locations": "locations",
    "buddy_requests": "buddy_requests",
    "dives": "dives",
}


# One logbook number per diver
DIVE_NUMBER_INDEX = [("user_id", ASCENDING), ("dive_number", ASCENDING)]


def init_mongo_indexes():
    """
    Create indexes for the query patterns the routes use.
    Call this once during app startup.
    """
    db = get_mongo_db()

    users = db[COLLECTIONS["users"]]
    users.create_index("email", unique=True)
    users.create_index([("location.coordinates", "2dsphere")])

    locations = db[COLLECTIONS["locations"]]
    locations.create_index([("coordinates", "2dsphere")])
    locations.create_index([("country", ASCENDING), ("region", ASCENDING)])

    requests = db[COLLECTIONS["buddy_requests"]]
    requests.create_index([("location", ASCENDING), ("status", ASCENDING)])
    requests.create_index("requester")
    requests.create_index([
        ("preferred_dates.start", ASCENDING),
        ("preferred_dates.end", ASCENDING)
    ])
    requests.create_index([("experience_level", ASCENDING), ("dive_type", ASCENDING)])
    requests.create_index([("created_at", DESCENDING)])

    dives = db[COLLECTIONS["dives"]]
    dives.create_index([("user_id", ASCENDING), ("date", DESCENDING)])
    dives.create_index(DIVE_NUMBER_INDEX, unique=True)
    dives.create_index("location_id")
    dives.create_index("buddy_id")

    logger.info("MongoDB indexes created successfully")
