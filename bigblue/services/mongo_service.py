"""
MongoDB Service - CRUD operations for users and dive sites.

Collections handled here:
1. users      - diver accounts (password hash never leaves this module
                except through get_by_email_with_password)
2. locations  - the dive-site directory

Buddy requests and dive logs carry more rules and live in their own
modules (buddy_service, dive_service).

References between documents are stored as ObjectId and turned back into
strings by serialize_doc before anything leaves the service layer.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from bigblue.core.errors import ConflictError, NotFoundError
from bigblue.db.mongodb import get_collection, COLLECTIONS
from bigblue.utils.difficulty import difficulty_rank
from bigblue.utils.geo import haversine_m, near_sphere

logger = logging.getLogger(__name__)


# ============================================================
# HELPERS
# ============================================================

def utcnow() -> datetime:
    """Naive UTC 'now', the same flavour pymongo returns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_json_safe(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _to_json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json_safe(v) for v in value]
    return value


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to a JSON-serializable dict (ObjectIds become strings)."""
    if doc is None:
        return None
    return _to_json_safe(doc)


def serialize_docs(docs: Iterable[dict]) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def parse_object_id(value, entity: str = "Resource") -> ObjectId:
    """Parse an id from a URL or body; malformed ids are reported as not found."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(entity)


def try_object_id(value) -> Optional[ObjectId]:
    if value is None:
        return None
    try:
        return parse_object_id(value)
    except NotFoundError:
        return None


USER_SUMMARY_FIELDS = {
    "name": 1, "certification_level": 1, "experience_level": 1, "number_of_dives": 1
}
LOCATION_SUMMARY_FIELDS = {"name": 1, "country": 1, "difficulty": 1}


def _icontains(text: str) -> dict:
    return {"$regex": re.escape(text), "$options": "i"}


# ============================================================
# USERS COLLECTION
# ============================================================

class UserService:
    """
    Handles diver accounts.
    Every read except get_by_email_with_password excludes the password hash.
    """

    NO_PASSWORD = {"password": 0}

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["users"])

    def create(self, data: dict, password_hash: str) -> dict:
        """
        Insert a new diver.

        Args:
            data: validated RegisterRequest fields (snake_case)
            password_hash: bcrypt hash, never the raw password

        Raises:
            ConflictError if the email is already registered
        """
        if self.collection.find_one({"email": data["email"]}, {"_id": 1}):
            raise ConflictError("User already exists")

        now = utcnow()
        doc = {
            "name": data["name"],
            "email": data["email"],
            "password": password_hash,
            "certification_level": data["certification_level"],
            "experience_level": data.get("experience_level") or "beginner",
            "number_of_dives": data.get("number_of_dives") or 0,
            "bio": data.get("bio") or "",
            "location": data.get("location"),
            "preferred_dive_types": [],
            "languages": [],
            "equipment": {"has_full_set": False, "items": []},
            "profile_image": None,
            "is_verified": False,
            "is_looking_for_buddy": True,
            "favorite_sites": [],
            "last_active": now,
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        logger.info("Registered diver", extra={"user_id": str(result.inserted_id)})
        return self.get_by_id(result.inserted_id)

    def get_by_id(self, user_id) -> Optional[dict]:
        oid = try_object_id(user_id)
        if oid is None:
            return None
        return serialize_doc(self.collection.find_one({"_id": oid}, self.NO_PASSWORD))

    def get_or_404(self, user_id) -> dict:
        user = self.get_by_id(user_id)
        if not user:
            raise NotFoundError("User")
        return user

    def get_by_email_with_password(self, email: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"email": email.lower()}))

    def get_password_hash(self, user_id) -> Optional[str]:
        doc = self.collection.find_one({"_id": parse_object_id(user_id, "User")}, {"password": 1})
        return doc["password"] if doc else None

    def update_profile(self, user_id, fields: dict) -> dict:
        """Apply only the provided fields; email must stay unique."""
        oid = parse_object_id(user_id, "User")
        if "email" in fields:
            clash = self.collection.find_one(
                {"email": fields["email"], "_id": {"$ne": oid}}, {"_id": 1}
            )
            if clash:
                raise ConflictError("email already exists")

        fields["updated_at"] = utcnow()
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            projection=self.NO_PASSWORD,
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError("User")
        return serialize_doc(doc)

    def set_password(self, user_id, password_hash: str) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(user_id, "User")},
            {"$set": {"password": password_hash, "updated_at": utcnow()}}
        )

    def touch_last_active(self, user_id) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(user_id, "User")},
            {"$set": {"last_active": utcnow()}}
        )

    def set_dive_count(self, user_id, count: int) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(user_id, "User")},
            {"$set": {"number_of_dives": count}}
        )

    # ---------------- favourites ----------------

    def add_favorite(self, user_id, location_id: ObjectId) -> None:
        oid = parse_object_id(user_id, "User")
        user = self.collection.find_one({"_id": oid}, {"favorite_sites": 1})
        if location_id in (user or {}).get("favorite_sites", []):
            raise ConflictError("Location already in favorites")
        self.collection.update_one({"_id": oid}, {"$push": {"favorite_sites": location_id}})

    def remove_favorite(self, user_id, location_id: ObjectId) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(user_id, "User")},
            {"$pull": {"favorite_sites": location_id}}
        )

    def get_favorite_ids(self, user_id) -> List[ObjectId]:
        user = self.collection.find_one(
            {"_id": parse_object_id(user_id, "User")}, {"favorite_sites": 1}
        )
        return list((user or {}).get("favorite_sites", []))

    # ---------------- lookups for other services ----------------

    def summaries(self, user_ids: Iterable) -> Dict[str, dict]:
        """Map of id -> {_id, name, certification_level, experience_level, number_of_dives}."""
        oids = list({oid for oid in (try_object_id(u) for u in user_ids) if oid})
        if not oids:
            return {}
        docs = self.collection.find({"_id": {"$in": oids}}, USER_SUMMARY_FIELDS)
        return {str(d["_id"]): serialize_doc(d) for d in docs}

    def search(
        self,
        search: Optional[str] = None,
        location: Optional[str] = None,
        certification_level: Optional[str] = None,
        experience_level: Optional[str] = None,
        looking_only: bool = True,
        name_only: bool = False,
        limit: int = 100
    ) -> List[dict]:
        """Buddy-finder query over public diver profiles."""
        query: dict = {}
        if looking_only:
            query["is_looking_for_buddy"] = {"$ne": False}
        if certification_level:
            query["certification_level"] = certification_level
        if experience_level:
            query["experience_level"] = experience_level.lower()

        clauses = []
        if search:
            if name_only:
                clauses.append({"name": _icontains(search)})
            else:
                clauses.append({"$or": [{"name": _icontains(search)}, {"bio": _icontains(search)}]})
        if location:
            clauses.append({"$or": [
                {"location.city": _icontains(location)},
                {"location.country": _icontains(location)}
            ]})
        if clauses:
            query["$and"] = clauses

        docs = self.collection.find(query, {"password": 0, "email": 0, "favorite_sites": 0})
        return serialize_docs(docs.sort("name", ASCENDING).limit(limit))


# ============================================================
# LOCATIONS COLLECTION
# ============================================================

LOCATION_SORTS = {
    "name": [("name", ASCENDING)],
    "country": [("country", ASCENDING), ("name", ASCENDING)],
    "rating": [("rating.average", DESCENDING), ("name", ASCENDING)],
    "depth": [("depth.max", ASCENDING), ("name", ASCENDING)],
}


class LocationService:
    """
    Handles the dive-site directory.
    Only sites with is_active=True are listed or searched.
    """

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["locations"])

    @staticmethod
    def build_query(
        country: Optional[str] = None,
        difficulty: Optional[str] = None,
        features: Optional[List[str]] = None,
        min_depth: Optional[float] = None,
        max_depth: Optional[float] = None,
        search: Optional[str] = None
    ) -> dict:
        query: dict = {"is_active": True}
        if country:
            query["country"] = {"$regex": f"^{re.escape(country)}$", "$options": "i"}
        if difficulty:
            query["difficulty"] = difficulty.lower()
        if features:
            query["features"] = {"$in": features}
        if min_depth is not None:
            query["depth.min"] = {"$gte": min_depth}
        if max_depth is not None:
            query["depth.max"] = {"$lte": max_depth}
        if search:
            query["$or"] = [
                {"name": _icontains(search)},
                {"description": _icontains(search)},
                {"country": _icontains(search)},
            ]
        return query

    def list(
        self,
        query: dict,
        sort_by: str = "name",
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> Tuple[List[dict], int]:
        """
        Returns (page of sites, total matching).
        Difficulty is ordered beginner -> expert, which Mongo can't sort natively.
        """
        total = self.collection.count_documents(query)
        cursor = self.collection.find(query)

        if sort_by == "difficulty":
            docs = sorted(cursor, key=lambda d: (difficulty_rank(d.get("difficulty")), d.get("name", "")))
            if page and limit:
                start = (page - 1) * limit
                docs = docs[start:start + limit]
            return serialize_docs(docs), total

        cursor = cursor.sort(LOCATION_SORTS.get(sort_by, LOCATION_SORTS["name"]))
        if page and limit:
            cursor = cursor.skip((page - 1) * limit).limit(limit)
        return serialize_docs(cursor), total

    def get(self, location_id) -> dict:
        doc = self.collection.find_one({"_id": parse_object_id(location_id, "Location")})
        if doc is None:
            raise NotFoundError("Location")
        return serialize_doc(doc)

    def require(self, location_id) -> ObjectId:
        """Return the ObjectId of an existing site or raise NotFoundError."""
        oid = parse_object_id(location_id, "Location")
        if not self.collection.find_one({"_id": oid}, {"_id": 1}):
            raise NotFoundError("Location")
        return oid

    def create(self, data: dict, added_by: Optional[str] = None) -> dict:
        now = utcnow()
        doc = {
            **data,
            "rating": {"average": 0, "count": 0},
            "is_active": True,
            "added_by": try_object_id(added_by),
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        logger.info(f"Created dive site '{data['name']}'", extra={"user_id": added_by})
        return self.get(result.inserted_id)

    def insert_many(self, docs: List[dict]) -> int:
        now = utcnow()
        for doc in docs:
            doc.setdefault("rating", {"average": 0, "count": 0})
            doc.setdefault("is_active", True)
            doc.setdefault("created_at", now)
            doc.setdefault("updated_at", now)
        return len(self.collection.insert_many(docs).inserted_ids)

    def rate(self, location_id, rating: float) -> dict:
        """Fold one rating into the running average."""
        site = self.get(location_id)
        current = site.get("rating") or {"average": 0, "count": 0}
        count = current.get("count", 0)
        new_count = count + 1
        new_average = (current.get("average", 0) * count + rating) / new_count

        new_rating = {"average": new_average, "count": new_count}
        self.collection.update_one(
            {"_id": ObjectId(site["_id"])},
            {"$set": {"rating": new_rating, "updated_at": utcnow()}}
        )
        return new_rating

    def countries(self) -> List[str]:
        return sorted(c for c in self.collection.distinct("country", {"is_active": True}) if c)

    def nearby(self, lng: float, lat: float, max_distance: float) -> List[dict]:
        """
        Active sites within max_distance metres, nearest first.
        Each result carries its distance in metres.
        Needs the 2dsphere index on coordinates (init_mongo_indexes).
        """
        query = {"is_active": True, "coordinates": near_sphere(lng, lat, max_distance)}
        results = []
        for doc in self.collection.find(query):
            site_lng, site_lat = doc["coordinates"]["coordinates"]
            doc["distance"] = round(haversine_m(lng, lat, site_lng, site_lat), 1)
            results.append(doc)
        return serialize_docs(results)

    def get_many(self, location_ids: Iterable) -> List[dict]:
        oids = [oid for oid in (try_object_id(i) for i in location_ids) if oid]
        if not oids:
            return []
        return serialize_docs(self.collection.find({"_id": {"$in": oids}}))

    def summaries(self, location_ids: Iterable) -> Dict[str, dict]:
        """Map of id -> {_id, name, country, difficulty}."""
        oids = list({oid for oid in (try_object_id(i) for i in location_ids) if oid})
        if not oids:
            return {}
        docs = self.collection.find({"_id": {"$in": oids}}, LOCATION_SUMMARY_FIELDS)
        return {str(d["_id"]): serialize_doc(d) for d in docs}
