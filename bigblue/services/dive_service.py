"""
Dive Log Service

PURPOSE:
A diver's personal logbook: CRUD on logged dives plus the statistics
shown on the dashboard.

INVARIANTS:
- duration (minutes) is always derived from entry/exit time; a dive that
  exits "earlier" than it entered crossed midnight
- a new dive is numbered one past the diver's highest dive_number;
  (user_id, dive_number) is unique, so a clash with a concurrent insert
  is retried with the next number
- users.number_of_dives mirrors the count of dives after every insert/delete
"""

import logging
import math
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from bigblue.core.errors import ConflictError, NotFoundError, PermissionDenied, ValidationFailed
from bigblue.db.mongodb import get_collection, COLLECTIONS
from bigblue.schemas.schemas import to_naive_utc
from bigblue.services.mongo_service import (
    LocationService,
    UserService,
    parse_object_id,
    serialize_doc,
    try_object_id,
    utcnow,
)

logger = logging.getLogger(__name__)

MIN_DURATION = 5
MAX_DURATION = 300
MINUTES_PER_DAY = 1440
DIVE_NUMBER_ATTEMPTS = 5


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def compute_duration(entry_time: str, exit_time: str) -> int:
    """
    Minutes between two "HH:MM" times, wrapping past midnight.

    Raises:
        ValidationFailed if the result is outside 5..300 minutes
    """
    duration = _minutes(exit_time) - _minutes(entry_time)
    if duration < 0:
        duration += MINUTES_PER_DAY
    if not MIN_DURATION <= duration <= MAX_DURATION:
        raise ValidationFailed(
            f"Dive duration must be between {MIN_DURATION} and {MAX_DURATION} minutes"
        )
    return duration


def _avg(values: List[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def compute_dive_stats(dives: List[dict], location_names: Dict[str, str], buddy_names: Dict[str, str]) -> dict:
    """
    Dashboard statistics over a diver's logbook.

    Args:
        dives: serialized dive documents
        location_names: location id -> site name
        buddy_names: user id -> name
    """
    if not dives:
        return {
            "overview": {
                "total_dives": 0, "total_duration": 0, "avg_depth": 0,
                "max_depth_reached": 0, "avg_duration": 0, "unique_locations": [],
            },
            "top_locations": [], "monthly_dives": [], "dive_types": [],
            "top_buddies": [], "total_hours_underwater": 0, "favorite_site": "None",
        }

    durations = [d.get("duration") or 0 for d in dives]
    total_duration = sum(durations)

    location_counts = Counter(d["location_id"] for d in dives)
    top_locations = [
        {"location_id": loc_id, "name": location_names.get(loc_id, "Unknown"), "count": count}
        for loc_id, count in location_counts.most_common(5)
    ]

    months = Counter(to_naive_utc(d["date"]).strftime("%Y-%m") for d in dives)
    types = Counter(d["dive_type"] for d in dives)
    buddies = Counter(d["buddy_id"] for d in dives if d.get("buddy_id"))

    return {
        "overview": {
            "total_dives": len(dives),
            "total_duration": total_duration,
            "avg_depth": _avg([d["average_depth"] for d in dives if d.get("average_depth") is not None]),
            "max_depth_reached": max(d.get("max_depth") or 0 for d in dives),
            "avg_duration": _avg(durations),
            "unique_locations": sorted(location_counts),
        },
        "top_locations": top_locations,
        "monthly_dives": [{"month": m, "count": c} for m, c in sorted(months.items())],
        "dive_types": [{"dive_type": t, "count": c} for t, c in types.most_common()],
        "top_buddies": [
            {"buddy_id": b, "name": buddy_names.get(b, "Unknown"), "count": c}
            for b, c in buddies.most_common(5)
        ],
        "total_hours_underwater": round(total_duration / 60, 1),
        "favorite_site": top_locations[0]["name"],
    }


# ============================================================
# DIVES COLLECTION
# ============================================================

class DiveService:
    """CRUD, search and stats for logged dives."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["dives"])
        self.users = UserService()
        self.locations = LocationService()

    def _next_dive_number(self, user_oid: ObjectId) -> int:
        last = self.collection.find_one(
            {"user_id": user_oid}, {"dive_number": 1}, sort=[("dive_number", DESCENDING)]
        )
        return (last or {}).get("dive_number", 0) + 1

    def _sync_dive_count(self, user_oid: ObjectId) -> int:
        count = self.collection.count_documents({"user_id": user_oid})
        self.users.set_dive_count(user_oid, count)
        return count

    def populate(self, docs: List[dict]) -> List[dict]:
        """Embed location and buddy summaries next to their ids."""
        locations = self.locations.summaries(d["location_id"] for d in docs)
        buddies = self.users.summaries(d["buddy_id"] for d in docs if d.get("buddy_id"))

        out = []
        for doc in docs:
            item = serialize_doc(doc)
            item["location"] = locations.get(item["location_id"])
            item["buddy"] = buddies.get(item.get("buddy_id")) if item.get("buddy_id") else None
            out.append(item)
        return out

    def _load(self, dive_id) -> dict:
        doc = self.collection.find_one({"_id": parse_object_id(dive_id, "Dive")})
        if doc is None:
            raise NotFoundError("Dive")
        return doc

    def _reference_ids(self, data: dict) -> dict:
        if "location_id" in data:
            data["location_id"] = self.locations.require(data["location_id"])
        if data.get("buddy_id"):
            data["buddy_id"] = parse_object_id(data["buddy_id"], "Buddy")
            if not self.users.get_by_id(data["buddy_id"]):
                raise NotFoundError("Buddy")
        if data.get("buddy_request_id"):
            data["buddy_request_id"] = try_object_id(data["buddy_request_id"])
        return data

    # ---------------- writes ----------------

    def create(self, user_id, data: dict) -> dict:
        user_oid = parse_object_id(user_id, "User")
        data = self._reference_ids(data)
        data["duration"] = compute_duration(data["entry_time"], data["exit_time"])

        now = utcnow()
        doc = {
            **data,
            "user_id": user_oid,
            "verified": False,
            "created_at": now,
            "updated_at": now,
        }
        for _ in range(DIVE_NUMBER_ATTEMPTS):
            doc["dive_number"] = self._next_dive_number(user_oid)
            try:
                result = self.collection.insert_one(doc)
                break
            except DuplicateKeyError:
                doc.pop("_id", None)
        else:
            raise ConflictError("Could not number this dive, please try again")
        self._sync_dive_count(user_oid)
        logger.info(f"Logged dive #{doc['dive_number']}", extra={"user_id": str(user_oid)})
        return self.populate([self._load(result.inserted_id)])[0]

    def update(self, dive_id, user_id, fields: dict) -> dict:
        doc = self._load(dive_id)
        if str(doc["user_id"]) != str(user_id):
            raise PermissionDenied("Not authorized to update this dive")

        fields = self._reference_ids(fields)
        doc.update(fields)
        doc["duration"] = compute_duration(doc["entry_time"], doc["exit_time"])
        doc["updated_at"] = utcnow()
        self.collection.replace_one({"_id": doc["_id"]}, doc)
        return self.populate([doc])[0]

    def delete(self, dive_id, user_id) -> None:
        doc = self._load(dive_id)
        if str(doc["user_id"]) != str(user_id):
            raise PermissionDenied("Not authorized to delete this dive")
        self.collection.delete_one({"_id": doc["_id"]})
        self._sync_dive_count(doc["user_id"])
        logger.info("Deleted dive", extra={"user_id": str(user_id)})

    # ---------------- reads ----------------

    def get_visible(self, dive_id, viewer_id) -> dict:
        """Private dives are only visible to their owner; anyone else gets 404."""
        doc = self._load(dive_id)
        if not doc.get("is_public", True) and str(doc["user_id"]) != str(viewer_id):
            raise NotFoundError("Dive")
        return self.populate([doc])[0]

    def list_for_user(self, user_id, page: int = 1, limit: int = 10) -> Tuple[List[dict], dict]:
        user_oid = parse_object_id(user_id, "User")
        total = self.collection.count_documents({"user_id": user_oid})
        cursor = (
            self.collection.find({"user_id": user_oid})
            .sort([("date", DESCENDING), ("created_at", DESCENDING)])
            .skip((page - 1) * limit)
            .limit(limit)
        )
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        }
        return self.populate(list(cursor)), pagination

    def public_for_user(self, user_id) -> List[dict]:
        user_oid = parse_object_id(user_id, "User")
        cursor = self.collection.find({"user_id": user_oid, "is_public": True}).sort("date", DESCENDING)
        return self.populate(list(cursor))

    def search(
        self,
        user_id,
        min_depth: Optional[float] = None,
        max_depth: Optional[float] = None,
        dive_type: Optional[str] = None,
        location_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        min_rating: Optional[int] = None,
        search: Optional[str] = None
    ) -> List[dict]:
        query: dict = {"user_id": parse_object_id(user_id, "User")}

        depth = {}
        if min_depth is not None:
            depth["$gte"] = min_depth
        if max_depth is not None:
            depth["$lte"] = max_depth
        if depth:
            query["max_depth"] = depth

        if dive_type:
            query["dive_type"] = dive_type.lower()
        if location_id:
            query["location_id"] = parse_object_id(location_id, "Location")

        dates = {}
        if date_from is not None:
            dates["$gte"] = to_naive_utc(date_from)
        if date_to is not None:
            dates["$lte"] = to_naive_utc(date_to)
        if dates:
            query["date"] = dates

        if min_rating is not None:
            query["rating.overall"] = {"$gte": min_rating}

        dives = self.populate(list(self.collection.find(query).sort("date", DESCENDING)))

        if search:
            needle = search.lower()
            dives = [
                d for d in dives
                if needle in (d.get("notes") or "").lower()
                or needle in ((d.get("location") or {}).get("name") or "").lower()
            ]
        return dives

    def stats(self, user_id) -> dict:
        dives = [serialize_doc(d) for d in self.collection.find({"user_id": parse_object_id(user_id, "User")})]
        locations = self.locations.summaries(d["location_id"] for d in dives)
        buddies = self.users.summaries(d["buddy_id"] for d in dives if d.get("buddy_id"))
        return compute_dive_stats(
            dives,
            {loc_id: s["name"] for loc_id, s in locations.items()},
            {b_id: s["name"] for b_id, s in buddies.items()},
        )
