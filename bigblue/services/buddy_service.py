"""
Buddy Request Service

PURPOSE:
The buddy board. A diver posts a request for a site and a date window,
other divers respond, the requester accepts or rejects each response.

RULES:
- The requester counts as one member, so a request is full once
  max_group_size - 1 responses are accepted
- Status is refreshed after every write:
    active + end date passed  -> expired
    active + full             -> completed
- A diver may respond once per request, never to their own, and only
  while it is active and not full
"""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection

from bigblue.core.errors import NotFoundError, PermissionDenied, ValidationFailed
from bigblue.db.mongodb import get_collection, COLLECTIONS
from bigblue.schemas.schemas import to_naive_utc
from bigblue.services.mongo_service import (
    LocationService,
    UserService,
    parse_object_id,
    serialize_doc,
    utcnow,
)

logger = logging.getLogger(__name__)

# Statuses a requester may set by hand; "expired" only comes from the refresh
SETTABLE_STATUSES = {"active", "completed", "cancelled"}


# ============================================================
# DERIVED FIELDS
# ============================================================

def count_responses(doc: dict, status: str) -> int:
    return sum(1 for r in doc.get("responses", []) if r.get("status") == status)


def is_full(doc: dict) -> bool:
    return count_responses(doc, "accepted") >= doc.get("max_group_size", 4) - 1


def is_expired(doc: dict, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return now > to_naive_utc(doc["preferred_dates"]["end"])


def days_until_dive(doc: dict, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    delta = to_naive_utc(doc["preferred_dates"]["start"]) - now
    return math.ceil(delta.total_seconds() / 86400)


def refresh_status(doc: dict, now: Optional[datetime] = None) -> str:
    """Apply the expiry and completion rules; returns the resulting status."""
    if doc.get("status") == "active" and is_expired(doc, now):
        doc["status"] = "expired"
    if doc.get("status") == "active" and is_full(doc):
        doc["status"] = "completed"
    return doc["status"]


def with_derived(doc: dict, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    doc["accepted_responses_count"] = count_responses(doc, "accepted")
    doc["pending_responses_count"] = count_responses(doc, "pending")
    doc["is_full"] = is_full(doc)
    doc["is_expired"] = is_expired(doc, now)
    doc["days_until_dive"] = days_until_dive(doc, now)
    return doc


def can_user_respond(doc: dict, user_id) -> Dict:
    """
    Returns {"can_respond": bool, "reason": str}.
    Checks run in a fixed order so the first failing rule is reported.
    """
    uid = str(user_id)
    if str(doc["requester"]) == uid:
        return {"can_respond": False, "reason": "Cannot respond to your own request"}
    if doc.get("status") != "active":
        return {"can_respond": False, "reason": "Request is no longer active"}
    if any(str(r["responder"]) == uid for r in doc.get("responses", [])):
        return {"can_respond": False, "reason": "Already responded to this request"}
    if is_full(doc):
        return {"can_respond": False, "reason": "Request is already full"}
    return {"can_respond": True, "reason": ""}


def overlap_query(date_from: Optional[datetime], date_to: Optional[datetime]) -> dict:
    """Requests whose preferred window overlaps [date_from, date_to]."""
    query = {}
    if date_to is not None:
        query["preferred_dates.start"] = {"$lte": to_naive_utc(date_to)}
    if date_from is not None:
        query["preferred_dates.end"] = {"$gte": to_naive_utc(date_from)}
    return query


# ============================================================
# BUDDY_REQUESTS COLLECTION
# ============================================================

class BuddyRequestService:
    """CRUD and lifecycle for buddy requests."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["buddy_requests"])
        self.users = UserService()
        self.locations = LocationService()

    # ---------------- reads ----------------

    def _load(self, request_id) -> dict:
        doc = self.collection.find_one({"_id": parse_object_id(request_id, "Buddy request")})
        if doc is None:
            raise NotFoundError("Buddy request")
        return doc

    def find(self, query: dict) -> List[dict]:
        docs = list(self.collection.find(query).sort([("created_at", DESCENDING), ("_id", DESCENDING)]))
        return self.populate(docs)

    def list_active(
        self,
        location_id: Optional[str] = None,
        experience_level: Optional[str] = None,
        dive_type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[dict]:
        query: dict = {"status": "active"}
        if location_id:
            query["location"] = parse_object_id(location_id, "Location")
        if experience_level:
            query["experience_level"] = experience_level.lower()
        if dive_type:
            query["dive_type"] = dive_type.lower()
        query.update(overlap_query(start_date, end_date))
        return self.find(query)

    def get(self, request_id) -> dict:
        return self.populate([self._load(request_id)])[0]

    def populate(self, docs: List[dict]) -> List[dict]:
        """
        Replace requester/location/responder ids with summaries.
        Ids that no longer resolve are left as plain strings.
        """
        if not docs:
            return []

        user_ids = set()
        location_ids = set()
        for doc in docs:
            user_ids.add(doc["requester"])
            location_ids.add(doc["location"])
            user_ids.update(r["responder"] for r in doc.get("responses", []))

        users = self.users.summaries(user_ids)
        locations = self.locations.summaries(location_ids)

        now = utcnow()
        out = []
        for doc in docs:
            item = serialize_doc(with_derived(dict(doc), now))
            item["requester"] = users.get(item["requester"], item["requester"])
            item["location"] = locations.get(item["location"], item["location"])
            for response in item.get("responses", []):
                response["responder"] = users.get(response["responder"], response["responder"])
            out.append(item)
        return out

    # ---------------- writes ----------------
    #
    # Each write is one conditional update_one against the stored document.
    # When the filter no longer matches, the fresh document is re-checked to
    # report why the write was refused.

    def _refresh(self, oid: ObjectId) -> None:
        """Persist expiry/completion, unless the status moved underneath us."""
        doc = self.collection.find_one({"_id": oid})
        if doc is None:
            return
        now = utcnow()
        current = doc.get("status")
        status = refresh_status(dict(doc), now)
        if status != current:
            self.collection.update_one(
                {"_id": oid, "status": current},
                {"$set": {"status": status, "updated_at": now}}
            )

    def create(self, requester: dict, data: dict) -> dict:
        """
        Args:
            requester: the authenticated user
            data: validated BuddyRequestCreate fields (snake_case)
        """
        location_oid = self.locations.require(data.pop("location_id"))

        now = utcnow()
        doc = {
            **data,
            "requester": ObjectId(requester["_id"]),
            "location": location_oid,
            "experience_level": data.get("experience_level") or requester.get("experience_level", "beginner"),
            "status": "active",
            "responses": [],
            "accepted_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        refresh_status(doc, now)
        result = self.collection.insert_one(doc)
        logger.info("Buddy request posted", extra={"user_id": requester["_id"]})
        return self.get(result.inserted_id)

    def _owned(self, request_id, user_id, action: str) -> dict:
        doc = self._load(request_id)
        if str(doc["requester"]) != str(user_id):
            raise PermissionDenied(f"Not authorized to {action} this request")
        return doc

    def update(self, request_id, user_id, fields: dict) -> dict:
        doc = self._owned(request_id, user_id, "update")

        status = fields.get("status")
        if status is not None and status not in SETTABLE_STATUSES:
            raise ValidationFailed(f"Status cannot be set to '{status}'")

        self.collection.update_one(
            {"_id": doc["_id"], "requester": doc["requester"]},
            {"$set": {**fields, "updated_at": utcnow()}}
        )
        self._refresh(doc["_id"])
        return self.get(doc["_id"])

    def cancel(self, request_id, user_id) -> None:
        doc = self._owned(request_id, user_id, "cancel")
        self.collection.update_one(
            {"_id": doc["_id"], "requester": doc["requester"]},
            {"$set": {"status": "cancelled", "updated_at": utcnow()}}
        )
        logger.info("Buddy request cancelled", extra={"user_id": str(user_id)})

    def respond(self, request_id, user_id, message: Optional[str] = None) -> dict:
        doc = self._load(request_id)
        check = can_user_respond(doc, user_id)
        if not check["can_respond"]:
            raise ValidationFailed(check["reason"])

        uid = ObjectId(str(user_id))
        now = utcnow()
        group_size = doc.get("max_group_size", 4)
        result = self.collection.update_one(
            {
                "_id": doc["_id"],
                "status": "active",
                "max_group_size": group_size,
                "accepted_count": {"$lt": group_size - 1},
                "responses.responder": {"$ne": uid},
            },
            {
                "$push": {"responses": {
                    "_id": ObjectId(),
                    "responder": uid,
                    "message": message,
                    "status": "pending",
                    "created_at": now,
                    "responded_at": None,
                }},
                "$set": {"updated_at": now},
            }
        )
        if result.modified_count == 0:
            check = can_user_respond(self._load(doc["_id"]), uid)
            raise ValidationFailed(check["reason"] or "Request changed while responding, please try again")

        self._refresh(doc["_id"])
        return self.get(doc["_id"])

    def _pending_response(self, doc: dict, responder_id, status: str) -> dict:
        """The responder's pending response, or the reason it cannot move to `status`."""
        response = next(
            (r for r in doc.get("responses", []) if str(r["responder"]) == str(responder_id)),
            None
        )
        if response is None:
            raise NotFoundError("Response")
        if response["status"] != "pending":
            raise ValidationFailed("Response has already been processed")
        if status == "accepted":
            if doc.get("status") != "active":
                raise ValidationFailed("Request is no longer active")
            if is_full(doc):
                raise ValidationFailed("Request is already full")
        return response

    def set_response_status(self, request_id, owner_id, responder_id, status: str) -> dict:
        """Accept or reject a pending response. Accepting may complete the request."""
        action = "accept" if status == "accepted" else "reject"
        doc = self._owned(request_id, owner_id, f"{action} responses on")
        responder = self._pending_response(doc, responder_id, status)["responder"]

        now = utcnow()
        query = {
            "_id": doc["_id"],
            "responses": {"$elemMatch": {"responder": responder, "status": "pending"}},
        }
        update = {"$set": {
            "responses.$.status": status,
            "responses.$.responded_at": now,
            "updated_at": now,
        }}
        if status == "accepted":
            # accepted_count only moves here, so the slot check and the
            # increment happen in the same write
            group_size = doc.get("max_group_size", 4)
            query.update({
                "status": "active",
                "max_group_size": group_size,
                "accepted_count": {"$lt": group_size - 1},
            })
            update["$inc"] = {"accepted_count": 1}

        if self.collection.update_one(query, update).modified_count == 0:
            self._pending_response(self._load(doc["_id"]), responder_id, status)
            raise ValidationFailed("Request changed while saving, please try again")

        self._refresh(doc["_id"])
        return self.get(doc["_id"])


    # ---------------- per-user views ----------------

    def my_requests(self, user_id) -> dict:
        uid = ObjectId(str(user_id))
        return {
            "my_requests": self.find({"requester": uid}),
            "joined_requests": self.find(
                {"responses": {"$elemMatch": {"responder": uid, "status": "accepted"}}}
            ),
            "pending_requests": self.find(
                {"responses": {"$elemMatch": {"responder": uid, "status": "pending"}}}
            ),
        }

    def stats(self, user_id) -> dict:
        uid = ObjectId(str(user_id))
        mine = list(self.collection.find({"requester": uid}, {"status": 1, "responses": 1}))
        return {
            "active_requests": sum(1 for d in mine if d.get("status") == "active"),
            "total_requests": len(mine),
            "responses_received": sum(len(d.get("responses", [])) for d in mine),
            "pending_responses": sum(count_responses(d, "pending") for d in mine),
            "joined_requests": self.collection.count_documents(
                {"responses": {"$elemMatch": {"responder": uid, "status": "accepted"}}}
            ),
            "responses_sent": self.collection.count_documents({"responses.responder": uid}),
        }
