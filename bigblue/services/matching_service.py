"""
Buddy Matching Service

PURPOSE:
Find open buddy requests a diver could join.

HOW IT WORKS:
1. Look up which experience levels can safely dive together
2. Query active requests at the chosen site, excluding the diver's own
3. Keep only requests posted at a compatible level
4. If a date window is given, keep only requests whose window overlaps it
5. Newest first, with requester and site populated

COMPATIBILITY:
Each level pairs with itself and its direct neighbours on the
beginner -> intermediate -> advanced -> expert ladder.
"""

import logging
from datetime import datetime
from typing import List, Optional

from bson import ObjectId

from bigblue.services.buddy_service import BuddyRequestService, overlap_query
from bigblue.services.mongo_service import parse_object_id

logger = logging.getLogger(__name__)


COMPATIBLE_LEVELS = {
    "beginner": ["beginner", "intermediate"],
    "intermediate": ["intermediate", "beginner", "advanced"],
    "advanced": ["advanced", "intermediate", "expert"],
    "expert": ["expert", "advanced"],
}


def compatible_levels(level: str) -> List[str]:
    """Levels a diver at `level` may be matched with. Unknown levels match only themselves."""
    return list(COMPATIBLE_LEVELS.get(level, [level]))


def find_matches(
    user_id,
    location_id,
    level: str,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    service: Optional[BuddyRequestService] = None
) -> List[dict]:
    """
    Active requests by other divers at a site, compatible with `level`.

    The date window only applies when both ends are given.
    """
    service = service or BuddyRequestService()

    query = {
        "location": parse_object_id(location_id, "Location"),
        "status": "active",
        "requester": {"$ne": ObjectId(str(user_id))},
        "experience_level": {"$in": compatible_levels(level)},
    }
    if date_from is not None and date_to is not None:
        query.update(overlap_query(date_from, date_to))

    matches = service.find(query)
    logger.debug(f"Found {len(matches)} buddy matches", extra={"user_id": str(user_id)})
    return matches
