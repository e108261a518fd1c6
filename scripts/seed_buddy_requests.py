#!/usr/bin/env python3
"""
Seed sample buddy requests.

Needs the demo users and curated sites (run seed_users.py and
seed_locations.py first). Existing buddy requests are removed.
Usage: python scripts/seed_buddy_requests.py
"""
import sys
sys.path.insert(0, '.')

from bigblue.services.buddy_service import BuddyRequestService
from bigblue.services.mongo_service import UserService, LocationService, utcnow
from bigblue.utils.seed_data import CURATED_LOCATIONS, DEMO_USERS, build_buddy_requests


def main():
    users = UserService()
    locations = LocationService()
    service = BuddyRequestService()

    user_ids = {}
    for data in DEMO_USERS:
        user = users.get_by_email_with_password(data["email"])
        if not user:
            print(f"❌ Demo user {data['email']} missing, run scripts/seed_users.py first")
            sys.exit(1)
        user_ids[data["email"]] = user["_id"]

    site_ids = {}
    for site in CURATED_LOCATIONS:
        doc = locations.collection.find_one({"name": site["name"]}, {"_id": 1})
        if not doc:
            print(f"❌ Site {site['name']} missing, run scripts/seed_locations.py first")
            sys.exit(1)
        site_ids[site["name"]] = str(doc["_id"])

    deleted = service.collection.delete_many({}).deleted_count
    print(f"🧹 Cleared {deleted} existing buddy requests")

    for data in build_buddy_requests(user_ids, site_ids, utcnow()):
        requester = users.get_by_id(data.pop("requester"))
        responder = data.pop("responder", None)
        response_message = data.pop("response_message", None)

        request = service.create(requester, data)
        if responder:
            request = service.respond(request["_id"], responder, response_message)

        location = request["location"]
        print(f"\nID: {request['_id']}")
        print(f"Requester: {request['requester']['name']}")
        print(f"Location: {location['name']}, {location['country']}")
        print(f"Experience: {request['experience_level']} | Dive Type: {request['dive_type']}")
        print(f"Max Group Size: {request['max_group_size']} | Responses: {len(request['responses'])}")
        print(f"Status: {request['status']}")

    print("\n✨ Buddy requests seeded")


if __name__ == "__main__":
    main()
