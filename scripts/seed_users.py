#!/usr/bin/env python3
"""
Create the demo diver accounts.

Existing accounts with the demo emails are removed first.
Usage: python scripts/seed_users.py
"""
import sys
sys.path.insert(0, '.')

from bigblue.core.auth import hash_password
from bigblue.services.mongo_service import UserService
from bigblue.utils.seed_data import DEMO_USERS


def main():
    service = UserService()
    emails = [u["email"] for u in DEMO_USERS]
    service.collection.delete_many({"email": {"$in": emails}})
    print("🧹 Cleared existing demo users")

    for data in DEMO_USERS:
        fields = {k: v for k, v in data.items() if k != "password"}
        user = service.create(fields, hash_password(data["password"]))
        print(f"✅ Created user: {user['name']} ({user['email']})")

    print("\n📝 Login credentials:")
    print("-" * 24)
    for data in DEMO_USERS:
        print(f"Email: {data['email']}")
        print(f"Password: {data['password']}")
        print("-" * 24)


if __name__ == "__main__":
    main()
