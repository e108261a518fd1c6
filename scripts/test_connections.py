#!/usr/bin/env python3
"""
Connection Test Script

Run this to verify the MongoDB connection is working.
Usage: python scripts/test_connections.py
"""
import sys
sys.path.insert(0, '.')

from bigblue.db.mongodb import test_mongo_connection, get_mongo_db, COLLECTIONS
from bigblue.core.config import get_settings


def main():
    settings = get_settings()
    print("=" * 50)
    print("BIGBLUE - CONNECTION TEST")
    print("=" * 50)

    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if not test_mongo_connection():
        print("    ❌ MongoDB: FAILED")
        sys.exit(1)
    print("    ✅ MongoDB: CONNECTED")

    print("\n[2] Collection sizes...")
    db = get_mongo_db()
    for name in COLLECTIONS.values():
        print(f"    {name}: {db[name].estimated_document_count()}")

    print("\n" + "=" * 50)
    print("Connection test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
