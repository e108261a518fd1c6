#!/usr/bin/env python3
"""
Seed the dive-site directory.

Replaces every location with the curated sites plus generated ones.
Usage: python scripts/seed_locations.py [--count 92] [--seed 42]
"""
import argparse
import random
import sys
sys.path.insert(0, '.')

from bigblue.services.mongo_service import LocationService
from bigblue.utils.difficulty import format_difficulty
from bigblue.utils.seed_data import CURATED_LOCATIONS, generate_locations


def main():
    parser = argparse.ArgumentParser(description="Seed BigBlue dive sites")
    parser.add_argument("--count", type=int, default=92, help="Generated sites on top of the curated ones")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data")
    args = parser.parse_args()

    service = LocationService()
    deleted = service.collection.delete_many({}).deleted_count
    print(f"🗑️  Cleared {deleted} existing locations")

    sites = [dict(site) for site in CURATED_LOCATIONS]
    sites += generate_locations(args.count, random.Random(args.seed))
    inserted = service.insert_many(sites)

    for site in CURATED_LOCATIONS:
        print(f"    {site['name']} ({site['country']}) - {format_difficulty(site['difficulty'])}")
    print(f"✅ Successfully seeded {inserted} dive locations")


if __name__ == "__main__":
    main()
