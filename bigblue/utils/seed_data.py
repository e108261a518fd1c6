"""
Seed data for local development (used by scripts/seed_*.py).

Documents are returned in storage shape (snake_case); the scripts insert
them through the services so defaults and hashing match the API.
"""

import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

CURATED_LOCATIONS = [
    {
        "name": "Blue Hole",
        "description": "The Great Blue Hole is a giant marine sinkhole off the coast of Belize.",
        "coordinates": {"type": "Point", "coordinates": [-87.5341, 17.3190]},
        "country": "Belize",
        "region": "Caribbean",
        "difficulty": "advanced",
        "depth": {"min": 30, "max": 43, "average": 40},
        "visibility": "excellent",
        "current_strength": "mild",
        "entry_type": "boat",
        "best_months": [3, 4, 5, 6],
        "marine_life": ["Caribbean reef sharks", "Bull sharks", "Giant groupers"],
        "features": ["cave", "deep", "sharks"],
        "facilities": ["dive_shop", "equipment_rental", "nitrox"],
        "certification_required": "Advanced Open Water",
        "water_temperature": {"summer": {"min": 27, "max": 29}, "winter": {"min": 24, "max": 26}},
        "rating": {"average": 4.8, "count": 523},
    },
    {
        "name": "Palancar Reef",
        "description": "Cozumel's famous reef system with stunning coral formations and vibrant marine life.",
        "coordinates": {"type": "Point", "coordinates": [-86.9877, 20.3440]},
        "country": "Mexico",
        "region": "Caribbean",
        "difficulty": "intermediate",
        "depth": {"min": 15, "max": 35, "average": 25},
        "visibility": "excellent",
        "current_strength": "moderate",
        "entry_type": "boat",
        "best_months": [3, 4, 5, 6, 7, 8],
        "marine_life": ["Sea turtles", "Eagle rays", "Moray eels", "Nurse sharks"],
        "features": ["reef", "drift", "wall"],
        "facilities": ["dive_shop", "equipment_rental", "nitrox", "restaurant"],
        "certification_required": "Open Water",
        "water_temperature": {"summer": {"min": 28, "max": 30}, "winter": {"min": 25, "max": 27}},
        "rating": {"average": 4.7, "count": 892},
    },
    {
        "name": "USS Liberty Wreck",
        "description": "WWII shipwreck in Tulamben, Bali. Accessible from shore and covered in beautiful coral growth.",
        "coordinates": {"type": "Point", "coordinates": [115.5928, -8.2706]},
        "country": "Indonesia",
        "region": "Asia-Pacific",
        "difficulty": "intermediate",
        "depth": {"min": 5, "max": 30, "average": 15},
        "visibility": "good",
        "current_strength": "mild",
        "entry_type": "shore",
        "best_months": [4, 5, 6, 7, 8, 9, 10],
        "marine_life": ["Barracuda", "Jackfish", "Moray eels", "Angelfish"],
        "features": ["wreck", "macro", "night_diving"],
        "facilities": ["dive_shop", "equipment_rental", "restaurant", "accommodation"],
        "certification_required": "Open Water",
        "water_temperature": {"summer": {"min": 26, "max": 28}, "winter": {"min": 25, "max": 27}},
        "rating": {"average": 4.6, "count": 1247},
    },
]

COUNTRIES = [
    "Australia", "Thailand", "Philippines", "Maldives", "Egypt", "Honduras", "Costa Rica",
    "South Africa", "Fiji", "Indonesia", "Malaysia", "Japan", "Greece", "Spain", "France",
    "Italy", "Turkey", "Croatia", "Malta", "Cyprus", "Jordan", "Cuba", "Barbados",
    "Brazil", "Ecuador", "Panama", "Sri Lanka", "Palau", "Micronesia", "New Zealand",
]
REGIONS = ["Caribbean", "Pacific", "Indian Ocean", "Mediterranean", "Red Sea", "Asia-Pacific"]
DIFFICULTIES = ["beginner", "intermediate", "advanced", "expert"]
VISIBILITIES = ["excellent", "good", "fair", "variable"]
CURRENTS = ["none", "mild", "moderate", "strong"]
ENTRIES = ["shore", "boat", "both"]
FEATURES = ["reef", "wreck", "cave", "wall", "drift", "night_diving", "macro", "sharks", "rays", "turtles", "deep"]
FACILITIES = ["dive_shop", "equipment_rental", "air_fills", "nitrox", "accommodation", "restaurant"]
CERTIFICATIONS = ["Open Water", "Advanced Open Water", "Rescue Diver", "Dive Master"]


def generate_locations(count: int, rng: Optional[random.Random] = None) -> List[dict]:
    """Random but schema-valid sites, numbered after the curated ones."""
    rng = rng or random.Random()
    sites = []
    for i in range(count):
        country = rng.choice(COUNTRIES)
        min_depth = rng.randint(5, 24)
        max_depth = rng.randint(25, 54)
        sites.append({
            "name": f"Dive Site {i + len(CURATED_LOCATIONS) + 1}",
            "description": f"Beautiful dive site in {country} with excellent marine life and coral formations.",
            "coordinates": {
                "type": "Point",
                "coordinates": [round(rng.uniform(-180, 180), 4), round(rng.uniform(-90, 90), 4)],
            },
            "country": country,
            "region": rng.choice(REGIONS),
            "difficulty": rng.choice(DIFFICULTIES),
            "depth": {"min": min_depth, "max": max_depth, "average": rng.randint(min_depth, max_depth)},
            "visibility": rng.choice(VISIBILITIES),
            "current_strength": rng.choice(CURRENTS),
            "entry_type": rng.choice(ENTRIES),
            "best_months": list(range(1, rng.randint(1, 6) + 1)),
            "marine_life": ["Tropical fish", "Coral formations", "Sea life"],
            "features": FEATURES[:rng.randint(1, 3)],
            "facilities": FACILITIES[:rng.randint(1, 4)],
            "certification_required": rng.choice(CERTIFICATIONS),
            "water_temperature": {"summer": {"min": 24, "max": 30}, "winter": {"min": 20, "max": 26}},
            "rating": {"average": round(rng.uniform(3, 5), 1), "count": rng.randint(50, 549)},
        })
    return sites


DEMO_USERS = [
    {
        "name": "Demo User",
        "email": "demo@bigblue.dev",
        "password": "Demo123!",
        "certification_level": "Advanced Open Water",
        "experience_level": "intermediate",
        "number_of_dives": 75,
        "bio": "Demo account for testing BigBlue features",
        "location": {"city": "California", "country": "USA"},
    },
    {
        "name": "Sarah Johnson",
        "email": "sarah@bigblue.dev",
        "password": "Test123!",
        "certification_level": "Rescue Diver",
        "experience_level": "advanced",
        "number_of_dives": 200,
        "bio": "Experienced diver specializing in underwater photography",
        "location": {"city": "Hawaii", "country": "USA"},
    },
    {
        "name": "Mike Chen",
        "email": "mike@bigblue.dev",
        "password": "Test123!",
        "certification_level": "Open Water",
        "experience_level": "beginner",
        "number_of_dives": 15,
        "bio": "New diver excited to explore the underwater world",
        "location": {"city": "Florida", "country": "USA"},
    },
    {
        "name": "Admin User",
        "email": "admin@bigblue.dev",
        "password": "Admin123!",
        "certification_level": "Dive Master",
        "experience_level": "expert",
        "number_of_dives": 500,
        "bio": "BigBlue platform administrator",
        "location": {"city": "California", "country": "USA"},
    },
]


def build_buddy_requests(users: Dict[str, str], sites: Dict[str, str], now: datetime) -> List[dict]:
    """
    Sample requests keyed to seeded data.

    Args:
        users: email -> user id
        sites: site name -> location id
        now: naive UTC reference time
    """
    day = timedelta(days=1)
    return [
        {
            "requester": users["demo@bigblue.dev"],
            "location_id": sites["Blue Hole"],
            "message": (
                "Looking for experienced divers to explore the famous Blue Hole! "
                "Planning to do 2-3 dives during the day. Equipment rental available on site."
            ),
            "preferred_dates": {"start": now + 7 * day, "end": now + 14 * day, "flexible": True},
            "experience_level": "intermediate",
            "dive_type": "recreational",
            "max_group_size": 4,
            "tags": ["blue-hole", "wall-diving", "sharks"],
            "emergency_contact": {"name": "John Smith", "phone": "+1-555-0123", "relationship": "Brother"},
            "additional_notes": {
                "equipment": "Full gear available for rent, or bring your own",
                "transportation": "Boat transfer included in dive package",
                "accommodation": "Staying at local resort, can share ride from airport",
            },
        },
        {
            "requester": users["sarah@bigblue.dev"],
            "location_id": sites["USS Liberty Wreck"],
            "message": (
                "Wreck diving enthusiast seeking dive buddies for the USS Liberty! "
                "Perfect for intermediate to advanced divers."
            ),
            "preferred_dates": {"start": now + 3 * day, "end": now + 10 * day, "flexible": False},
            "experience_level": "advanced",
            "dive_type": "wreck",
            "max_group_size": 3,
            "tags": ["wreck-diving", "photography", "historical"],
            "emergency_contact": {"name": "Sarah Johnson", "phone": "+1-555-0456", "relationship": "Wife"},
            "additional_notes": {
                "equipment": "Bringing my own gear, including underwater camera setup",
                "transportation": "Staying in Tulamben, can provide local transport advice",
                "accommodation": "Happy to recommend good dive resorts in the area",
            },
            "responder": users["mike@bigblue.dev"],
            "response_message": "I would love to join! Very interested in wreck diving.",
        },
    ]
