"""Dive-site route tests: listing filters, nearby search, countries and rating.

All tests run against the three curated sites:
    Blue Hole          Belize     advanced      depth 30-43  rating 4.8
    Palancar Reef      Mexico     intermediate  depth 15-35  rating 4.7
    USS Liberty Wreck  Indonesia  intermediate  depth 5-30   rating 4.6
"""

import copy
import os
from uuid import uuid4

import pytest
from mongomock.collection import Collection
from pymongo import MongoClient

from bigblue.db import mongodb
from bigblue.services.mongo_service import LocationService
from bigblue.utils.seed_data import CURATED_LOCATIONS


def _names(res):
    return [site["name"] for site in res.json()["data"]]


NEW_SITE = {
    "name": "Shark Point",
    "description": "Pinnacle dive with resident leopard sharks.",
    "coordinates": {"type": "Point", "coordinates": [98.4, 7.8]},
    "country": "Thailand",
    "region": "Asia-Pacific",
    "difficulty": "Intermediate",
    "depth": {"min": 5, "max": 24},
    "features": ["reef", "sharks"],
}


# --- Listing ------------------------------------------------------------------

def test_list_default_sorted_by_name(client, sites):
    res = client.get("/api/locations")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["count"] == 3
    assert body["total"] == 3
    assert _names(res) == ["Blue Hole", "Palancar Reef", "USS Liberty Wreck"]


def test_list_uses_camel_case(client, sites):
    site = client.get("/api/locations").json()["data"][0]
    assert site["_id"] == sites["Blue Hole"]
    assert site["currentStrength"] == "mild"
    assert site["certificationRequired"] == "Advanced Open Water"
    assert site["waterTemperature"]["summer"] == {"min": 27, "max": 29}


@pytest.mark.parametrize("params, expected", [
    ({"difficulty": "INTERMEDIATE"}, ["Palancar Reef", "USS Liberty Wreck"]),
    ({"country": "belize"}, ["Blue Hole"]),
    ({"features": "cave,wreck"}, ["Blue Hole", "USS Liberty Wreck"]),
    ({"minDepth": 10}, ["Blue Hole", "Palancar Reef"]),
    ({"maxDepth": 35}, ["Palancar Reef", "USS Liberty Wreck"]),
    ({"search": "cozumel"}, ["Palancar Reef"]),
    ({"search": "INDONESIA"}, ["USS Liberty Wreck"]),
])
def test_list_filters(client, sites, params, expected):
    res = client.get("/api/locations", params=params)
    assert res.status_code == 200
    assert _names(res) == expected


def test_search_is_not_a_regex(client, sites):
    res = client.get("/api/locations", params={"search": ".*"})
    assert res.json()["count"] == 0


def test_sort_by_difficulty(client, sites):
    res = client.get("/api/locations", params={"sortBy": "difficulty"})
    assert _names(res) == ["Palancar Reef", "USS Liberty Wreck", "Blue Hole"]


def test_sort_by_rating(client, sites):
    res = client.get("/api/locations", params={"sortBy": "rating"})
    assert _names(res) == ["Blue Hole", "Palancar Reef", "USS Liberty Wreck"]


def test_sort_by_depth(client, sites):
    res = client.get("/api/locations", params={"sortBy": "depth"})
    assert _names(res) == ["USS Liberty Wreck", "Palancar Reef", "Blue Hole"]


def test_pagination_keeps_total(client, sites):
    res = client.get("/api/locations", params={"page": 2, "limit": 2})
    body = res.json()
    assert body["count"] == 1
    assert body["total"] == 3
    assert _names(res) == ["USS Liberty Wreck"]


def test_invalid_sort_is_rejected(client, sites):
    res = client.get("/api/locations", params={"sortBy": "popularity"})
    assert res.status_code == 400


def test_inactive_sites_are_hidden(client, sites, mongo_db):
    mongo_db.locations.update_one({"name": "Blue Hole"}, {"$set": {"is_active": False}})
    assert "Blue Hole" not in _names(client.get("/api/locations"))


# --- Nearby -------------------------------------------------------------------

@pytest.fixture
def geo_sites(monkeypatch):
    """
    Curated sites in a throwaway database on a real MongoDB server.

    mongomock does not evaluate $nearSphere, so these tests only run when
    BIGBLUE_TEST_MONGODB_URI points at a server.
    """
    uri = os.environ.get("BIGBLUE_TEST_MONGODB_URI")
    if not uri:
        pytest.skip("BIGBLUE_TEST_MONGODB_URI not set; $nearSphere needs a real MongoDB")

    client = MongoClient(uri, serverSelectionTimeoutMS=2000)
    db = client[f"bigblue_test_{uuid4().hex[:8]}"]
    monkeypatch.setattr(mongodb, "_client", client)
    monkeypatch.setattr(mongodb, "_db", db)
    mongodb.init_mongo_indexes()
    LocationService().insert_many(copy.deepcopy(CURATED_LOCATIONS))
    yield db
    client.drop_database(db.name)
    client.close()


def test_nearby_returns_sites_in_radius(client, geo_sites):
    res = client.get("/api/locations/nearby", params={"lat": 17.3, "lng": -87.5, "distance": 100000})
    assert res.status_code == 200
    data = res.json()["data"]
    assert [s["name"] for s in data] == ["Blue Hole"]
    assert 0 < data[0]["distance"] < 10000


def test_nearby_accepts_long_parameter_names(client, geo_sites):
    res = client.get(
        "/api/locations/nearby",
        params={"latitude": 17.3, "longitude": -87.5, "maxDistance": 500000},
    )
    assert _names(res) == ["Blue Hole", "Palancar Reef"]


def test_nearby_default_radius(client, geo_sites):
    res = client.get("/api/locations/nearby", params={"lat": -8.27, "lng": 115.59})
    assert _names(res) == ["USS Liberty Wreck"]


def test_nearby_skips_inactive_sites(client, geo_sites):
    geo_sites.locations.update_one({"name": "Blue Hole"}, {"$set": {"is_active": False}})
    res = client.get("/api/locations/nearby", params={"lat": 17.3, "lng": -87.5, "distance": 100000})
    assert _names(res) == []


def test_nearby_queries_with_near_sphere(client, monkeypatch):
    seen = {}

    def fake_find(self, query, *args, **kwargs):
        seen.update(query)
        return []

    monkeypatch.setattr(Collection, "find", fake_find)
    res = client.get("/api/locations/nearby", params={"lat": 17.3, "lng": -87.5})
    assert res.status_code == 200
    assert seen == {
        "is_active": True,
        "coordinates": {"$nearSphere": {
            "$geometry": {"type": "Point", "coordinates": [-87.5, 17.3]},
            "$maxDistance": 50000,
        }},
    }


def test_nearby_requires_coordinates(client, sites):
    res = client.get("/api/locations/nearby", params={"lat": 17.3})
    assert res.status_code == 400
    assert res.json()["error"] == "Please provide latitude and longitude"


def test_nearby_rejects_out_of_range(client, sites):
    res = client.get("/api/locations/nearby", params={"lat": 95, "lng": 0})
    assert res.status_code == 400


# --- Countries / single site --------------------------------------------------

def test_countries_list(client, sites):
    res = client.get("/api/locations/countries/list")
    assert res.json() == {"success": True, "count": 3, "data": ["Belize", "Indonesia", "Mexico"]}


def test_get_location(client, sites):
    res = client.get(f"/api/locations/{sites['Palancar Reef']}")
    assert res.status_code == 200
    assert res.json()["data"]["country"] == "Mexico"


@pytest.mark.parametrize("location_id", ["65f000000000000000000000", "not-an-id"])
def test_get_location_not_found(client, sites, location_id):
    res = client.get(f"/api/locations/{location_id}")
    assert res.status_code == 404
    assert res.json()["error"] == "Location not found"


# --- Create -------------------------------------------------------------------

def test_create_location_requires_auth(client):
    res = client.post("/api/locations", json=NEW_SITE)
    assert res.status_code == 401


def test_create_location(client, make_user):
    headers, user = make_user()
    res = client.post("/api/locations", headers=headers, json=NEW_SITE)
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["addedBy"] == user["_id"]
    assert data["difficulty"] == "intermediate"
    assert data["rating"] == {"average": 0, "count": 0}
    assert data["isActive"] is True
    assert data["visibility"] == "good"


def test_create_location_rejects_inverted_depth(client, make_user):
    headers, _ = make_user()
    site = {**NEW_SITE, "depth": {"min": 30, "max": 10}}
    res = client.post("/api/locations", headers=headers, json=site)
    assert res.status_code == 400
    assert any("Maximum depth must be greater than minimum depth" in e for e in res.json()["errors"])


def test_create_location_rejects_bad_coordinates(client, make_user):
    headers, _ = make_user()
    site = {**NEW_SITE, "coordinates": {"type": "Point", "coordinates": [200, 7.8]}}
    res = client.post("/api/locations", headers=headers, json=site)
    assert res.status_code == 400


# --- Rating -------------------------------------------------------------------

def test_rate_updates_running_average(client, make_user):
    headers, _ = make_user()
    site_id = client.post("/api/locations", headers=headers, json=NEW_SITE).json()["data"]["_id"]

    res = client.post(f"/api/locations/{site_id}/rate", headers=headers, json={"rating": 4})
    assert res.json()["data"] == {"average": 4, "count": 1}

    res = client.post(f"/api/locations/{site_id}/rate", headers=headers, json={"rating": 2})
    assert res.json()["data"] == {"average": 3, "count": 2}


@pytest.mark.parametrize("body", [{"rating": 6}, {"rating": 0}, {}])
def test_rate_rejects_out_of_range(client, make_user, sites, body):
    headers, _ = make_user()
    res = client.post(f"/api/locations/{sites['Blue Hole']}/rate", headers=headers, json=body)
    assert res.status_code == 400
    assert res.json()["error"] == "Please provide a rating between 1 and 5"
