"""Root conftest - shared fixtures.

MongoDB is replaced by an in-memory mongomock database per test by
swapping the cached handles in bigblue.db.mongodb.
"""

import copy
import os
from datetime import datetime, timedelta, timezone

# Settings are cached on first use; pin them before the app is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("MONGODB_DB", "bigblue_test")
os.environ.setdefault("ENVIRONMENT", "development")

import mongomock
import pytest
from fastapi.testclient import TestClient

from bigblue.db import mongodb
from bigblue.main import app
from bigblue.services.mongo_service import LocationService
from bigblue.utils.seed_data import CURATED_LOCATIONS


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch):
    """Fresh in-memory database for every test."""
    client = mongomock.MongoClient()
    db = client["bigblue_test"]
    monkeypatch.setattr(mongodb, "_client", client)
    monkeypatch.setattr(mongodb, "_db", db)
    yield db


@pytest.fixture
def client():
    # No context manager: lifespan (logging + index creation) is not needed here
    return TestClient(app)


@pytest.fixture
def make_user(client):
    """Register a diver through the API; returns (auth headers, user json)."""
    counter = {"n": 0}

    def _make_user(name=None, experience_level="intermediate", **extra):
        counter["n"] += 1
        name = name or f"Diver {counter['n']}"
        payload = {
            "name": name,
            "email": f"{name.lower().replace(' ', '.')}@bigblue.dev",
            "password": "secret123",
            "certificationLevel": "Advanced Open Water",
            "experienceLevel": experience_level,
            **extra,
        }
        res = client.post("/api/auth/register", json=payload)
        assert res.status_code == 201, res.text
        body = res.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _make_user


@pytest.fixture
def sites():
    """The three curated sites, keyed by name -> id."""
    service = LocationService()
    service.insert_many(copy.deepcopy(CURATED_LOCATIONS))
    return {doc["name"]: str(doc["_id"]) for doc in service.collection.find({}, {"name": 1})}


@pytest.fixture
def days_from_now():
    """ISO timestamp `days` from now (negative for the past)."""
    def _days_from_now(days: float) -> str:
        return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()
    return _days_from_now
