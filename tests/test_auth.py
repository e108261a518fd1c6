"""Auth route tests: registration, login, profile, password and favourites.

Tests cover:
    - Register returns a token and a camelCase user without password
    - Duplicate and invalid registrations are rejected with 400
    - Login success / failure paths
    - Protected routes reject missing and bad tokens with 401
    - Profile and password updates
    - Favourite sites add / list / remove
"""

import pytest

from bigblue.core.auth import create_access_token, decode_token


def _register(client, **overrides):
    payload = {
        "name": "  Alice Reef ",
        "email": "Alice@BigBlue.dev",
        "password": "secret123",
        "certificationLevel": "Open Water",
        **overrides,
    }
    return client.post("/api/auth/register", json=payload)


# --- Register -----------------------------------------------------------------

def test_register_returns_token_and_user(client):
    res = _register(client)
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["token"]
    user = body["user"]
    assert user["name"] == "Alice Reef"
    assert user["email"] == "alice@bigblue.dev"
    assert user["experienceLevel"] == "beginner"
    assert user["numberOfDives"] == 0
    assert "password" not in user
    assert decode_token(body["token"])["sub"] == user["_id"]


def test_register_duplicate_email(client):
    assert _register(client).status_code == 201
    res = _register(client, email="alice@bigblue.dev")
    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "User already exists", "code": "CONFLICT"}


def test_register_invalid_payload(client):
    res = _register(client, email="not-an-email", password="123")
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "Validation Error"
    assert len(body["errors"]) == 2


def test_register_rejects_unknown_certification(client):
    res = _register(client, certificationLevel="Snorkeler")
    assert res.status_code == 400


def test_password_is_stored_hashed(client, mongo_db):
    _register(client)
    doc = mongo_db.users.find_one({"email": "alice@bigblue.dev"})
    assert doc["password"] != "secret123"
    assert doc["password"].startswith("$2")


# --- Login --------------------------------------------------------------------

def test_login_success(client):
    _register(client)
    res = client.post("/api/auth/login", json={"email": "alice@bigblue.dev", "password": "secret123"})
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "alice@bigblue.dev"


def test_login_wrong_password(client):
    _register(client)
    res = client.post("/api/auth/login", json={"email": "alice@bigblue.dev", "password": "wrong-pass"})
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid credentials"


def test_login_unknown_email(client):
    res = client.post("/api/auth/login", json={"email": "ghost@bigblue.dev", "password": "secret123"})
    assert res.status_code == 401


def test_login_requires_both_fields(client):
    res = client.post("/api/auth/login", json={"email": "alice@bigblue.dev"})
    assert res.status_code == 400
    assert res.json()["error"] == "Please provide an email and password"


# --- Protected routes ---------------------------------------------------------

def test_me_requires_token(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.json() == {"success": False, "error": "Not authorized to access this route"}


def test_me_rejects_bad_token(client):
    res = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert res.status_code == 401


def test_me_rejects_token_for_deleted_user(client):
    token = create_access_token("65f000000000000000000000")
    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_me_returns_profile(client, make_user):
    headers, user = make_user("Bob Wreck")
    res = client.get("/api/auth/me", headers=headers)
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["_id"] == user["_id"]
    assert data["isLookingForBuddy"] is True
    assert data["favoriteSites"] == []
    assert "password" not in data


# --- Profile / password -------------------------------------------------------

def test_update_profile_only_changes_sent_fields(client, make_user):
    headers, _ = make_user("Bob Wreck")
    res = client.put(
        "/api/auth/updateprofile",
        headers=headers,
        json={"bio": "Wreck nerd", "experienceLevel": "ADVANCED", "languages": ["English", "Thai"]},
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["bio"] == "Wreck nerd"
    assert data["experienceLevel"] == "advanced"
    assert data["languages"] == ["English", "Thai"]
    assert data["name"] == "Bob Wreck"
    assert data["certificationLevel"] == "Advanced Open Water"


@pytest.mark.parametrize("field", ["name", "email", "experienceLevel", "certificationLevel", "bio"])
def test_update_profile_rejects_null(client, make_user, field):
    headers, _ = make_user("Bob Wreck")
    res = client.put("/api/auth/updateprofile", headers=headers, json={field: None})
    assert res.status_code == 400
    assert res.json()["errors"] == [f"{field} cannot be null"]

    assert client.get("/api/auth/me", headers=headers).status_code == 200
    res = client.post("/api/auth/login", json={"email": "bob.wreck@bigblue.dev", "password": "secret123"})
    assert res.status_code == 200
    assert res.json()["user"]["name"] == "Bob Wreck"


def test_update_profile_clears_location(client, make_user):
    headers, _ = make_user("Bob Wreck", location={"city": "Dahab", "country": "Egypt"})
    res = client.put("/api/auth/updateprofile", headers=headers, json={"location": None})
    assert res.status_code == 200
    assert res.json()["data"]["location"] is None


def test_update_profile_email_taken(client, make_user):
    make_user("Carol Cave")
    headers, _ = make_user("Bob Wreck")
    res = client.put("/api/auth/updateprofile", headers=headers, json={"email": "carol.cave@bigblue.dev"})
    assert res.status_code == 400


def test_update_password_flow(client):
    token = _register(client).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    res = client.put(
        "/api/auth/updatepassword",
        headers=headers,
        json={"currentPassword": "wrong-one", "newPassword": "newsecret"},
    )
    assert res.status_code == 401

    res = client.put(
        "/api/auth/updatepassword",
        headers=headers,
        json={"currentPassword": "secret123", "newPassword": "newsecret"},
    )
    assert res.status_code == 200
    assert res.json()["token"]
    assert res.json()["message"] == "Password updated successfully"

    res = client.post("/api/auth/login", json={"email": "alice@bigblue.dev", "password": "newsecret"})
    assert res.status_code == 200


def test_update_password_requires_both(client, make_user):
    headers, _ = make_user()
    res = client.put("/api/auth/updatepassword", headers=headers, json={"newPassword": "newsecret"})
    assert res.status_code == 400


# --- Favourites ---------------------------------------------------------------

def test_favorites_lifecycle(client, make_user, sites):
    headers, _ = make_user()
    blue_hole = sites["Blue Hole"]

    res = client.post(f"/api/auth/favorites/{blue_hole}", headers=headers)
    assert res.status_code == 200

    res = client.post(f"/api/auth/favorites/{blue_hole}", headers=headers)
    assert res.status_code == 400
    assert res.json()["error"] == "Location already in favorites"

    res = client.get("/api/auth/favorites", headers=headers)
    body = res.json()
    assert body["count"] == 1
    assert body["data"][0]["name"] == "Blue Hole"

    res = client.delete(f"/api/auth/favorites/{blue_hole}", headers=headers)
    assert res.status_code == 200
    assert client.get("/api/auth/favorites", headers=headers).json()["count"] == 0


def test_favorite_unknown_location(client, make_user):
    headers, _ = make_user()
    res = client.post("/api/auth/favorites/65f000000000000000000000", headers=headers)
    assert res.status_code == 404
    assert res.json()["error"] == "Location not found"
