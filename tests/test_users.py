"""Buddy-finder user routes."""


def test_list_divers_looking_for_buddy(client, make_user):
    make_user("Alice", bio="Macro photographer")
    headers, _ = make_user("Bob")
    client.put("/api/auth/updateprofile", headers=headers, json={"isLookingForBuddy": False})

    body = client.get("/api/users").json()
    assert body["count"] == 1
    diver = body["data"][0]
    assert diver["name"] == "Alice"
    assert "email" not in diver
    assert "password" not in diver


def test_list_divers_filters(client, make_user):
    make_user("Alice", experience_level="advanced", bio="Macro photographer",
              location={"city": "Honolulu", "country": "USA"})
    make_user("Bob", experience_level="beginner", certificationLevel="Open Water",
              location={"city": "Dahab", "country": "Egypt"})

    def names(**params):
        return [d["name"] for d in client.get("/api/users", params=params).json()["data"]]

    assert names(experienceLevel="Advanced") == ["Alice"]
    assert names(certificationLevel="Open Water") == ["Bob"]
    assert names(search="macro") == ["Alice"]
    assert names(location="egypt") == ["Bob"]
    assert names() == ["Alice", "Bob"]


def test_search_by_name(client, make_user):
    make_user("Alice Reef")
    make_user("Bob Wreck")
    body = client.get("/api/users/search", params={"q": "wreck"}).json()
    assert [d["name"] for d in body["data"]] == ["Bob Wreck"]


def test_search_requires_term(client):
    assert client.get("/api/users/search").status_code == 400


def test_get_public_profile(client, make_user):
    _, user = make_user("Alice")
    res = client.get(f"/api/users/{user['_id']}")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["name"] == "Alice"
    assert data["certificationLevel"] == "Advanced Open Water"
    assert "email" not in data


def test_get_unknown_profile(client):
    res = client.get("/api/users/65f000000000000000000000")
    assert res.status_code == 404
    assert res.json()["error"] == "User not found"
