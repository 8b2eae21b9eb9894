"""Tests for the profile and account endpoints."""


def test_profile_not_found(client, alice):
    response = client.get("/api/profile", headers=alice)
    assert response.status_code == 404
    assert response.json()["code"] == "profile/not-found"


def test_update_then_get_profile(client, alice, db):
    response = client.put(
        "/api/profile",
        json={"displayName": "Alice A.", "bio": "Hello", "website": "https://alice.example.com", "role": "admin"},
        headers=alice,
    )
    assert response.status_code == 200
    updated = response.json()["data"]["updatedFields"]
    assert set(updated) == {"displayName", "bio", "website", "updatedAt"}
    stored = db.collection("users").docs["alice"]
    assert "role" not in stored
    assert stored["website"].startswith("https://alice.example.com")

    profile = client.get("/api/profile", headers=alice).json()["data"]["profile"]
    assert profile["uid"] == "alice"
    assert profile["email"] == "alice@example.com"
    assert profile["displayName"] == "Alice A."
    assert profile["lastLoginAt"].startswith("2023-11-14T22:13:20")


def test_update_merges_with_existing_profile(client, alice, db):
    client.put("/api/profile", json={"displayName": "Alice"}, headers=alice)
    client.put("/api/profile", json={"location": "London"}, headers=alice)
    stored = db.collection("users").docs["alice"]
    assert stored["displayName"] == "Alice"
    assert stored["location"] == "London"


def test_update_profile_validation(client, alice, db):
    response = client.put(
        "/api/profile",
        json={"displayName": "", "bio": "b" * 501, "website": "not a url"},
        headers=alice,
    )
    assert response.status_code == 400
    details = response.json()["details"]
    assert "displayName" in details and "bio" in details and "website" in details
    assert db.collection("users").docs == {}


def test_delete_account_removes_profile_only(client, alice, create_persona, db):
    client.put("/api/profile", json={"displayName": "Alice"}, headers=alice)
    create_persona()

    response = client.delete("/api/account", headers=alice)
    assert response.status_code == 200
    assert response.json()["data"] == {"uid": "alice"}
    assert "alice" not in db.collection("users").docs
    assert len(db.collection("personas").docs) == 1
