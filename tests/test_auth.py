from datetime import datetime, timedelta, timezone

import jwt


def test_register_returns_user_and_token(client):
    response = client.post("/api/auth/register",
                           json={"email": " Alice@Example.com ", "name": "Alice", "password": "secret123"})
    body = response.get_json()

    assert response.status_code == 201
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "alice@example.com"
    assert "password_hash" not in body["data"]["user"]
    assert body["data"]["user"]["preferences"]["theme"] == "system"
    payload = jwt.decode(body["data"]["token"], "test-secret", algorithms=["HS256"])
    assert payload["user_id"] == body["data"]["user"]["id"]
    assert payload["email"] == "alice@example.com"


def test_register_rejects_missing_fields(client):
    response = client.post("/api/auth/register", json={"email": "a@example.com"})

    assert response.status_code == 400
    assert response.get_json() == {"success": False, "error": "Please provide email, name, and password"}


def test_register_rejects_duplicate_email(client, register):
    register()
    response = client.post("/api/auth/register",
                           json={"email": "ALICE@example.com", "name": "Other", "password": "secret123"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "User already exists with this email"


def test_register_rejects_short_password(client):
    response = client.post("/api/auth/register", json={"email": "a@example.com", "name": "A", "password": "123"})

    assert response.status_code == 400


def test_login(client, register):
    register()
    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})

    assert response.status_code == 200
    assert response.get_json()["data"]["user"]["name"] == "Alice"


def test_login_wrong_password_and_unknown_email_look_the_same(client, register):
    register()
    wrong = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope-nope"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json()["error"] == unknown.get_json()["error"] == "Invalid credentials"


def test_me_requires_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.get_json()["error"] == "Access denied. No token provided."


def test_me_rejects_bad_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid token."


def test_me_rejects_expired_token(client, register):
    user, _ = register()
    past = datetime.now(timezone.utc) - timedelta(days=30)
    token = jwt.encode({"user_id": user["id"], "iat": past, "exp": past + timedelta(hours=1)},
                       "test-secret", algorithm="HS256")

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Token expired."


def test_me_returns_profile(client, register):
    user, headers = register()
    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    assert response.get_json()["data"]["id"] == user["id"]


def test_update_profile_merges_preferences(client, auth):
    response = client.put("/api/auth/profile", headers=auth,
                          json={"name": "Alicia", "preferences": {"theme": "dark", "notifications": {"push": False}}})
    data = response.get_json()["data"]

    assert response.status_code == 200
    assert data["name"] == "Alicia"
    assert data["preferences"]["theme"] == "dark"
    assert data["preferences"]["notifications"] == {"email": True, "push": False, "reminders": True}
    assert data["preferences"]["timezone"] == "UTC"


def test_update_profile_rejects_taken_email(client, auth, other_auth):
    response = client.put("/api/auth/profile", headers=auth, json={"email": "bob@example.com"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Email already in use"


def test_change_password(client, auth):
    bad = client.put("/api/auth/change-password", headers=auth,
                     json={"currentPassword": "wrong-one", "newPassword": "another123"})
    good = client.put("/api/auth/change-password", headers=auth,
                      json={"currentPassword": "secret123", "newPassword": "another123"})
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "another123"})

    assert bad.status_code == 400
    assert bad.get_json()["error"] == "Current password is incorrect"
    assert good.status_code == 200
    assert login.status_code == 200


def test_delete_account_removes_owned_rows(client, auth, other_auth):
    client.post("/api/activities", headers=auth, json={"title": "Run", "category": "Exercise", "date": "2024-01-01"})
    client.post("/api/activities", headers=other_auth,
                json={"title": "Swim", "category": "Exercise", "date": "2024-01-01"})

    wrong = client.delete("/api/auth/account", headers=auth, json={"password": "nope-nope"})
    response = client.delete("/api/auth/account", headers=auth, json={"password": "secret123"})

    assert wrong.status_code == 400
    assert response.status_code == 200
    assert client.get("/api/auth/me", headers=auth).status_code == 401
    assert client.post("/api/auth/login",
                       json={"email": "alice@example.com", "password": "secret123"}).status_code == 401
    assert client.get("/api/activities", headers=other_auth).get_json()["count"] == 1


def test_deleted_account_token_cannot_create_rows(client, auth):
    client.delete("/api/auth/account", headers=auth, json={"password": "secret123"})

    response = client.post("/api/activities", headers=auth,
                           json={"title": "Ghost run", "category": "Exercise", "date": "2024-01-01"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid token."


def test_update_profile_rejects_blank_email(client, auth):
    for email in ("", "   ", None, 5):
        response = client.put("/api/auth/profile", headers=auth, json={"email": email})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Please provide a valid email"

    assert client.get("/api/auth/me", headers=auth).get_json()["data"]["email"] == "alice@example.com"
    assert client.post("/api/auth/login",
                       json={"email": "alice@example.com", "password": "secret123"}).status_code == 200


def test_update_profile_rejects_non_string_name(client, auth):
    response = client.put("/api/auth/profile", headers=auth, json={"name": 42})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Name cannot be empty"


def test_register_rejects_blank_name(client):
    response = client.post("/api/auth/register", json={"email": "a@example.com", "name": "   ", "password": "secret123"})

    assert response.status_code == 400


def test_wrongly_typed_credentials_are_rejected(client, auth):
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": 123456})
    change = client.put("/api/auth/change-password", headers=auth,
                        json={"currentPassword": "secret123", "newPassword": 1234567})
    delete = client.delete("/api/auth/account", headers=auth, json={"password": ["secret123"]})

    assert login.status_code == 400
    assert change.status_code == 400
    assert delete.status_code == 400
    assert client.post("/api/auth/login",
                       json={"email": "alice@example.com", "password": "secret123"}).status_code == 200
