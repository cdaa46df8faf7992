from datetime import timedelta

from taskdesk.core.security import ACCESS_TOKEN_TYPE, encode_token

from helpers import DEFAULT_PASSWORD, bearer, login, register


def test_login_returns_token_pair_and_public_user(client, alice):
    response = client.post("/api/auth/login", json={"username": "alice", "password": DEFAULT_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    data = body["data"]
    assert data["accessToken"] and data["refreshToken"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["username"] == "alice"
    # Secrets never leave the server
    assert "password" not in data["user"]
    assert "hashedPassword" not in data["user"]
    assert "resetPasswordOtp" not in data["user"]


def test_login_failures_share_one_message(client, alice):
    wrong_password = client.post("/api/auth/login", json={"username": "alice", "password": "nope-nope"})
    unknown_user = client.post("/api/auth/login", json={"username": "mallory", "password": "whatever"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {
        "success": False,
        "message": "Invalid username or password",
    }


def test_login_is_also_served_under_users(client, alice):
    response = client.post("/api/users/login", json={"username": "alice", "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == "alice@example.com"


def test_login_requires_both_fields(client):
    response = client.post("/api/auth/login", json={"username": "alice"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "password" in response.json()["message"]


def test_refresh_issues_new_access_token_and_keeps_refresh_token(client, alice):
    response = client.post("/api/auth/refresh-token", json={"refreshToken": alice["refreshToken"]})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["refreshToken"] == alice["refreshToken"]

    me = client.get("/api/auth/verify-token", headers=bearer(data["accessToken"]))
    assert me.status_code == 200
    assert me.json()["data"]["username"] == "alice"


def test_refresh_rejects_access_token(client, alice):
    response = client.post("/api/auth/refresh-token", json={"refreshToken": alice["accessToken"]})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token type"


def test_refresh_rejects_garbage(client):
    response = client.post("/api/auth/refresh-token", json={"refreshToken": "not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_refresh_picks_up_role_changes(client, admin, alice):
    promote = client.put(
        "/api/admin/users",
        params={"id": alice["user"]["id"]},
        json={"role": "admin"},
        headers=admin["headers"],
    )
    assert promote.status_code == 200

    refreshed = client.post("/api/auth/refresh-token", json={"refreshToken": alice["refreshToken"]})
    token = refreshed.json()["data"]["accessToken"]
    identity = client.get("/api/auth/verify-token", headers=bearer(token)).json()["data"]
    assert identity["role"] == "admin"


def test_refresh_for_deleted_user_fails(client, alice):
    client.delete("/api/users/profile", headers=alice["headers"])

    response = client.post("/api/auth/refresh-token", json={"refreshToken": alice["refreshToken"]})
    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


def test_verify_token_returns_identity_claims(client, alice):
    response = client.get("/api/auth/verify-token", headers=alice["headers"])

    assert response.status_code == 200
    identity = response.json()["data"]
    assert identity == {
        "userId": alice["user"]["id"],
        "username": "alice",
        "email": "alice@example.com",
        "role": "user",
        "permissions": ["Read"],
        "firstName": "Alice",
        "lastName": "Tester",
    }


def test_verify_token_rejects_refresh_token(client, alice):
    response = client.get("/api/auth/verify-token", headers=bearer(alice["refreshToken"]))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token type"


def test_missing_or_malformed_authorization_header(client, alice):
    missing = client.get("/api/auth/verify-token")
    wrong_scheme = client.get("/api/auth/verify-token", headers={"Authorization": f"Token {alice['accessToken']}"})
    empty = client.get("/api/auth/verify-token", headers={"Authorization": "Bearer "})

    for response in (missing, wrong_scheme, empty):
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Authorization token required"}


def test_expired_access_token_is_rejected(client, settings, alice):
    claims = {
        "sub": str(alice["user"]["id"]),
        "userId": alice["user"]["id"],
        "username": "alice",
        "email": "alice@example.com",
        "role": "user",
        "permissions": ["Read"],
        "type": ACCESS_TOKEN_TYPE,
    }
    expired = encode_token(claims, settings.SECRET_KEY, timedelta(seconds=-30))

    response = client.get("/api/auth/verify-token", headers=bearer(expired))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_token_signed_with_other_key_is_rejected(client, alice):
    forged = encode_token(
        {"userId": alice["user"]["id"], "username": "alice", "email": "a@example.com", "role": "admin",
         "type": ACCESS_TOKEN_TYPE},
        "some-other-secret",
        timedelta(minutes=5),
    )
    response = client.get("/api/auth/verify-token", headers=bearer(forged))
    assert response.status_code == 401


def test_me_returns_stored_user(client, alice):
    response = client.get("/api/auth/me", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["id"] == alice["user"]["id"]

    assert client.get("/api/auth/me").status_code == 401


def test_optional_auth_treats_bad_token_as_anonymous(client):
    user = register(client, "carol", headers=bearer("garbage"))
    assert user["createdBy"] is None

    tokens = login(client, "carol")
    dave = register(client, "dave", headers=bearer(tokens["accessToken"]))
    assert dave["createdBy"] == user["id"]
