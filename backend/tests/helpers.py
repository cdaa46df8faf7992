# tests/helpers.py
"""Request helpers shared by the API tests."""

from fastapi.testclient import TestClient

DEFAULT_PASSWORD = "secret123"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, username: str = "alice", headers: dict = None, **overrides) -> dict:
    payload = {
        "username": username,
        "email": f"{username}@example.com",
        "password": DEFAULT_PASSWORD,
        "firstName": username.capitalize(),
        "lastName": "Tester",
    }
    payload.update(overrides)
    response = client.post("/api/users", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def login(client: TestClient, username: str = "alice", password: str = DEFAULT_PASSWORD) -> dict:
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def create_task(client: TestClient, headers: dict, title: str = "Write report", **fields) -> dict:
    response = client.post("/api/tasks", json={"title": title, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]
