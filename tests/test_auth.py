"""Auth: register, login, current user (local identity provider)."""
import uuid

import pytest
from fastapi.testclient import TestClient


def _email() -> str:
    return f"user-{uuid.uuid4().hex[:8]}@example.com"


def test_register_success(client: TestClient):
    email = _email()
    r = client.post(
        "/auth/register",
        data={"email": email, "password": "secure123", "full_name": "New User"},
    )
    assert r.status_code == 200
    j = r.json()
    assert j.get("email") == email
    assert j.get("full_name") == "New User"
    assert j.get("id")


def test_register_validation(client: TestClient):
    r = client.post("/auth/register", data={"email": "bad", "password": "123"})
    assert r.status_code == 400
    assert r.json()["error"] == "Enter a valid email address."
    r = client.post("/auth/register", data={"email": _email(), "password": "123"})
    assert r.status_code == 400
    assert r.json()["error"] == "Password must be at least 6 characters."


@pytest.mark.parametrize("email", ["user@", "@example.com", "a b@example.com", "user@@example.com"])
def test_register_rejects_malformed_email(client: TestClient, email):
    r = client.post("/auth/register", data={"email": email, "password": "secure123"})
    assert r.status_code == 400
    assert r.json()["error"] == "Enter a valid email address."


def test_login_rejects_malformed_email(client: TestClient):
    r = client.post("/auth/login", data={"email": "not-an-email", "password": "secure123"})
    assert r.status_code == 400
    assert r.json()["error"] == "Enter a valid email address."


def test_register_duplicate_email(client: TestClient):
    email = _email()
    client.post("/auth/register", data={"email": email, "password": "secure123"})
    r = client.post("/auth/register", data={"email": email, "password": "secure123"})
    assert r.status_code == 400


def test_login_success_and_me(client: TestClient):
    email = _email()
    client.post("/auth/register", data={"email": email, "password": "pass123456", "full_name": "Login User"})
    r = client.post("/auth/login", data={"email": email, "password": "pass123456"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json().get("email") == email


def test_login_wrong_password(client: TestClient):
    email = _email()
    client.post("/auth/register", data={"email": email, "password": "right123"})
    r = client.post("/auth/login", data={"email": email, "password": "wrongpass"})
    assert r.status_code == 401


def test_me_requires_auth(client: TestClient):
    r = client.get("/auth/me")
    assert r.status_code == 401
    r = client.get("/auth/me", headers={"Authorization": "Bearer expired.or.forged"})
    assert r.status_code == 401
