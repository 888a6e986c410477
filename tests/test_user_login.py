from __future__ import annotations

from base64 import b64encode

from fastapi.testclient import TestClient

from app.db.models import User
from app.db.session import SessionLocal

PASSWORD = "TestPass123!"


def _basic(username: str, password: str) -> dict[str, str]:
    raw = b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {raw}"}


def test_user_login_without_credentials(client: TestClient):
    r = client.post("/api/v1/i/userLogin")
    assert r.status_code == 200
    assert r.json() == {"status": 0, "message": "user login failed", "data": None}


def test_user_login_with_basic_credentials(client: TestClient, create_user):
    username = create_user("basic")
    r = client.post("/api/v1/i/userLogin", headers=_basic(username, PASSWORD))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == 1
    assert body["message"] == "user login success"
    assert body["data"]["username"] == username
    assert body["data"]["role"] == "ROLE_USER"
    assert "password_hash" not in body["data"]


def test_user_login_with_wrong_password(client: TestClient, create_user):
    username = create_user("basic")
    r = client.post("/api/v1/i/userLogin", headers=_basic(username, "WrongPass!"))
    assert r.status_code == 200
    assert r.json()["status"] == 0


def test_user_login_with_malformed_header(client: TestClient):
    r = client.post("/api/v1/i/userLogin", headers={"Authorization": "Basic !!notbase64!!"})
    assert r.status_code == 200
    assert r.json()["status"] == 0


def test_user_login_with_bearer_token(client: TestClient, create_user, auth_headers):
    username = create_user("bearer")
    r = client.post("/api/v1/i/userLogin", headers=auth_headers(username))
    assert r.status_code == 200
    assert r.json()["data"]["username"] == username


def test_user_login_with_invalid_token(client: TestClient):
    r = client.post("/api/v1/i/userLogin", headers={"Authorization": "Bearer not.a.token"})
    assert r.status_code == 200
    assert r.json()["status"] == 0


def test_disabled_user_cannot_login(client: TestClient, create_user):
    username = create_user("disabled")
    with SessionLocal() as db:
        user = db.query(User).filter(User.username == username).one()
        user.enabled = False
        db.commit()
    r = client.post("/api/v1/i/userLogin", headers=_basic(username, PASSWORD))
    assert r.json()["status"] == 0


def test_token_login_rejects_bad_credentials(client: TestClient, create_user):
    username = create_user()
    r = client.post("/api/auth/login", json={"username": username, "password": "WrongPass!"})
    assert r.status_code == 401
    assert r.json() == {"status": 0, "message": "invalid_credentials", "data": None}
