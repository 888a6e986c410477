from __future__ import annotations

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.db.models import User
from app.services import user_service
from app.storage import get_storage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_upload_image_requires_auth(client: TestClient):
    r = client.post("/api/v1/i/uploadImage", files={"file": ("a.png", PNG_BYTES, "image/png")})
    assert r.status_code == 401
    assert r.json()["status"] == 0
    assert r.json()["message"] == "not_authenticated"


def test_upload_image_and_fetch_avatar(client: TestClient, create_user, auth_headers):
    username = create_user("avatar")
    headers = auth_headers(username)

    r = client.post(
        "/api/v1/i/uploadImage",
        files={"file": ("face.PNG", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == 1
    assert body["message"] == "avatar upload success"
    result = body["data"]
    assert result["filename"] == "face.PNG"
    assert result["size"] == len(PNG_BYTES)
    assert result["storage_key"].endswith(".png")
    assert get_storage().exists(result["storage_key"])

    login = client.post("/api/v1/i/userLogin", headers=headers).json()["data"]
    assert login["avatar"] == result["storage_key"]
    assert login["avatar_url"] == result["url"]

    avatar = client.get(result["url"])
    assert avatar.status_code == 200
    assert avatar.content == PNG_BYTES


def test_upload_image_replaces_previous_avatar(client: TestClient, auth_headers):
    headers = auth_headers()
    first = client.post(
        "/api/v1/i/uploadImage", files={"file": ("a.png", PNG_BYTES, "image/png")}, headers=headers
    ).json()["data"]
    second = client.post(
        "/api/v1/i/uploadImage", files={"file": ("b.jpg", b"\xff\xd8\xff" + b"1" * 10, "image/jpeg")}, headers=headers
    ).json()["data"]
    storage = get_storage()
    assert not storage.exists(first["storage_key"])
    assert storage.exists(second["storage_key"])


def test_upload_image_rejects_non_image(client: TestClient, auth_headers):
    r = client.post(
        "/api/v1/i/uploadImage",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(),
    )
    assert r.status_code == 400
    assert r.json()["message"] == "unsupported_media_type"


def test_upload_image_rejects_empty_file(client: TestClient, auth_headers):
    r = client.post(
        "/api/v1/i/uploadImage",
        files={"file": ("empty.png", b"", "image/png")},
        headers=auth_headers(),
    )
    assert r.status_code == 400
    assert r.json()["message"] == "empty_file"


def test_upload_image_rejects_large_file(client: TestClient, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "AVATAR_MAX_BYTES", 16)
    r = client.post(
        "/api/v1/i/uploadImage",
        files={"file": ("big.png", PNG_BYTES, "image/png")},
        headers=auth_headers(),
    )
    assert r.status_code == 413
    assert r.json()["message"] == "file_too_large"


def test_upload_image_missing_file_field(client: TestClient, auth_headers):
    r = client.post("/api/v1/i/uploadImage", headers=auth_headers())
    assert r.status_code == 422


def test_avatar_not_found(client: TestClient):
    r = client.get("/api/v1/i/user/99999999/avatar")
    assert r.status_code == 404
    assert r.json()["message"] == "avatar_not_found"


class _FailingCommitSession:
    def __init__(self) -> None:
        self.rolled_back = False

    def add(self, obj) -> None:
        pass

    def commit(self) -> None:
        raise SQLAlchemyError("disk full")

    def rollback(self) -> None:
        self.rolled_back = True


def test_upload_image_removes_file_when_commit_fails(client: TestClient):
    user = User(id=987654321, username="commit_failure", password_hash="x")
    db = _FailingCommitSession()

    with pytest.raises(SQLAlchemyError):
        user_service.upload_image(db, user, BytesIO(PNG_BYTES), filename="a.png", content_type="image/png")

    assert db.rolled_back
    avatar_dir = get_storage().resolve_path(f"avatars/{user.id}")
    assert not avatar_dir.exists() or not any(avatar_dir.iterdir())
