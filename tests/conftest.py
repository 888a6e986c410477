import os
import sys
import tempfile
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repository root is importable (scripts/ is not a package)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Default test environment
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "debug")
os.environ.setdefault("LOCAL_STORAGE_PATH", tempfile.mkdtemp(prefix="avatars-test-"))

from app.main import app  # noqa: E402

PASSWORD = "TestPass123!"


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def create_user(client: TestClient):
    """Create a user through the API and return its username."""

    def _create(prefix: str = "user", **extra) -> str:
        username = f"{prefix}_{uuid.uuid4().hex[:8]}"
        body = {"username": username, "password": PASSWORD, "passwordRepeated": PASSWORD, **extra}
        r = client.post("/api/v1/create", json=body)
        assert r.status_code == 200, r.text
        assert r.json()["status"] == 1, r.text
        return username

    return _create


@pytest.fixture
def auth_headers(client: TestClient, create_user):
    def _headers(username: str | None = None) -> dict[str, str]:
        username = username or create_user()
        r = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['data']['token']}"}

    return _headers
