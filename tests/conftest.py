import os
import string
import sys
from pathlib import Path

# Keep a developer's .env or shell from leaking into the test config
os.environ["APP_ENV"] = "testing"
os.environ.pop("DATABASE_URL", None)

import pytest  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api import create_app  # noqa: E402
from api.cli import add_user  # noqa: E402

ACCESS_SECRET = "test-access-secret-for-automation-only"
REFRESH_SECRET = "test-refresh-secret-for-automation-only"

TEST_OVERRIDES = {
    "DATABASE_URL": "sqlite://",
    "JWT_ACCESS_SECRET": ACCESS_SECRET,
    "JWT_REFRESH_SECRET": REFRESH_SECRET,
}

ADMIN = {"name": "Admin User", "email": "admin@test.com", "password": "admin-pass-123", "role": "admin"}
STUDENT = {"name": "Student User", "email": "student@test.com", "password": "student-pass-123", "role": "student"}


def make_app(**overrides):
    return create_app("testing", overrides={**TEST_OVERRIDES, **overrides})


@pytest.fixture
def app():
    app = make_app()
    with app.app_context():
        add_user(department="Administration", **ADMIN)
        add_user(department="Computer Science", **STUDENT)
    yield app


@pytest.fixture
def memory_app():
    app = make_app(REVOCATION_BACKEND="memory")
    with app.app_context():
        add_user(department="Administration", **ADMIN)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Log in through the API and return the JSON body."""

    def _login(email=ADMIN["email"], password=ADMIN["password"]):
        res = client.post("/api/auth/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.get_json()
        return res.get_json()

    return _login


def bearer(token):
    """Authorization header for a bearer token."""
    return {"Authorization": f"Bearer {token}"}


_B64URL = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"


def reencoded(token):
    """Same token with an unused low bit of the final signature character flipped."""
    last = _B64URL.index(token[-1])
    return token[:-1] + _B64URL[last ^ 1]
