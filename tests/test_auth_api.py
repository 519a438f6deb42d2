"""HTTP tests for /api/auth."""

import time

import jwt

from models import storage
from models.user import User

from tests.conftest import ACCESS_SECRET, ADMIN, REFRESH_SECRET, STUDENT, bearer, reencoded


def _user_id(app, email):
    with app.app_context():
        return storage.get_session().query(User).filter(User.email == email).one().id


class TestLogin:
    def test_login_success(self, app, client):
        res = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]})
        assert res.status_code == 200
        body = res.get_json()
        assert set(body) >= {"user", "accessToken", "refreshToken"}
        assert body["user"] == {
            "id": _user_id(app, ADMIN["email"]),
            "name": ADMIN["name"],
            "email": ADMIN["email"],
            "role": "admin",
            "department": "Administration",
        }
        claims = jwt.decode(body["accessToken"], ACCESS_SECRET, algorithms=["HS256"])
        assert claims["sub"] == body["user"]["id"]
        assert claims["role"] == "admin"
        assert body["expiresIn"] == 3600

    def test_response_never_contains_password_hash(self, client):
        res = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]})
        text = res.get_data(as_text=True)
        assert "password" not in text
        assert "$argon2" not in text

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, client):
        wrong = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": "nope-nope"})
        unknown = client.post("/api/auth/login", json={"email": "ghost@test.com", "password": "nope-nope"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json()
        assert wrong.get_json()["message"] == "Invalid credentials"

    def test_missing_fields(self, client):
        res = client.post("/api/auth/login", json={"email": ADMIN["email"]})
        assert res.status_code == 400
        body = res.get_json()
        assert body["error"] == "VALIDATION_ERROR"
        assert "password" in body["message"]

        res = client.post("/api/auth/login", json={})
        assert res.status_code == 400
        assert "email" in res.get_json()["message"]
        assert "password" in res.get_json()["message"]

    def test_blank_fields_count_as_missing(self, client):
        res = client.post("/api/auth/login", json={"email": "", "password": ""})
        assert res.status_code == 400

    def test_non_json_body(self, client):
        res = client.post("/api/auth/login", data="email=x", content_type="text/plain")
        assert res.status_code == 400


class TestRefresh:
    def test_refresh_success(self, client, login):
        tokens = login()
        res = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
        assert res.status_code == 200
        new_access = res.get_json()["accessToken"]
        assert client.get("/api/auth/me", headers=bearer(new_access)).status_code == 200

    def test_missing_refresh_token(self, client):
        res = client.post("/api/auth/refresh", json={})
        assert res.status_code == 400
        assert "refreshToken" in res.get_json()["message"]

    def test_superseded_by_second_login(self, client, login):
        first = login()
        login()
        res = client.post("/api/auth/refresh", json={"refreshToken": first["refreshToken"]})
        assert res.status_code == 401

    def test_expired_refresh_token(self, app, client, login):
        login()
        now = int(time.time())
        expired = jwt.encode(
            {
                "iss": "campus-analytics-api",
                "sub": _user_id(app, ADMIN["email"]),
                "type": "refresh",
                "iat": now - 8 * 24 * 3600,
                "exp": now - 24 * 3600,
            },
            REFRESH_SECRET,
            algorithm="HS256",
        )
        res = client.post("/api/auth/refresh", json={"refreshToken": expired})
        assert res.status_code == 401

    def test_refresh_token_signed_with_access_secret(self, app, client):
        now = int(time.time())
        user_id = _user_id(app, ADMIN["email"])
        forged = jwt.encode(
            {"iss": "campus-analytics-api", "sub": user_id, "type": "refresh", "iat": now, "exp": now + 3600},
            ACCESS_SECRET,
            algorithm="HS256",
        )
        # Even stored on the user, the wrong signing key must fail
        with app.app_context():
            storage.get(User, user_id).refresh_token = forged
            storage.save()
        res = client.post("/api/auth/refresh", json={"refreshToken": forged})
        assert res.status_code == 401

    def test_access_token_rejected_by_refresh(self, client, login):
        tokens = login()
        res = client.post("/api/auth/refresh", json={"refreshToken": tokens["accessToken"]})
        assert res.status_code == 401

    def test_refresh_after_logout(self, client, login):
        tokens = login()
        client.post("/api/auth/logout", headers=bearer(tokens["accessToken"]))
        res = client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
        assert res.status_code == 401


class TestLogoutAndMe:
    def test_me(self, client, login):
        tokens = login(STUDENT["email"], STUDENT["password"])
        res = client.get("/api/auth/me", headers=bearer(tokens["accessToken"]))
        assert res.status_code == 200
        assert res.get_json()["user"]["email"] == STUDENT["email"]
        assert res.get_json()["user"]["role"] == "student"

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401
        assert client.get("/api/auth/me", headers={"Authorization": "Basic abc"}).status_code == 401

    def test_refresh_token_is_not_a_bearer_token(self, client, login):
        tokens = login()
        assert client.get("/api/auth/me", headers=bearer(tokens["refreshToken"])).status_code == 401

    def test_logout_without_header(self, client):
        res = client.post("/api/auth/logout")
        assert res.status_code == 401

    def test_logout_with_invalid_token(self, client):
        res = client.post("/api/auth/logout", headers=bearer("not-a-token"))
        assert res.status_code == 401

    def test_logout_message(self, client, login):
        tokens = login()
        res = client.post("/api/auth/logout", headers=bearer(tokens["accessToken"]))
        assert res.status_code == 200
        assert res.get_json() == {"message": "Logged out successfully"}

    def test_revoked_token_rejected_before_expiry(self, client, login):
        tokens = login()
        client.post("/api/auth/logout", headers=bearer(tokens["accessToken"]))
        res = client.get("/api/auth/me", headers=bearer(tokens["accessToken"]))
        assert res.status_code == 401
        assert res.get_json()["message"] == "Token has been revoked"
        # logging out twice with the same token is refused too
        assert client.post("/api/auth/logout", headers=bearer(tokens["accessToken"])).status_code == 401

    def test_reencoded_revoked_token_is_rejected(self, client, login):
        token = login()["accessToken"]
        assert client.post("/api/auth/logout", headers=bearer(token)).status_code == 200

        altered = reencoded(token)
        assert altered != token
        res = client.get("/api/users", headers=bearer(altered))
        assert res.status_code == 401
        assert res.get_json()["message"] == "Token has been revoked"

    def test_other_sessions_keep_working_after_logout(self, client, login):
        first = login()
        second = login(STUDENT["email"], STUDENT["password"])
        client.post("/api/auth/logout", headers=bearer(first["accessToken"]))
        assert client.get("/api/auth/me", headers=bearer(second["accessToken"])).status_code == 200


def test_login_protected_call_logout_scenario(client):
    res = client.post("/api/auth/login", json={"email": "admin@test.com", "password": ADMIN["password"]})
    assert res.status_code == 200
    t1 = res.get_json()["accessToken"]

    assert client.get("/api/users", headers=bearer(t1)).status_code == 200
    assert client.post("/api/auth/logout", headers=bearer(t1)).status_code == 200
    assert client.get("/api/users", headers=bearer(t1)).status_code == 401


def test_logout_on_memory_backend(memory_app):
    client = memory_app.test_client()
    res = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]})
    token = res.get_json()["accessToken"]
    assert client.post("/api/auth/logout", headers=bearer(token)).status_code == 200
    assert client.get("/api/auth/me", headers=bearer(token)).status_code == 401


def test_reencoded_token_rejected_on_memory_backend(memory_app):
    client = memory_app.test_client()
    res = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]})
    token = res.get_json()["accessToken"]
    client.post("/api/auth/logout", headers=bearer(token))
    assert client.get("/api/users", headers=bearer(reencoded(token))).status_code == 401
