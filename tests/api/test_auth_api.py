"""HTTP tests for the auth and profile endpoints."""

from functools import partial

import pytest

EMAIL = "lux@matchduo.gg"
PASSWORD = "pw1"


@pytest.fixture
def user(client, app):
    return client.portal.call(app.create_user, EMAIL, "lux", PASSWORD)


def set_cookies(response) -> dict[str, str]:
    """Map cookie name to its raw Set-Cookie header."""
    headers = response.headers.get_list("set-cookie")
    return {header.split("=", 1)[0]: header for header in headers}


def login(client, email=EMAIL, password=PASSWORD, client_ip="198.51.100.10"):
    return client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
        headers={"X-Forwarded-For": client_ip},
    )


def refresh_with(client, token: str):
    client.cookies.clear()
    return client.post("/api/v1/auth/refresh", headers={"Cookie": f"refreshToken={token}"})


class TestLogin:
    """POST /api/v1/auth/login"""

    def test_success_sets_both_cookies(self, client, user):
        response = login(client)

        assert response.status_code == 200
        body = response.json()
        assert body["user"] == {"userId": str(user.id), "email": EMAIL, "nickname": "lux"}
        assert body["accessToken"]
        assert body["refreshToken"]

        cookies = set_cookies(response)
        assert f"accessToken={body['accessToken']}" in cookies["accessToken"]
        assert "Max-Age=3600" in cookies["accessToken"]
        assert "Max-Age=604800" in cookies["refreshToken"]
        for header in cookies.values():
            assert "HttpOnly" in header
            assert "Path=/" in header

    def test_unknown_email(self, client, user):
        response = login(client, email="nobody@matchduo.gg")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND_EMAIL"
        assert response.headers.get_list("set-cookie") == []

    def test_wrong_password(self, client, user):
        response = login(client, password="pw2")

        assert response.status_code == 401
        assert response.json()["code"] == "WRONG_PASSWORD"
        assert response.headers.get_list("set-cookie") == []

    def test_overlong_password_is_wrong_password(self, client, user):
        response = login(client, password="x" * 100)

        assert response.status_code == 401
        assert response.json()["code"] == "WRONG_PASSWORD"

    def test_overlong_legacy_password_logs_in(self, client, app):
        client.portal.call(partial(app.create_user, legacy=True), "long@matchduo.gg", "long", "y" * 100)

        assert login(client, email="long@matchduo.gg", password="y" * 100).status_code == 200
        assert login(client, email="long@matchduo.gg", password="y" * 100).status_code == 200

    def test_legacy_account_logs_in_twice(self, client, app):
        client.portal.call(partial(app.create_user, legacy=True), "old@matchduo.gg", "old", "pw1")

        assert login(client, email="old@matchduo.gg").status_code == 200
        assert login(client, email="old@matchduo.gg").status_code == 200
        assert login(client, email="old@matchduo.gg", password="pw2").status_code == 401


class TestLoginRateLimit:
    """Five attempts per client per window, counted before credentials are checked."""

    def test_sixth_attempt_is_rejected(self, client, user):
        statuses = [login(client, password="wrong", client_ip="203.0.113.7").status_code for _ in range(5)]
        assert statuses == [401] * 5

        response = login(client, client_ip="203.0.113.7")

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMITED"
        assert 0 < int(response.headers["Retry-After"]) <= 900
        assert response.headers.get_list("set-cookie") == []

    def test_limit_applies_before_email_lookup(self, client, user):
        for _ in range(5):
            login(client, client_ip="203.0.113.8")

        response = login(client, email="nobody@matchduo.gg", client_ip="203.0.113.8")

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMITED"

    def test_successful_logins_count_too(self, client, user):
        for _ in range(5):
            assert login(client, client_ip="203.0.113.9").status_code == 200
        assert login(client, client_ip="203.0.113.9").status_code == 429

    def test_other_clients_are_unaffected(self, client, user):
        for _ in range(6):
            login(client, client_ip="203.0.113.10")
        assert login(client, client_ip="203.0.113.11").status_code == 200

    def test_first_forwarded_entry_is_the_key(self, client, user):
        for proxy in ["10.0.0.1", "10.0.0.2", "10.0.0.3", "10.0.0.4", "10.0.0.5"]:
            login(client, client_ip=f"203.0.113.12, {proxy}")

        assert login(client, client_ip="203.0.113.12").status_code == 429
        assert login(client, client_ip="10.0.0.1").status_code == 200


class TestRefresh:
    """POST /api/v1/auth/refresh"""

    def test_refresh_from_cookie(self, client, user):
        login(client)

        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["userId"] == str(user.id)
        cookies = set_cookies(response)
        assert set(cookies) == {"accessToken"}
        assert f"accessToken={body['accessToken']}" in cookies["accessToken"]
        assert "Max-Age=3600" in cookies["accessToken"]

    def test_missing_cookie(self, client, user):
        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED_USER"

    def test_invalid_cookie(self, client, user):
        response = refresh_with(client, "invalid.token.here")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED_USER"

    def test_superseded_token(self, client, user):
        first = login(client).json()["refreshToken"]
        second = login(client).json()["refreshToken"]

        response = refresh_with(client, first)
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED_USER"
        assert response.headers.get_list("set-cookie") == []

        assert refresh_with(client, second).status_code == 200


class TestLogout:
    """POST /api/v1/auth/logout"""

    def test_logout_clears_cookies_and_session(self, client, user):
        token = login(client).json()["refreshToken"]

        response = client.post("/api/v1/auth/logout")

        assert response.status_code == 204
        cookies = set_cookies(response)
        assert set(cookies) == {"accessToken", "refreshToken"}
        assert all("Max-Age=0" in header for header in cookies.values())
        assert refresh_with(client, token).status_code == 401

    def test_logout_without_cookie(self, client):
        response = client.post("/api/v1/auth/logout")

        assert response.status_code == 204
        assert set(set_cookies(response)) == {"accessToken", "refreshToken"}

    def test_logout_with_garbage_cookie(self, client, user):
        token = login(client).json()["refreshToken"]
        client.cookies.clear()

        response = client.post("/api/v1/auth/logout", headers={"Cookie": "refreshToken=garbage"})

        assert response.status_code == 204
        assert refresh_with(client, token).status_code == 200


class TestProfile:
    """GET and DELETE /api/v1/profile"""

    def test_profile_with_bearer(self, client, user):
        access_token = login(client).json()["accessToken"]
        client.cookies.clear()

        response = client.get("/api/v1/profile", headers={"Authorization": f"Bearer {access_token}"})

        assert response.status_code == 200
        assert response.json() == {"userId": str(user.id), "email": EMAIL, "nickname": "lux"}

    def test_profile_with_cookie(self, client, user):
        login(client)
        assert client.get("/api/v1/profile").json()["email"] == EMAIL

    def test_profile_requires_access_token(self, client, user):
        response = client.get("/api/v1/profile")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED_USER"

    def test_refresh_token_is_not_accepted(self, client, user):
        refresh_token = login(client).json()["refreshToken"]
        client.cookies.clear()

        response = client.get("/api/v1/profile", headers={"Authorization": f"Bearer {refresh_token}"})

        assert response.status_code == 401

    def test_resign(self, client, user):
        tokens = login(client).json()

        response = client.delete("/api/v1/profile")

        assert response.status_code == 204
        assert all("Max-Age=0" in header for header in set_cookies(response).values())
        assert refresh_with(client, tokens["refreshToken"]).status_code == 401
        assert login(client).json()["code"] == "NOT_FOUND_EMAIL"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
