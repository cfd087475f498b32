"""
Inkpost API: Authentication Endpoint Tests
============================================

What:  Register, login, current user, logout and the login throttle.
How:   Requests go through the full app (middleware, dependencies, handlers)
       against the per-test SQLite database.

What we test:
    ✅ Register returns 201 with a usable token and queues one welcome email,
       even when the broker is down
    ✅ Register rejects invalid input and duplicate emails with 422
    ✅ Login success / bad credentials
    ✅ Login throttle answers 429 after 10 attempts in the window
    ✅ Missing, malformed, unknown, out-of-range and expired tokens → 401
    ✅ Every protected route answers 401 without a token
    ✅ Logout revokes only the current token; logout-all revokes every token
"""

import pytest
from kombu.exceptions import OperationalError

from app.models.access_token import PersonalAccessToken
from app.models.user import User

REGISTRATION = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "password": "password123",
    "password_confirmation": "password123",
}


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_token(self, client, count_rows):
        response = await client.post("/api/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "Bearer"
        token_id, secret = body["access_token"].split("|", 1)
        assert token_id.isdigit()
        assert len(secret) == 40
        assert await count_rows(User, User.email == "ada@example.com") == 1

        me = await client.get("/api/user", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json() == {"data": {"id": 1, "name": "Ada Lovelace", "email": "ada@example.com"}}

    @pytest.mark.asyncio
    async def test_register_queues_exactly_one_welcome_email(self, client, queued_emails):
        await client.post("/api/register", json=REGISTRATION)

        queued_emails.assert_called_once_with(user_id=1, email="ada@example.com")

    @pytest.mark.asyncio
    async def test_register_succeeds_when_broker_is_down(self, client, queued_emails, count_rows):
        queued_emails.side_effect = OperationalError("connection refused")

        response = await client.post("/api/register", json=REGISTRATION)

        assert response.status_code == 201
        assert await count_rows(User) == 1

    @pytest.mark.asyncio
    async def test_register_stores_a_password_hash(self, client, fetch):
        await client.post("/api/register", json=REGISTRATION)

        user = await fetch(User, 1)
        assert user.password != "password123"
        assert user.password.startswith("$2")

    @pytest.mark.asyncio
    async def test_register_validation_errors(self, client, count_rows, queued_emails):
        response = await client.post(
            "/api/register",
            json={"name": "", "email": "nope", "password": "short"},
        )

        assert response.status_code == 422
        errors = response.json()["errors"]
        assert set(errors) == {"name", "email", "password"}
        assert response.json()["message"] == "The name field is required. (and 2 more errors)"
        assert await count_rows(User) == 0
        queued_emails.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, make_user, count_rows, queued_emails):
        await make_user(email="ada@example.com")

        response = await client.post("/api/register", json=REGISTRATION)

        assert response.status_code == 422
        assert response.json() == {
            "message": "The email has already been taken.",
            "errors": {"email": ["The email has already been taken."]},
        }
        assert await count_rows(User) == 1
        queued_emails.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_rejects_non_object_body(self, client):
        response = await client.post("/api/register", json=["not", "an", "object"])

        assert response.status_code == 422
        assert response.json()["errors"] == {"payload": ["The request body must be a JSON object."]}


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, client, make_user, count_rows):
        user = await make_user(email="ada@example.com")

        response = await client.post(
            "/api/login", json={"email": "ada@example.com", "password": "password123"}
        )

        assert response.status_code == 200
        assert response.json()["token_type"] == "Bearer"
        assert await count_rows(PersonalAccessToken, PersonalAccessToken.user_id == user.id) == 1

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, make_user):
        await make_user(email="ada@example.com")

        response = await client.post(
            "/api/login", json={"email": "ada@example.com", "password": "wrong-password"}
        )

        assert response.status_code == 422
        assert response.json()["errors"] == {"email": ["The provided credentials are incorrect."]}

    @pytest.mark.asyncio
    async def test_login_unknown_email_looks_the_same(self, client):
        response = await client.post(
            "/api/login", json={"email": "ghost@example.com", "password": "whatever"}
        )

        assert response.status_code == 422
        assert response.json()["errors"] == {"email": ["The provided credentials are incorrect."]}

    @pytest.mark.asyncio
    async def test_login_is_throttled_after_ten_attempts(self, client):
        credentials = {"email": "ghost@example.com", "password": "whatever"}

        for _ in range(10):
            response = await client.post("/api/login", json=credentials)
            assert response.status_code == 422

        response = await client.post("/api/login", json=credentials)

        assert response.status_code == 429
        assert response.json() == {"message": "Too Many Attempts."}
        assert int(response.headers["Retry-After"]) > 0
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_throttle_only_applies_to_login(self, client, make_user, auth_headers):
        headers = await auth_headers(await make_user())

        for _ in range(12):
            response = await client.get("/api/user", headers=headers)
            assert response.status_code == 200


class TestTokens:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/user")

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthenticated."}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["garbage", "abc|secret", "999|" + "x" * 40])
    async def test_bad_tokens(self, client, token):
        response = await client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "token",
        [
            "²|secret".encode("latin-1"),
            b"99999999999999999999|secret",
            b"-1|secret",
            b"|secret",
        ],
    )
    async def test_malformed_token_ids(self, client, token):
        response = await client.get("/api/user", headers={"Authorization": b"Bearer " + token})

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthenticated."}

    @pytest.mark.asyncio
    async def test_wrong_secret_for_existing_id(self, client, make_user, make_token):
        plain = await make_token(await make_user())
        token_id = plain.split("|", 1)[0]

        response = await client.get(
            "/api/user", headers={"Authorization": f"Bearer {token_id}|{'x' * 40}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client, make_user, make_token):
        plain = await make_token(await make_user(), expires_in_minutes=-1)

        response = await client.get("/api/user", headers={"Authorization": f"Bearer {plain}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_use_refreshes_last_used_at(self, client, make_user, make_token, fetch):
        plain = await make_token(await make_user())
        token_id = int(plain.split("|", 1)[0])

        await client.get("/api/user", headers={"Authorization": f"Bearer {plain}"})

        assert (await fetch(PersonalAccessToken, token_id)).last_used_at is not None

    @pytest.mark.asyncio
    async def test_unauthenticated_beats_validation(self, client):
        response = await client.post("/api/posts", json={})
        assert response.status_code == 401


class TestLogout:

    @pytest.mark.asyncio
    async def test_logout_revokes_current_token_only(self, client, make_user, make_token):
        user = await make_user()
        first = await make_token(user)
        second = await make_token(user)

        response = await client.post("/api/logout", headers={"Authorization": f"Bearer {first}"})

        assert response.status_code == 200
        assert response.json() == {"message": "Successfully logged out"}
        revoked = await client.get("/api/user", headers={"Authorization": f"Bearer {first}"})
        assert revoked.status_code == 401
        still_valid = await client.get("/api/user", headers={"Authorization": f"Bearer {second}"})
        assert still_valid.status_code == 200

    @pytest.mark.asyncio
    async def test_logout_all(self, client, make_user, make_token, count_rows):
        user = await make_user()
        other = await make_user()
        first = await make_token(user)
        await make_token(user)
        await make_token(other)

        response = await client.post("/api/logout-all", headers={"Authorization": f"Bearer {first}"})

        assert response.status_code == 200
        assert response.json() == {"message": "Successfully logged out from all devices"}
        assert await count_rows(PersonalAccessToken, PersonalAccessToken.user_id == user.id) == 0
        assert await count_rows(PersonalAccessToken, PersonalAccessToken.user_id == other.id) == 1


PROTECTED_ROUTES = [
    ("GET", "/api/user"),
    ("POST", "/api/logout"),
    ("POST", "/api/logout-all"),
    ("GET", "/api/users/1"),
    ("GET", "/api/categories"),
    ("GET", "/api/posts"),
    ("POST", "/api/posts"),
    ("GET", "/api/posts/1"),
    ("PUT", "/api/posts/1"),
    ("PATCH", "/api/posts/1"),
    ("DELETE", "/api/posts/1"),
    ("GET", "/api/posts/1/comments"),
    ("POST", "/api/posts/1/comments"),
    ("GET", "/api/posts/1/comments/1"),
    ("PUT", "/api/posts/1/comments/1"),
    ("PATCH", "/api/posts/1/comments/1"),
    ("DELETE", "/api/posts/1/comments/1"),
]


class TestProtectedRoutes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    async def test_requires_token(self, client, method, path):
        json = {} if method in ("POST", "PUT", "PATCH") else None

        response = await client.request(method, path, json=json)

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthenticated."}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    async def test_rejects_unknown_token(self, client, method, path):
        response = await client.request(
            method, path, headers={"Authorization": "Bearer 1|" + "x" * 40}
        )
        assert response.status_code == 401
