"""
Inkpost API: Shared Test Fixtures
===================================

What:  Pytest fixtures shared by every test module.
How:   Points the app at a throwaway SQLite file (aiosqlite), rebuilds the
       schema before each test and hands out an httpx client wired straight
       into a fresh app via ASGITransport (no network, no server).

Environment is set before any `app` import: `settings` and the engine are
created at import time. Celery runs eagerly on the in-memory transport, and
the `queued_emails` fixture replaces `.delay()` so no test reaches a broker.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="inkpost-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MAIL_DRIVER"] = "log"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RETRY_MAX_ATTEMPTS"] = "3"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["QUEUE_MAX_TRIES"] = "3"
os.environ["QUEUE_BACKOFF"] = "0"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"

from typing import Optional
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

import app.models  # noqa: F401  (registers every table on Base.metadata)
from app.database import Base, async_session_factory, engine
from app.main import create_app
from app.models.category import Category
from app.models.post import Post
from app.models.user import User
from app.services.auth_service import auth_service, hash_password

DEFAULT_PASSWORD = "password123"


@pytest_asyncio.fixture(autouse=True)
async def database():
    """Fresh schema for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture(autouse=True)
def queued_emails():
    """Captures welcome-email tasks instead of publishing them to the broker."""
    with patch("app.services.welcome_email.send_welcome_email.delay") as delay:
        yield delay


@pytest_asyncio.fixture
async def db():
    """A session for arranging data and checking results. Commit explicitly."""
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client():
    """Async HTTP client bound to a fresh app instance."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    async def _make_user(
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password=hash_password(password),
        )
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
def make_token(db):
    async def _make_token(user: User, expires_in_minutes: Optional[int] = None) -> str:
        plain = await auth_service.issue_token(db, user, expires_in_minutes=expires_in_minutes)
        await db.commit()
        return plain

    return _make_token


@pytest.fixture
def auth_headers(make_token):
    async def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {await make_token(user)}"}

    return _auth_headers


@pytest.fixture
def make_category(db):
    async def _make_category(name: str = "General") -> Category:
        category = Category(name=name)
        db.add(category)
        await db.commit()
        return category

    return _make_category


@pytest.fixture
def make_post(db):
    async def _make_post(
        author: User,
        category: Category,
        title: str = "Hello",
        body: str = "First post",
    ) -> Post:
        post = Post(user_id=author.id, category_id=category.id, title=title, body=body)
        db.add(post)
        await db.commit()
        return post

    return _make_post


@pytest.fixture
def fetch():
    """Loads a row in its own session, so the result reflects what was committed."""
    async def _fetch(model, pk):
        async with async_session_factory() as session:
            return await session.get(model, pk)

    return _fetch


@pytest.fixture
def count_rows():
    async def _count_rows(model, *criteria) -> int:
        async with async_session_factory() as session:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            return (await session.execute(stmt)).scalar_one()

    return _count_rows
