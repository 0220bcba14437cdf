"""
Test configuration and shared fixtures.
Each test gets a fresh in-memory SQLite database.
"""
from __future__ import annotations

import os
import tempfile

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="issuetracker-uploads-"))

from collections.abc import AsyncGenerator  # noqa: E402
from typing import Any  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import issuetracker.models  # noqa: E402,F401
from issuetracker.core.security import hash_password  # noqa: E402
from issuetracker.db.base import Base  # noqa: E402
from issuetracker.db.session import (  # noqa: E402
    discard_after_commit,
    get_db,
    run_after_commit,
)
from issuetracker.main import app  # noqa: E402
from issuetracker.models.user import User  # noqa: E402

# ── Test database ─────────────────────────────────────────────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "TestPass1"


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by the test body and every request it makes."""
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client with the test DB injected."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db
            await db.commit()
        except Exception:
            discard_after_commit(db)
            await db.rollback()
            raise
        await run_after_commit(db)

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Helpers ───────────────────────────────────────────────────────────────────

async def create_user(
    db: AsyncSession,
    *,
    email: str,
    role: str = "developer",
    first_name: str = "Test",
    last_name: str = "User",
    password: str = DEFAULT_PASSWORD,
) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


async def login(client: AsyncClient, email: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
    response = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


# ── User fixtures ─────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def admin(db: AsyncSession) -> User:
    return await create_user(db, email="admin@example.com", role="admin", first_name="Ada")


@pytest_asyncio.fixture
async def manager(db: AsyncSession) -> User:
    return await create_user(
        db, email="pm@example.com", role="project_manager", first_name="Pat"
    )


@pytest_asyncio.fixture
async def developer(db: AsyncSession) -> User:
    return await create_user(db, email="dev@example.com", role="developer", first_name="Dev")


@pytest_asyncio.fixture
async def outsider(db: AsyncSession) -> User:
    return await create_user(db, email="outsider@example.com", role="developer", first_name="Olly")


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient, admin: User) -> dict[str, str]:
    return await login(client, admin.email)


@pytest_asyncio.fixture
async def manager_headers(client: AsyncClient, manager: User) -> dict[str, str]:
    return await login(client, manager.email)


@pytest_asyncio.fixture
async def developer_headers(client: AsyncClient, developer: User) -> dict[str, str]:
    return await login(client, developer.email)


@pytest_asyncio.fixture
async def outsider_headers(client: AsyncClient, outsider: User) -> dict[str, str]:
    return await login(client, outsider.email)


# ── Domain fixtures ───────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def project(
    client: AsyncClient,
    manager_headers: dict[str, str],
    developer: User,
) -> dict[str, Any]:
    """A project owned by the manager with the developer as a member."""
    response = await client.post(
        "/api/v1/projects/",
        json={"name": "Test Project", "description": "Fixture project"},
        headers=manager_headers,
    )
    assert response.status_code == 201, response.text
    project_id = response.json()["id"]

    response = await client.post(
        f"/api/v1/projects/{project_id}/members",
        json={"user_id": str(developer.id)},
        headers=manager_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest_asyncio.fixture
async def issue(
    client: AsyncClient,
    project: dict[str, Any],
    developer_headers: dict[str, str],
) -> dict[str, Any]:
    """An issue reported by the developer in the fixture project."""
    response = await client.post(
        "/api/v1/issues/",
        json={
            "project_id": project["id"],
            "title": "Login button does nothing",
            "type": "bug",
            "priority": "high",
            "estimated_hours": 4,
        },
        headers=developer_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
