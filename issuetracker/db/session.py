"""
Database sessions for the issue tracker.

HTTP routes get one session per request through get_db. Long-lived
connections such as the WebSocket endpoint take the session factory
instead and open a short session for each lookup.

Real-time events are queued on the session with after_commit and only
dispatched once the request transaction has been committed.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from functools import partial
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from issuetracker.core.config import settings

AFTER_COMMIT_KEY = "after_commit"

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
    pool_recycle=3600,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


def after_commit(
    session: AsyncSession,
    callback: Callable[..., Awaitable[None]],
    *args: Any,
    **kwargs: Any,
) -> None:
    """Queue ``callback(*args, **kwargs)`` to run once the session has committed."""
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(partial(callback, *args, **kwargs))


def discard_after_commit(session: AsyncSession) -> None:
    session.info.pop(AFTER_COMMIT_KEY, None)


async def run_after_commit(session: AsyncSession) -> None:
    """Run and clear the callbacks queued on ``session``."""
    callbacks = session.info.pop(AFTER_COMMIT_KEY, [])
    for callback in callbacks:
        await callback()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency returning the session factory itself."""
    return AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one session per request.
    Commits when the request succeeds, rolls back on any error, then
    dispatches whatever the request queued with after_commit.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            discard_after_commit(session)
            await session.rollback()
            raise
        finally:
            await session.close()
        await run_after_commit(session)
