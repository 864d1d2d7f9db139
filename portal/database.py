"""
Portal — database wiring.

One session factory per process, created by init_db() from the lifespan hook
(or directly by tests).  get_db() yields a request-scoped session; services
only flush, the commit happens here when the request finishes cleanly.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portal_shared.database import AsyncSessionFactory, get_async_session_factory, get_session

_session_factory: AsyncSessionFactory | None = None


def init_db(database_url: str, **engine_kwargs: Any) -> AsyncSessionFactory:
    global _session_factory
    _session_factory = get_async_session_factory(database_url, **engine_kwargs)
    return _session_factory


def is_initialized() -> bool:
    return _session_factory is not None


def get_session_factory() -> AsyncSessionFactory:
    if _session_factory is None:
        raise RuntimeError("Database not initialised; call init_db() first.")
    return _session_factory


async def dispose_db() -> None:
    global _session_factory
    if _session_factory is not None:
        await _session_factory.kw["bind"].dispose()
        _session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session(get_session_factory()):
        yield session
