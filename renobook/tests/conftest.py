from __future__ import annotations

import os

# Settings() is built at import time; tests never touch a real database or SMTP server.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./renobook-test-unused.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMTP_HOST", "")
os.environ.setdefault("ENV", "test")

from datetime import date, datetime

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import renobook.models  # noqa: F401 - register tables
from renobook.core.db import get_session
from renobook.services.schedule_service import replace_template
from renobook.services.timeslots import local_now

from factories import next_weekday, week


@pytest.fixture
def now() -> datetime:
    # A Wednesday morning; next Monday is 2026-10-26
    return datetime(2026, 10, 21, 8, 30)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'renobook.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def monday_template(session):
    """Scenario template: only Monday open, 09:00 and 10:00."""
    await replace_template(session, week(mon=["09:00", "10:00"]))


@pytest_asyncio.fixture
async def client(session_maker):
    from renobook.main import app

    async def _session_override():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session_override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def real_next_monday() -> date:
    """Next Monday relative to the real clock, for HTTP tests that use local_now()."""
    return next_weekday(local_now().date(), 0)
