from __future__ import annotations
import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from partysnap.db import Base, get_session
from partysnap.main import app
from partysnap.services.errors import UploadError
from partysnap.services.storage import get_media_store
import partysnap.models.event  # register tables
import partysnap.models.challenge
import partysnap.models.participant
import partysnap.models.submission


class FakeMediaStore:
    """In-memory stand-in for the bucket. Set `fail = True` to simulate an outage."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.removed: list[str] = []
        self.fail = False

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise UploadError("storage unavailable")
        self.objects[key] = data
        return f"http://media.test/{key}"

    def remove(self, key: str) -> None:
        self.removed.append(key)
        self.objects.pop(key, None)


def _enable_fks(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool, future=True)
    event.listen(eng.sync_engine, "connect", _enable_fks)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions on separate connections to one database file, for interleaved transactions."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'party.db'}", connect_args={"timeout": 30})
    event.listen(eng.sync_engine, "connect", _enable_fks)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, expire_on_commit=False)
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncSession:
    async with session_factory() as s:
        yield s


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest_asyncio.fixture
async def client(session_factory, media_store):
    async def _session_override():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_media_store] = lambda: media_store
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
