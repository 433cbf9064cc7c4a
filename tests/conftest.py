import os

os.environ.setdefault("RH_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RH_COLLECTIONS_BASE_URL", "http://collections.test/api")
os.environ["RH_REDIS_URL"] = ""
os.environ.setdefault("RH_ACTIVITY_FEED_ENABLED", "false")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from recruiterhub.models import Base
from recruiterhub.services.event_bus import EventBus
from recruiterhub.services.kv_store import SqlKeyValueStorage


@pytest_asyncio.fixture()
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(async_engine):
    return async_sessionmaker(bind=async_engine, expire_on_commit=False, autoflush=False)


@pytest.fixture()
def kv_storage(session_factory):
    return SqlKeyValueStorage(session_factory)


@pytest_asyncio.fixture()
async def bus():
    event_bus = EventBus(redis_url="", channel="rh:test")
    yield event_bus
    await event_bus.close()
