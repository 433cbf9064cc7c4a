from __future__ import annotations

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recruiterhub.models.kv_entry import RhKeyValueEntry


class KeyValueStorage(Protocol):
    async def read(self, key: str) -> str | None: ...

    async def write(self, key: str, value: str) -> None: ...


class SqlKeyValueStorage:
    """Stores whole documents under a key; each write replaces the document in one transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def read(self, key: str) -> str | None:
        async with self._session_factory() as session:
            row = await session.get(RhKeyValueEntry, key)
            return row.value_json if row else None

    async def write(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.merge(
                    RhKeyValueEntry(storage_key=key, value_json=value, updated_at=datetime.utcnow())
                )
