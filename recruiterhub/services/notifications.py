from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Callable
from uuid import uuid4

from pydantic import ValidationError

from recruiterhub.core.config import settings
from recruiterhub.core.datetime_utils import utcnow
from recruiterhub.schemas.notification import Notification, NotificationCreate
from recruiterhub.services.kv_store import KeyValueStorage

logger = logging.getLogger("rh.notifications")


class NotificationStoreClosed(RuntimeError):
    pass


def _new_id() -> str:
    return uuid4().hex


class NotificationStore:
    """
    Persisted, most-recent-first notification log.

    Every mutation runs under one lock, writes the full log to storage and only then
    swaps the in-memory copy, so readers of either side never see a partial update.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        storage_key: str | None = None,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._storage = storage
        self._storage_key = storage_key or settings.notification_storage_key
        self._clock = clock
        self._id_factory = id_factory
        self._items: tuple[Notification, ...] = ()
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._items if not item.read)

    def get(self, notification_id: str) -> Notification | None:
        for item in self._items:
            if item.id == notification_id:
                return item
        return None

    async def load(self) -> None:
        async with self._lock:
            raw = await self._storage.read(self._storage_key)
            self._items = tuple(self._decode(raw))
            self._closed = False
        logger.info("notification_log_loaded", extra={"count": len(self._items)})

    def _decode(self, raw: str | None) -> list[Notification]:
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("Notification log must be an array")
            return [Notification.model_validate(item) for item in data]
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "notification_log_reset",
                extra={"storage_key": self._storage_key, "error": str(exc)},
            )
            return []

    def _encode(self, items: list[Notification]) -> str:
        return json.dumps(
            [item.model_dump(mode="json") for item in items],
            ensure_ascii=False,
            separators=(",", ":"),
        )

    async def _commit(self, items: list[Notification]) -> None:
        await self._storage.write(self._storage_key, self._encode(items))
        self._items = tuple(items)

    def _ensure_open(self) -> None:
        if self._closed:
            raise NotificationStoreClosed("Notification store is closed")

    async def add(self, event: NotificationCreate) -> Notification:
        async with self._lock:
            self._ensure_open()
            notification = Notification(
                **event.model_dump(),
                id=self._id_factory(),
                timestamp=self._clock(),
                read=False,
            )
            await self._commit([notification, *self._items])
        logger.info("notification_added", extra={"notification_id": notification.id, "kind": notification.kind})
        return notification

    async def mark_read(self, notification_id: str) -> Notification | None:
        async with self._lock:
            self._ensure_open()
            target = self.get(notification_id)
            if target is None or target.read:
                return target
            updated = target.model_copy(update={"read": True})
            await self._commit([updated if item.id == notification_id else item for item in self._items])
        return updated

    async def mark_all_read(self) -> int:
        async with self._lock:
            self._ensure_open()
            changed = sum(1 for item in self._items if not item.read)
            if changed:
                await self._commit(
                    [item if item.read else item.model_copy(update={"read": True}) for item in self._items]
                )
        return changed

    async def delete(self, notification_id: str) -> bool:
        async with self._lock:
            self._ensure_open()
            remaining = [item for item in self._items if item.id != notification_id]
            if len(remaining) == len(self._items):
                return False
            await self._commit(remaining)
        return True

    async def clear_all(self) -> None:
        async with self._lock:
            self._ensure_open()
            await self._commit([])

    async def close(self) -> None:
        async with self._lock:
            self._closed = True
