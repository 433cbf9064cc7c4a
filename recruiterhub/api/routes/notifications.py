from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from recruiterhub.api import deps
from recruiterhub.schemas.notification import Notification, NotificationCreate, NotificationListOut
from recruiterhub.services.notifications import NotificationStore, NotificationStoreClosed

router = APIRouter(prefix="/ops/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListOut)
async def list_notifications(
    unread_only: bool = Query(default=False),
    limit: int | None = Query(default=None, ge=1, le=500),
    store: NotificationStore = Depends(deps.get_notification_store),
):
    items = store.items
    if unread_only:
        items = [item for item in items if not item.read]
    total = len(items)
    if limit is not None:
        items = items[:limit]
    return NotificationListOut(items=items, total=total, unread_count=store.unread_count)


@router.post("", response_model=Notification, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    store: NotificationStore = Depends(deps.get_notification_store),
):
    try:
        return await store.add(payload)
    except NotificationStoreClosed as exc:
        raise deps.unavailable(exc) from exc


@router.post("/read-all", response_model=dict)
async def mark_all_notifications_read(store: NotificationStore = Depends(deps.get_notification_store)):
    try:
        updated = await store.mark_all_read()
    except NotificationStoreClosed as exc:
        raise deps.unavailable(exc) from exc
    return {"updated": updated, "unread_count": store.unread_count}


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: str,
    store: NotificationStore = Depends(deps.get_notification_store),
):
    try:
        notification = await store.mark_read(notification_id)
    except NotificationStoreClosed as exc:
        raise deps.unavailable(exc) from exc
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found.")
    return notification


@router.delete("/{notification_id}", response_model=dict)
async def delete_notification(
    notification_id: str,
    store: NotificationStore = Depends(deps.get_notification_store),
):
    try:
        deleted = await store.delete(notification_id)
    except NotificationStoreClosed as exc:
        raise deps.unavailable(exc) from exc
    return {"deleted": deleted, "unread_count": store.unread_count}


@router.delete("", response_model=dict)
async def clear_notifications(store: NotificationStore = Depends(deps.get_notification_store)):
    removed = len(store.items)
    try:
        await store.clear_all()
    except NotificationStoreClosed as exc:
        raise deps.unavailable(exc) from exc
    return {"deleted": removed}
