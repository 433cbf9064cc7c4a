from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

NotificationKind = Literal[
    "new_submission",
    "status_change",
    "interview_scheduled",
    "interview_reminder",
    "tat_alert",
    "system",
]
NotificationLevel = Literal["info", "success", "warning", "error"]


class NotificationCreate(BaseModel):
    kind: NotificationKind = "system"
    level: NotificationLevel = "info"
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(default="", max_length=2000)
    recruiter_id: Optional[str] = None
    candidate_id: Optional[str] = None
    job_id: Optional[str] = None


class Notification(NotificationCreate):
    id: str
    timestamp: datetime
    read: bool = False


class NotificationListOut(BaseModel):
    items: list[Notification]
    total: int
    unread_count: int
