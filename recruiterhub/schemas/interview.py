from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from recruiterhub.schemas.common import OptionalText, RecordModel, RecordRef, RequiredRef, UtcDateTime

ACTIVE_INTERVIEW_STATUS = "scheduled"


class ScheduledInterview(RecordModel):
    id: RequiredRef = Field(validation_alias=AliasChoices("id", "_id"))
    interview_code: OptionalText = Field(default=None, validation_alias=AliasChoices("interview_code", "interviewId"))
    candidate_id: RecordRef = Field(default=None, validation_alias=AliasChoices("candidate_id", "candidateId"))
    candidate_name: OptionalText = Field(default=None, validation_alias=AliasChoices("candidate_name", "candidateName"))
    recruiter_id: RecordRef = Field(default=None, validation_alias=AliasChoices("recruiter_id", "recruiterId"))
    start_time: UtcDateTime = Field(validation_alias=AliasChoices("start_time", "startTime", "interviewDate"))
    duration_minutes: int = Field(default=60, validation_alias=AliasChoices("duration_minutes", "duration"))
    round: str = "L1 Interview"
    mode: str = Field(default="Virtual", validation_alias=AliasChoices("mode", "type"))
    status: str = "Scheduled"

    @property
    def is_active(self) -> bool:
        return self.status.strip().lower() == ACTIVE_INTERVIEW_STATUS


class ReminderStateOut(BaseModel):
    interview_id: str
    threshold_minutes: int
    start_time: datetime
    state: str
    fired_at: datetime | None = None
