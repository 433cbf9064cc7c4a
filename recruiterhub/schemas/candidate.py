from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from recruiterhub.core.statuses import SUBMITTED, normalize_status
from recruiterhub.schemas.common import OptionalText, OptionalUtcDateTime, RecordModel, RecordRef, RequiredRef


class CandidateRecord(RecordModel):
    id: RequiredRef = Field(validation_alias=AliasChoices("id", "_id"))
    candidate_code: OptionalText = Field(default=None, validation_alias=AliasChoices("candidate_code", "candidateId"))
    name: str
    email: OptionalText = None
    phone: OptionalText = Field(default=None, validation_alias=AliasChoices("phone", "contact"))
    position: OptionalText = None
    client: OptionalText = None
    status: str = SUBMITTED
    recruiter_id: RecordRef = Field(default=None, validation_alias=AliasChoices("recruiter_id", "recruiterId"))
    recruiter_name: OptionalText = Field(default=None, validation_alias=AliasChoices("recruiter_name", "recruiterName"))
    created_at: OptionalUtcDateTime = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt", "dateAdded"),
    )
    experience: OptionalText = Field(default=None, validation_alias=AliasChoices("experience", "totalExperience"))
    current_ctc: OptionalText = Field(default=None, validation_alias=AliasChoices("current_ctc", "currentCtc", "ctc"))
    expected_ctc: OptionalText = Field(default=None, validation_alias=AliasChoices("expected_ctc", "expectedCtc", "ectc"))
    notice_period: OptionalText = Field(default=None, validation_alias=AliasChoices("notice_period", "noticePeriod"))
    assigned_job_id: RecordRef = Field(default=None, validation_alias=AliasChoices("assigned_job_id", "assignedJobId"))

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> str:
        if value is None:
            return SUBMITTED
        normalized = normalize_status(str(value))
        if normalized is None:
            raise ValueError(f"Unknown candidate status: {value!r}")
        return normalized

    @field_validator("experience", "current_ctc", "expected_ctc", "notice_period", mode="before")
    @classmethod
    def _numbers_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value
