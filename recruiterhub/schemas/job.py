from __future__ import annotations

from pydantic import AliasChoices, Field, model_validator

from recruiterhub.schemas.common import OptionalText, OptionalUtcDateTime, RecordModel, RequiredRef


class JobRecord(RecordModel):
    id: RequiredRef = Field(validation_alias=AliasChoices("id", "_id"))
    job_code: str = Field(validation_alias=AliasChoices("job_code", "jobCode"))
    client_name: OptionalText = Field(default=None, validation_alias=AliasChoices("client_name", "clientName", "client"))
    position: OptionalText = Field(default=None, validation_alias=AliasChoices("position", "title"))
    location: OptionalText = None
    skills: OptionalText = None
    experience: OptionalText = None
    primary_recruiter: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("primary_recruiter", "primaryRecruiter", "assignedRecruiter"),
    )
    secondary_recruiter: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("secondary_recruiter", "secondaryRecruiter"),
    )
    tat_deadline: OptionalUtcDateTime = Field(
        default=None,
        validation_alias=AliasChoices("tat_deadline", "tatTime", "deadline"),
    )
    status: OptionalText = None
    active: bool = True
    requirements: OptionalText = Field(default=None, validation_alias=AliasChoices("requirements", "comments"))
    created_at: OptionalUtcDateTime = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "date", "createdAt"),
    )

    @model_validator(mode="after")
    def _derive_status(self) -> "JobRecord":
        if self.status is None:
            self.status = "Active" if self.active else "Inactive"
        return self

    @property
    def is_assigned(self) -> bool:
        return bool(self.primary_recruiter or self.secondary_recruiter)
