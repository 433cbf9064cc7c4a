from __future__ import annotations

from pydantic import AliasChoices, Field

from recruiterhub.schemas.common import OptionalText, OptionalUtcDateTime, RecordModel, RequiredRef


class ClientRecord(RecordModel):
    id: RequiredRef = Field(validation_alias=AliasChoices("id", "_id"))
    company_name: str = Field(validation_alias=AliasChoices("company_name", "companyName"))
    contact_person: OptionalText = Field(default=None, validation_alias=AliasChoices("contact_person", "contactPerson"))
    email: OptionalText = None
    phone: OptionalText = None
    industry: OptionalText = None
    website: OptionalText = None
    address: OptionalText = None
    active: bool = True
    date_added: OptionalUtcDateTime = Field(
        default=None,
        validation_alias=AliasChoices("date_added", "dateAdded", "createdAt"),
    )


class RecruiterRecord(RecordModel):
    id: RequiredRef = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    email: OptionalText = None
    active: bool = True
