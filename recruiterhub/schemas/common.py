from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict

from recruiterhub.core.datetime_utils import parse_datetime_utc, parse_optional_datetime, parse_optional_end_of_day


def _coerce_ref(value: Any) -> Any:
    # Populated references arrive as embedded documents: {"_id": "...", "name": "..."}.
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return str(int(value))
    if isinstance(value, str):
        return value.strip() or None
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


UtcDateTime = Annotated[datetime, BeforeValidator(parse_datetime_utc)]
OptionalUtcDateTime = Annotated[Optional[datetime], BeforeValidator(parse_optional_datetime)]
EndOfDayDateTime = Annotated[Optional[datetime], BeforeValidator(parse_optional_end_of_day)]
RecordRef = Annotated[Optional[str], BeforeValidator(_coerce_ref)]
RequiredRef = Annotated[str, BeforeValidator(_coerce_ref)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class RecordModel(BaseModel):
    """Flat record as returned by the collection fetch boundary."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
