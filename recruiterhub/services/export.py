from __future__ import annotations

import csv
import re
from datetime import date, datetime
from decimal import Decimal
from io import StringIO
from typing import Any, Callable, Iterable

from recruiterhub.core.datetime_utils import utcnow
from recruiterhub.core.statuses import KIND_PLURALS, normalize_kind

Column = tuple[str, Callable[[Any], object]]

# Phone numbers and signed numbers ("+91 9876543210", "-5") are data, not formulas.
_PLAIN_NUMBER = re.compile(r"[+-]?\d[\d ]*(\.\d+)?")


def _date_only(value: datetime | None) -> date | None:
    return value.date() if value is not None else None


EXPORT_COLUMNS: dict[str, list[Column]] = {
    "candidate": [
        ("Name", lambda c: c.name),
        ("Email", lambda c: c.email),
        ("Phone", lambda c: c.phone),
        ("Position", lambda c: c.position),
        ("Status", lambda c: c.status),
        ("Recruiter", lambda c: c.recruiter_name),
        ("Experience", lambda c: c.experience),
        ("Current CTC", lambda c: c.current_ctc),
        ("Expected CTC", lambda c: c.expected_ctc),
        ("Notice Period", lambda c: c.notice_period),
        ("Created Date", lambda c: _date_only(c.created_at)),
    ],
    "job": [
        ("Job Code", lambda j: j.job_code),
        ("Client", lambda j: j.client_name),
        ("Position", lambda j: j.position),
        ("Location", lambda j: j.location),
        ("Primary Recruiter", lambda j: j.primary_recruiter),
        ("Secondary Recruiter", lambda j: j.secondary_recruiter),
        ("TAT", lambda j: _date_only(j.tat_deadline)),
        ("Status", lambda j: j.status),
        ("Requirements", lambda j: j.requirements),
    ],
    "client": [
        ("Company Name", lambda c: c.company_name),
        ("Contact Person", lambda c: c.contact_person),
        ("Email", lambda c: c.email),
        ("Phone", lambda c: c.phone),
        ("Industry", lambda c: c.industry),
        ("Website", lambda c: c.website),
        ("Address", lambda c: c.address),
        ("Date Added", lambda c: _date_only(c.date_added)),
    ],
}


def _csv_safe(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    text = str(value)
    if text and text[0] in "=+-@\t" and not _PLAIN_NUMBER.fullmatch(text):
        return f"'{text}"
    return text


def export_headers(kind: str) -> list[str]:
    return [label for label, _ in EXPORT_COLUMNS[normalize_kind(kind)]]


def serialize(kind: str, records: Iterable[Any]) -> str:
    """Render records as CSV text with the fixed column contract for their kind."""
    columns = EXPORT_COLUMNS[normalize_kind(kind)]
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([label for label, _ in columns])
    for record in records:
        writer.writerow([_csv_safe(getter(record)) for _, getter in columns])
    return buffer.getvalue()


def export_filename(kind: str, on: date | None = None, *, ext: str = "csv") -> str:
    day = on or utcnow().date()
    return f"{KIND_PLURALS[normalize_kind(kind)]}-{day.isoformat()}.{ext}"
