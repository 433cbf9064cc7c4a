from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from recruiterhub.db.base import Base


class RhKeyValueEntry(Base):
    """
    Single-row-per-key document store. The notification log lives under one fixed key
    and is rewritten in full on every mutation.
    """

    __tablename__ = "rh_kv_entry"

    storage_key: Mapped[str] = mapped_column(String(120), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
