from recruiterhub.db.base import Base
from recruiterhub.models.kv_entry import RhKeyValueEntry

__all__ = [
    "Base",
    "RhKeyValueEntry",
]
