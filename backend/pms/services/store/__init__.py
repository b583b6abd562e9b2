"""Record store abstraction over the database session."""

from pms.services.store.exceptions import RecordStoreError, StoreErrorKind, UniqueViolationError
from pms.services.store.record_store import RecordStore, SqlRecordStore, is_unique_violation

__all__ = [
    "RecordStore",
    "RecordStoreError",
    "SqlRecordStore",
    "StoreErrorKind",
    "UniqueViolationError",
    "is_unique_violation",
]
