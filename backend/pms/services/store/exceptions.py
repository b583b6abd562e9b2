"""Record store exceptions."""

from enum import StrEnum


class StoreErrorKind(StrEnum):
    """Failure kinds a record store distinguishes for its callers."""

    UNIQUE_VIOLATION = "unique_violation"
    OTHER = "other"


class RecordStoreError(Exception):
    """A read or write against the record store failed."""

    kind: StoreErrorKind = StoreErrorKind.OTHER

    def __init__(self, message: str, *, collection: str | None = None):
        self.collection = collection
        super().__init__(message)


class UniqueViolationError(RecordStoreError):
    """A batch insert was rejected because it duplicated a unique value."""

    kind = StoreErrorKind.UNIQUE_VIOLATION
