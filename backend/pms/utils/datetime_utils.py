"""Datetime utility functions."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def epoch_millis(dt: datetime | None = None) -> int:
    """Milliseconds since the Unix epoch for ``dt`` (defaults to now)."""
    return int((dt or utc_now()).timestamp() * 1000)
