"""Retry a reservation batch insert once when its numbers are already taken."""

from collections.abc import AsyncIterator, Sequence
from typing import Any

import structlog

from pms.models import Reservation
from pms.services.reservations.numbering import ReservationNumberBlock, fallback_reservation_number
from pms.services.store import UniqueViolationError

logger = structlog.get_logger(__name__)


class RetryOnNumberConflict:
    """Async iterator with offset-based renumbering on unique constraint conflict.

    The first attempt inserts the records with the numbers they already carry.
    If the store reports a uniqueness violation, the records are renumbered in
    place with the block that directly follows the first one (no store
    re-read) and the insert is attempted again. Records that do not carry a
    contiguous sequential block get fresh fallback numbers instead.

    A conflict on the last attempt, and any other exception, propagates.

    Usage:
        async for attempt in RetryOnNumberConflict(records):
            async with attempt:
                await store.insert_batch(records)
    """

    def __init__(self, records: Sequence[Reservation], max_attempts: int = 2):
        if not records:
            raise ValueError("records must not be empty")
        self.records = records
        self.max_attempts = max_attempts
        self.current_attempt = 0
        self._block = ReservationNumberBlock.from_numbers([r.reservation_number for r in records])
        self._success = False

    async def __aiter__(self) -> AsyncIterator["RetryOnNumberConflict"]:
        while self.current_attempt < self.max_attempts and not self._success:
            self.current_attempt += 1
            if self.current_attempt > 1:
                self._renumber()
            yield self
        if not self._success:
            raise RuntimeError(f"Failed to insert reservations after {self.max_attempts} attempts")

    @property
    def numbers(self) -> list[str]:
        return [r.reservation_number for r in self.records]

    def _renumber(self) -> None:
        if self._block is not None:
            self._block = self._block.advance()
            numbers = self._block.numbers
        else:
            numbers = [fallback_reservation_number() for _ in self.records]
        for record, number in zip(self.records, numbers, strict=True):
            record.reservation_number = number

    async def __aenter__(self) -> "RetryOnNumberConflict":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> bool:
        if exc_type is None:
            self._success = True
            return False
        if isinstance(exc_val, UniqueViolationError) and self.current_attempt < self.max_attempts:
            logger.warning(
                "Reservation number conflict, retrying with next block",
                attempt=self.current_attempt,
                max_attempts=self.max_attempts,
                numbers=self.numbers,
                error=str(exc_val),
            )
            return True  # Suppress exception, allow retry
        return False  # Re-raise other exceptions and the final conflict
