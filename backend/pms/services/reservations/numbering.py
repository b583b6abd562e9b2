"""Sequential, location-scoped reservation numbers.

A reservation number is ``<SCOPE>-<sequence>``: the scope code is the first
three letters of the location name (``"LOT"`` for "Lotus Villa") and the
sequence is zero-padded to five digits (``"LOT-00042"``).

There is no counter table. The next sequence is derived from the most recent
reservation of the same tenant, location and scope, read without locking.
Two concurrent submissions can therefore compute the same numbers; the
unique constraint on ``reservations`` rejects the second insert and the
booking service retries once with a shifted block (see ``ReservationNumberBlock.advance``).
"""

import re
import secrets
import string
from dataclasses import dataclass, field, replace
from typing import Self

import structlog

from pms.config import settings
from pms.models import Location, Reservation
from pms.services.store import RecordStore, RecordStoreError
from pms.utils.datetime_utils import epoch_millis

logger = structlog.get_logger(__name__)

TRAILING_DIGITS = re.compile(r"\d+$")
SEQUENTIAL_NUMBER = re.compile(r"^(?P<scope>.+)-(?P<sequence>\d+)$")
FALLBACK_SCOPE = re.compile(rf"^{re.escape(settings.fallback_number_prefix)}\d+$")

SCOPE_CODE_LENGTH = 3
FALLBACK_SUFFIX_LENGTH = 5
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def format_reservation_number(scope_code: str, sequence: int, digits: int | None = None) -> str:
    """Format ``"<SCOPE>-<sequence>"``; sequences wider than ``digits`` are not truncated."""
    width = digits if digits is not None else settings.reservation_number_digits
    return f"{scope_code}-{sequence:0{width}d}"


def fallback_reservation_number() -> str:
    """Unique, non-sequential number used when sequential numbering is unavailable.

    Format: ``"RES<epoch-ms>-<5 random [a-z0-9]>"``.
    """
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(FALLBACK_SUFFIX_LENGTH))
    return f"{settings.fallback_number_prefix}{epoch_millis()}-{suffix}"


@dataclass(frozen=True)
class ReservationNumberBlock:
    """A contiguous run of sequence numbers within one scope."""

    scope_code: str
    start: int
    count: int
    digits: int = field(default_factory=lambda: settings.reservation_number_digits)

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError("count must be >= 1")
        if self.start < 1:
            raise ValueError("start must be >= 1")

    @property
    def sequences(self) -> range:
        return range(self.start, self.start + self.count)

    @property
    def numbers(self) -> list[str]:
        return [format_reservation_number(self.scope_code, seq, self.digits) for seq in self.sequences]

    def advance(self) -> Self:
        """The next block of the same size, starting right after this one.

        Used to retry after a uniqueness conflict without re-reading the
        store, so a lagging read cannot hand back the same block again.
        """
        return replace(self, start=self.start + self.count)

    @classmethod
    def from_numbers(cls, numbers: list[str]) -> Self | None:
        """Recover the block a list of numbers was formatted from.

        Returns None unless the numbers share one scope code and form a
        contiguous ascending sequence (fallback numbers never do).
        """
        if not numbers:
            return None
        parsed = [SEQUENTIAL_NUMBER.match(number) for number in numbers]
        if not all(parsed):
            return None
        scopes = {match["scope"] for match in parsed if match}
        sequences = [int(match["sequence"]) for match in parsed if match]
        start = sequences[0]
        if len(scopes) != 1 or start < 1 or sequences != list(range(start, start + len(sequences))):
            return None
        scope_code = scopes.pop()
        # A fallback number with an all-digit suffix looks like "<RES+millis>-<digits>"
        if FALLBACK_SCOPE.match(scope_code):
            return None
        return cls(scope_code=scope_code, start=start, count=len(sequences))


class ReservationNumberAllocator:
    """Derives the next reservation numbers for a tenant and location.

    Tenant and location are passed explicitly to every call; the allocator
    holds no state of its own besides the store.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def resolve_scope_code(self, location_id: str) -> str:
        """Scope code for a location: first three letters of its name, upper-cased.

        Falls back to ``"LOC"`` when the lookup fails, the location does not
        exist, or its name is blank. Never raises for a missing location.
        """
        fallback = settings.fallback_scope_code
        try:
            location = await self.store.get(Location, location_id)
        except RecordStoreError as e:
            logger.warning("Location lookup failed, using fallback scope code", location_id=location_id, error=str(e))
            return fallback

        name = (location.name or "").strip() if location else ""
        if not name:
            logger.warning("Location has no usable name, using fallback scope code", location_id=location_id)
            return fallback
        return name[:SCOPE_CODE_LENGTH].upper()

    async def next_sequence_number(self, tenant_id: str, location_id: str, scope_code: str) -> int:
        """Sequence number following the most recently created reservation in the scope.

        Returns 1 when the scope has no reservations yet, and also when the
        latest stored number has no trailing digits. The latter restarts the
        series and may collide with older numbers; the insert retry is the
        only protection in that case.

        Rows sharing a ``created_at`` are ordered by ``reservation_number`` as
        text, so ``"LOT-99999"`` sorts above ``"LOT-100000"``. The booking
        service never writes two rows with the same timestamp; only
        independent writers hitting the same microsecond can tie.
        """
        latest = await self.store.find_one(
            Reservation,
            filters={"tenant_id": tenant_id, "location_id": location_id},
            prefix=("reservation_number", f"{scope_code}-"),
            order_by=("created_at", "reservation_number"),
        )
        if latest is None:
            return 1

        match = TRAILING_DIGITS.search(latest.reservation_number)
        if match is None:
            logger.warning(
                "Malformed reservation number, restarting sequence at 1",
                tenant_id=tenant_id,
                location_id=location_id,
                reservation_number=latest.reservation_number,
            )
            return 1
        return int(match.group()) + 1

    async def allocate_block(self, tenant_id: str, location_id: str, count: int = 1) -> ReservationNumberBlock:
        """Allocate ``count`` consecutive reservation numbers for one submission.

        Nothing is reserved in the store: the block is only claimed once the
        reservations carrying it are inserted.
        """
        if count < 1:
            raise ValueError("count must be >= 1")

        scope_code = await self.resolve_scope_code(location_id)
        start = await self.next_sequence_number(tenant_id, location_id, scope_code)
        block = ReservationNumberBlock(scope_code=scope_code, start=start, count=count)
        logger.debug(
            "Allocated reservation numbers",
            tenant_id=tenant_id,
            location_id=location_id,
            numbers=block.numbers,
        )
        return block
