"""Reservation booking service.

Turns a booking submission into reservation rows: allocates one block of
sequential numbers for all rooms, builds one reservation per room and
inserts them as a single batch, retrying once on a number conflict.

Store failures that survive the retry are returned as a failed
``CreateReservationsResult`` rather than raised, so the API layer can report
one error without inspecting store internals.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

import structlog

from pms.models import Reservation, ReservationStatus
from pms.models.types import new_ulid
from pms.services.reservations.booking_request import BookingRequest, RoomSelection
from pms.services.reservations.conflict_retry import RetryOnNumberConflict
from pms.services.reservations.exceptions import BookingValidationError
from pms.services.reservations.numbering import ReservationNumberAllocator, fallback_reservation_number
from pms.services.store import RecordStore, RecordStoreError
from pms.utils.datetime_utils import utc_now

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")


@dataclass
class CreateReservationsResult:
    """Outcome of a batch reservation insert."""

    success: bool
    ids: list[str] = field(default_factory=list)
    reservation_numbers: list[str] = field(default_factory=list)
    booking_group_id: str | None = None
    error: RecordStoreError | None = None


class ReservationBookingService:
    """Service for creating reservations with sequential numbers."""

    def __init__(self, store: RecordStore, allocator: ReservationNumberAllocator | None = None):
        self.store = store
        self.allocator = allocator or ReservationNumberAllocator(store)

    async def create_reservations(self, records: Sequence[Reservation]) -> CreateReservationsResult:
        """Insert reservations that already carry numbers from one allocated block.

        On a uniqueness conflict the records are renumbered with the next
        block and inserted once more. Any other store error, or a second
        failure, is returned as a failed result; nothing is inserted then.
        """
        if not records:
            raise ValueError("records must not be empty")

        booking_group_id = records[0].booking_group_id
        try:
            async for attempt in RetryOnNumberConflict(records):
                async with attempt:
                    inserted = await self.store.insert_batch(records)
        except RecordStoreError as e:
            logger.error(
                "Failed to create reservations",
                numbers=[r.reservation_number for r in records],
                error_kind=e.kind,
                error=str(e),
            )
            return CreateReservationsResult(
                success=False,
                reservation_numbers=[r.reservation_number for r in records],
                booking_group_id=booking_group_id,
                error=e,
            )

        numbers = [r.reservation_number for r in inserted]
        logger.info("Created reservations", numbers=numbers, booking_group_id=booking_group_id)
        return CreateReservationsResult(
            success=True,
            ids=[r.id for r in inserted],
            reservation_numbers=numbers,
            booking_group_id=booking_group_id,
        )

    async def book(
        self,
        request: BookingRequest,
        *,
        tenant_id: str,
        location_id: str,
        created_by: str,
    ) -> CreateReservationsResult:
        """Create one tentative reservation per selected room.

        Raises:
            BookingValidationError: The request or its context is incomplete
        """
        self._validate(request, tenant_id=tenant_id, location_id=location_id, created_by=created_by)

        room_count = len(request.rooms)
        numbers = await self._allocate_numbers(tenant_id, location_id, room_count)
        booking_group_id = new_ulid() if room_count > 1 else None
        advance_per_room = (request.payment.advance_amount / room_count).quantize(CENTS, rounding=ROUND_HALF_UP)

        # Rooms of one booking get strictly increasing creation times in number
        # order, so the latest reservation of the batch carries its highest number
        created_at = utc_now()
        records = [
            self._build_reservation(
                request,
                selection,
                reservation_number=number,
                created_at=created_at + timedelta(microseconds=index),
                booking_group_id=booking_group_id,
                advance_amount=advance_per_room,
                tenant_id=tenant_id,
                location_id=location_id,
                created_by=created_by,
            )
            for index, (selection, number) in enumerate(zip(request.rooms, numbers, strict=True))
        ]
        logger.debug("Inserting reservations", numbers=numbers, booking_group_id=booking_group_id)
        return await self.create_reservations(records)

    async def _allocate_numbers(self, tenant_id: str, location_id: str, count: int) -> list[str]:
        """Sequential numbers for the booking, or fallback numbers if allocation breaks."""
        try:
            block = await self.allocator.allocate_block(tenant_id, location_id, count)
        except Exception:
            logger.exception(
                "Reservation numbering failed, using fallback numbers",
                tenant_id=tenant_id,
                location_id=location_id,
                count=count,
            )
            return [fallback_reservation_number() for _ in range(count)]
        return block.numbers

    def _validate(self, request: BookingRequest, *, tenant_id: str, location_id: str, created_by: str) -> None:
        if not tenant_id or not location_id or not created_by:
            raise BookingValidationError("Missing required information")
        if not request.guest.guest_name.strip():
            raise BookingValidationError("Guest name is required")
        if not request.rooms:
            raise BookingValidationError("Please select at least one room")
        if any(not selection.room_id.strip() for selection in request.rooms):
            raise BookingValidationError("Please select a room for all room selections")
        if any(selection.check_out_date <= selection.check_in_date for selection in request.rooms):
            raise BookingValidationError("Check-out date must be after check-in date")

    def _build_reservation(
        self,
        request: BookingRequest,
        selection: RoomSelection,
        *,
        reservation_number: str,
        created_at: datetime,
        booking_group_id: str | None,
        advance_amount: Decimal,
        tenant_id: str,
        location_id: str,
        created_by: str,
    ) -> Reservation:
        guest = request.guest
        nights = selection.nights or (selection.check_out_date - selection.check_in_date).days
        total_amount = selection.total_amount
        if total_amount is None:
            total_amount = (selection.room_rate * nights).quantize(CENTS, rounding=ROUND_HALF_UP)

        return Reservation(
            reservation_number=reservation_number,
            booking_group_id=booking_group_id,
            tenant_id=tenant_id,
            location_id=location_id,
            room_id=selection.room_id,
            guest_name=guest.guest_name.strip(),
            guest_email=guest.guest_email or None,
            guest_phone=guest.guest_phone or None,
            guest_address=guest.guest_address or None,
            guest_nationality=guest.guest_nationality or None,
            guest_passport_number=guest.guest_passport_number or None,
            guest_id_number=guest.guest_id_number or None,
            adults=selection.adults,
            children=selection.children,
            check_in_date=selection.check_in_date,
            check_out_date=selection.check_out_date,
            nights=nights,
            room_rate=selection.room_rate,
            total_amount=total_amount,
            advance_amount=advance_amount,
            paid_amount=Decimal("0"),
            balance_amount=total_amount,
            currency=selection.currency,
            status=ReservationStatus.TENTATIVE,
            arrival_time=selection.arrival_time or None,
            special_requests=guest.special_requests or None,
            booking_source=guest.booking_source,
            created_by=created_by,
            created_at=created_at,
            updated_at=created_at,
        )
