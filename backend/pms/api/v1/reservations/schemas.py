"""API schemas for reservations endpoints."""

from pydantic import BaseModel

from pms.services.reservations import CreateReservationsResult, ReservationNumberBlock

# =============================================================================
# Response Schemas
# =============================================================================


class BookingResponse(BaseModel):
    """Reservations created by one booking submission."""

    ids: list[str]
    reservation_numbers: list[str]
    booking_group_id: str | None

    @classmethod
    def from_result(cls, result: CreateReservationsResult) -> "BookingResponse":
        """Create response from a successful booking result."""
        return cls(
            ids=result.ids,
            reservation_numbers=result.reservation_numbers,
            booking_group_id=result.booking_group_id,
        )


class ReservationNumberPreviewResponse(BaseModel):
    """Numbers the next booking would receive if nothing else is booked first."""

    scope_code: str
    sequence_start: int
    reservation_numbers: list[str]

    @classmethod
    def from_block(cls, block: ReservationNumberBlock) -> "ReservationNumberPreviewResponse":
        """Create response from an allocated block."""
        return cls(
            scope_code=block.scope_code,
            sequence_start=block.start,
            reservation_numbers=block.numbers,
        )
