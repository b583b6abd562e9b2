"""Reservation numbering and booking."""

from pms.services.reservations.booking_request import BookingRequest, GuestDetails, PaymentDetails, RoomSelection
from pms.services.reservations.booking_service import CreateReservationsResult, ReservationBookingService
from pms.services.reservations.exceptions import BookingValidationError
from pms.services.reservations.numbering import (
    ReservationNumberAllocator,
    ReservationNumberBlock,
    fallback_reservation_number,
    format_reservation_number,
)

__all__ = [
    "BookingRequest",
    "BookingValidationError",
    "CreateReservationsResult",
    "GuestDetails",
    "PaymentDetails",
    "ReservationBookingService",
    "ReservationNumberAllocator",
    "ReservationNumberBlock",
    "RoomSelection",
    "fallback_reservation_number",
    "format_reservation_number",
]
