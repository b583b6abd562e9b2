"""Reservation domain exceptions."""

from pms.services.exceptions import ValidationError


class BookingValidationError(ValidationError):
    """Booking request is incomplete or inconsistent."""

    pass
