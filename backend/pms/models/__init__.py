"""Database models."""

# ruff: noqa: I001 - Import order matters for SQLAlchemy relationship resolution
from sqlmodel import SQLModel

from pms.models.enums import BookingSource, Currency, ReservationStatus

# location.py must be imported first (reservations.location_id references locations.id)
from pms.models.location import Location
from pms.models.reservation import RESERVATION_NUMBER_CONSTRAINT, Reservation

__all__ = [
    "SQLModel",
    "Location",
    "Reservation",
    "RESERVATION_NUMBER_CONSTRAINT",
    "ReservationStatus",
    "BookingSource",
    "Currency",
]
