"""Enum definitions for database models."""

from enum import StrEnum

from sqlalchemy import Enum


class ReservationStatus(StrEnum):
    """Lifecycle status of a reservation."""

    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class BookingSource(StrEnum):
    """Channel a reservation was booked through."""

    DIRECT = "direct"
    AIRBNB = "airbnb"
    BOOKING_COM = "booking_com"
    BEDS24 = "beds24"
    MANUAL = "manual"


class Currency(StrEnum):
    """Currencies a room can be priced in."""

    LKR = "LKR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


def string_enum(enum_class: type[StrEnum], name: str) -> Enum:
    """Enum column stored as VARCHAR with values (not member names) persisted."""
    return Enum(
        enum_class,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda e: [member.value for member in e],
    )
