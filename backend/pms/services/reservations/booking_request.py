"""Input models for a booking submission."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from pms.models.enums import BookingSource, Currency


class GuestDetails(BaseModel):
    """Guest information shared by every room of the booking."""

    guest_name: str
    guest_email: str | None = None
    guest_phone: str | None = None
    guest_address: str | None = None
    guest_nationality: str | None = None
    guest_passport_number: str | None = None
    guest_id_number: str | None = None
    special_requests: str | None = None
    booking_source: BookingSource = BookingSource.DIRECT


class RoomSelection(BaseModel):
    """One room of the booking with its stay and price."""

    room_id: str
    check_in_date: date
    check_out_date: date
    room_rate: Decimal = Field(ge=0)
    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    currency: Currency = Currency.LKR
    arrival_time: str | None = None
    nights: int | None = Field(default=None, ge=1)  # Derived from the dates when omitted
    total_amount: Decimal | None = Field(default=None, ge=0)  # room_rate * nights when omitted


class PaymentDetails(BaseModel):
    """Advance collected for the whole booking."""

    advance_amount: Decimal = Field(default=Decimal("0"), ge=0)


class BookingRequest(BaseModel):
    """A single submission, possibly covering several rooms."""

    guest: GuestDetails
    rooms: list[RoomSelection]
    payment: PaymentDetails = Field(default_factory=PaymentDetails)
