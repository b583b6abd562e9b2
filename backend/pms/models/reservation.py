"""Reservation database model."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from pms.models.enums import BookingSource, Currency, ReservationStatus, string_enum
from pms.models.types import ULIDType, new_ulid
from pms.utils.datetime_utils import utc_now

# Reservation numbers are unique per tenant and location. The allocator reads
# the latest number without locking and relies on this constraint to reject
# a concurrent writer that computed the same number.
RESERVATION_NUMBER_CONSTRAINT = UniqueConstraint(
    "tenant_id",
    "location_id",
    "reservation_number",
    name="uq_reservation_tenant_location_number",
)


class Reservation(SQLModel, table=True):
    """A booked room for one guest over a date range."""

    __tablename__ = "reservations"
    __table_args__ = (RESERVATION_NUMBER_CONSTRAINT,)

    # ULID stored as UUID
    id: str = Field(
        default_factory=new_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )

    # Display number, e.g. "LOT-00001"; "RES<epoch-ms>-<suffix>" when numbering fell back
    reservation_number: str = Field(index=True, max_length=64)
    tenant_id: str = Field(index=True, max_length=64)
    location_id: str = Field(foreign_key="locations.id", index=True, max_length=64)

    # Shared by every room booked in one multi-room submission, NULL for single rooms
    booking_group_id: str | None = Field(
        default=None,
        max_length=26,
        sa_column=Column(ULIDType, index=True, nullable=True),
    )

    room_id: str = Field(max_length=64)
    guest_name: str
    guest_email: str | None = None
    guest_phone: str | None = None
    guest_address: str | None = None
    guest_nationality: str | None = None
    guest_passport_number: str | None = None
    guest_id_number: str | None = None

    adults: int = 1
    children: int = 0
    check_in_date: date
    check_out_date: date
    nights: int
    arrival_time: str | None = None  # "HH:MM" as entered by staff

    room_rate: Decimal = Field(max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    advance_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    paid_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    balance_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    currency: Currency = Field(
        default=Currency.LKR,
        sa_column=Column(string_enum(Currency, "currency_type"), nullable=False),
    )

    status: ReservationStatus = Field(
        default=ReservationStatus.TENTATIVE,
        sa_column=Column(string_enum(ReservationStatus, "reservation_status"), nullable=False),
    )
    booking_source: BookingSource | None = Field(
        default=None,
        sa_column=Column(string_enum(BookingSource, "booking_source"), nullable=True),
    )
    special_requests: str | None = None

    created_by: str = Field(max_length=64)
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
