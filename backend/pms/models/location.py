"""Location database model."""

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from pms.models.types import new_ulid
from pms.utils.datetime_utils import utc_now


class Location(SQLModel, table=True):
    """A property (hotel, villa, ...) owned by a tenant.

    Only the display name matters to reservation numbering: its first three
    letters become the scope code of the location's numbering series.
    """

    __tablename__ = "locations"

    id: str = Field(default_factory=new_ulid, primary_key=True, max_length=64)
    tenant_id: str = Field(index=True, max_length=64)
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    property_type: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
