"""FastAPI dependencies for service injection."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pms.db import get_session
from pms.services.reservations import ReservationBookingService, ReservationNumberAllocator
from pms.services.store import SqlRecordStore


async def get_record_store(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SqlRecordStore:
    """Get a SqlRecordStore bound to the current session."""
    return SqlRecordStore(session)


async def get_number_allocator(
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
) -> ReservationNumberAllocator:
    """Get a ReservationNumberAllocator over the request's record store."""
    return ReservationNumberAllocator(store)


async def get_booking_service(
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
    allocator: Annotated[ReservationNumberAllocator, Depends(get_number_allocator)],
) -> ReservationBookingService:
    """Get a ReservationBookingService sharing the request's record store."""
    return ReservationBookingService(store, allocator)


# Type aliases for cleaner endpoint signatures
NumberAllocatorDep = Annotated[ReservationNumberAllocator, Depends(get_number_allocator)]
BookingServiceDep = Annotated[ReservationBookingService, Depends(get_booking_service)]
