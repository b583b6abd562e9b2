"""Reservation booking API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Query, status

from pms.api.v1.reservations.dependencies import BookingServiceDep, NumberAllocatorDep
from pms.api.v1.reservations.schemas import BookingResponse, ReservationNumberPreviewResponse
from pms.services.reservations import BookingRequest, BookingValidationError
from pms.services.store import RecordStoreError, StoreErrorKind

router = APIRouter(tags=["reservations"])


@router.post(
    "/tenants/{tenant_id}/locations/{location_id}/reservations",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createReservations",
)
async def create_reservations(
    tenant_id: str,
    location_id: str,
    request: BookingRequest,
    service: BookingServiceDep,
    profile_id: Annotated[str, Header(alias="X-Profile-Id")],
) -> BookingResponse:
    """Book one or more rooms for a guest.

    Every room gets its own reservation; rooms booked together share a
    booking group id.
    """
    try:
        result = await service.book(request, tenant_id=tenant_id, location_id=location_id, created_by=profile_id)
    except BookingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if not result.success:
        if result.error is not None and result.error.kind is StoreErrorKind.UNIQUE_VIOLATION:
            status_code = status.HTTP_409_CONFLICT
        else:
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        raise HTTPException(status_code=status_code, detail="Failed to create reservation")
    return BookingResponse.from_result(result)


@router.get(
    "/tenants/{tenant_id}/locations/{location_id}/reservation-numbers/next",
    response_model=ReservationNumberPreviewResponse,
    operation_id="previewReservationNumbers",
)
async def preview_reservation_numbers(
    tenant_id: str,
    location_id: str,
    allocator: NumberAllocatorDep,
    count: Annotated[int, Query(ge=1, le=50)] = 1,
) -> ReservationNumberPreviewResponse:
    """Show the numbers the next booking of ``count`` rooms would receive.

    Nothing is reserved; a concurrent booking may take these numbers first.
    """
    try:
        block = await allocator.allocate_block(tenant_id, location_id, count)
    except RecordStoreError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reservation numbers are unavailable",
        ) from None
    return ReservationNumberPreviewResponse.from_block(block)
