import re
from datetime import date
from decimal import Decimal

import pytest
from sqlmodel import select

from pms.models import BookingSource, Reservation, ReservationStatus
from pms.services.reservations import (
    BookingRequest,
    BookingValidationError,
    GuestDetails,
    PaymentDetails,
    ReservationBookingService,
    ReservationNumberAllocator,
    RoomSelection,
)
from pms.services.store import RecordStoreError, StoreErrorKind, UniqueViolationError
from tests.factories import ScriptedRecordStore, count_reservations, make_reservation, seed_reservations

FALLBACK_NUMBER = re.compile(r"RES\d{13}-[a-z0-9]{5}")


def booking(rooms: int = 1, advance: str = "0", guest_name: str = "Nimal Perera") -> BookingRequest:
    return BookingRequest(
        guest=GuestDetails(guest_name=guest_name, guest_email="nimal@example.com", booking_source=BookingSource.AIRBNB),
        rooms=[
            RoomSelection(
                room_id=f"room-{101 + i}",
                check_in_date=date(2026, 11, 2),
                check_out_date=date(2026, 11, 4),
                room_rate=Decimal("45.50"),
                adults=2,
            )
            for i in range(rooms)
        ],
        payment=PaymentDetails(advance_amount=Decimal(advance)),
    )


@pytest.fixture
def service(store):
    return ReservationBookingService(store)


async def book(service, request, location_id="L1"):
    return await service.book(request, tenant_id="T1", location_id=location_id, created_by="profile-1")


async def stored_reservations(session) -> list[Reservation]:
    result = await session.execute(select(Reservation).order_by(Reservation.reservation_number))
    return list(result.scalars().all())


class TestBook:
    async def test_single_room(self, session, service, lotus):
        result = await book(service, booking(advance="20"))

        assert result.success
        assert result.reservation_numbers == ["LOT-00001"]
        assert result.booking_group_id is None

        [reservation] = await stored_reservations(session)
        assert result.ids == [reservation.id]
        assert reservation.booking_group_id is None
        assert reservation.status == ReservationStatus.TENTATIVE
        assert reservation.nights == 2
        assert reservation.total_amount == Decimal("91.00")
        assert reservation.balance_amount == Decimal("91.00")
        assert reservation.paid_amount == Decimal("0")
        assert reservation.advance_amount == Decimal("20.00")
        assert reservation.booking_source == BookingSource.AIRBNB
        assert reservation.tenant_id == "T1"
        assert reservation.created_by == "profile-1"

    async def test_multiple_rooms_share_booking_group(self, session, service, lotus):
        result = await book(service, booking(rooms=3, advance="100"))

        assert result.success
        assert result.reservation_numbers == ["LOT-00001", "LOT-00002", "LOT-00003"]
        reservations = await stored_reservations(session)
        group_ids = {r.booking_group_id for r in reservations}
        assert len(reservations) == 3
        assert group_ids == {result.booking_group_id}
        assert result.booking_group_id is not None
        assert all(r.advance_amount == Decimal("33.33") for r in reservations)

    async def test_continues_existing_series(self, session, service, lotus):
        await seed_reservations(session, "LOT-00007")

        result = await book(service, booking(rooms=3))

        assert result.reservation_numbers == ["LOT-00008", "LOT-00009", "LOT-00010"]

    async def test_consecutive_bookings(self, service, lotus):
        first = await book(service, booking())
        second = await book(service, booking(rooms=2))

        assert first.reservation_numbers == ["LOT-00001"]
        assert second.reservation_numbers == ["LOT-00002", "LOT-00003"]

    async def test_location_lookup_failure_uses_fallback_scope(self, store, lotus):
        failing = ScriptedRecordStore(store, get_error=RecordStoreError("connection refused"))
        service = ReservationBookingService(failing)

        first = await book(service, booking())
        second = await book(service, booking())

        assert first.success and second.success
        assert first.reservation_numbers == ["LOC-00001"]
        assert second.reservation_numbers == ["LOC-00002"]

    async def test_unknown_location_is_rejected_by_store(self, session, service):
        result = await book(service, booking(), location_id="L2")

        assert not result.success
        assert result.reservation_numbers == ["LOC-00001"]
        assert result.error is not None
        assert result.error.kind is StoreErrorKind.OTHER
        assert await count_reservations(session) == 0

    async def test_rooms_are_created_in_number_order(self, session, service, lotus):
        result = await book(service, booking(rooms=3))

        reservations = await stored_reservations(session)
        created = [r.created_at for r in reservations]
        assert [r.reservation_number for r in reservations] == result.reservation_numbers
        assert created == sorted(created)
        assert len(set(created)) == 3

    async def test_number_taken_by_another_writer_is_retried_with_next_number(self, session, store, lotus):
        # LOT-00008 exists but is not the most recent reservation
        await seed_reservations(session, "LOT-00008", "LOT-00007")
        recording = ScriptedRecordStore(store)
        service = ReservationBookingService(recording)

        result = await book(service, booking())

        assert result.success
        assert result.reservation_numbers == ["LOT-00009"]
        assert recording.insert_attempts == [["LOT-00008"], ["LOT-00009"]]

    async def test_block_retry_does_not_overlap_first_block(self, session, store, lotus):
        await seed_reservations(session, "LOT-00009", "LOT-00007")
        recording = ScriptedRecordStore(store)
        service = ReservationBookingService(recording)

        result = await book(service, booking(rooms=3))

        assert result.success
        assert recording.insert_attempts == [
            ["LOT-00008", "LOT-00009", "LOT-00010"],
            ["LOT-00011", "LOT-00012", "LOT-00013"],
        ]
        assert await count_reservations(session) == 5

    async def test_allocation_failure_uses_fallback_numbers(self, session, store, lotus):
        failing = ScriptedRecordStore(store, find_error=RecordStoreError("statement timeout"))
        service = ReservationBookingService(failing)

        result = await book(service, booking(rooms=2))

        assert result.success
        assert len(set(result.reservation_numbers)) == 2
        assert all(FALLBACK_NUMBER.fullmatch(n) for n in result.reservation_numbers)
        assert await count_reservations(session) == 2

    async def test_unexpected_allocator_error_uses_fallback_numbers(self, store, lotus):
        class BrokenAllocator(ReservationNumberAllocator):
            async def allocate_block(self, tenant_id, location_id, count=1):
                raise RuntimeError("boom")

        service = ReservationBookingService(store, BrokenAllocator(store))

        result = await book(service, booking())

        assert result.success
        assert FALLBACK_NUMBER.fullmatch(result.reservation_numbers[0])

    @pytest.mark.parametrize(
        "request_factory, message",
        [
            (lambda: booking(guest_name="   "), "Guest name is required"),
            (lambda: booking(rooms=0), "at least one room"),
            (
                lambda: booking().model_copy(
                    update={"rooms": [booking().rooms[0].model_copy(update={"room_id": ""})]}
                ),
                "select a room",
            ),
            (
                lambda: booking().model_copy(
                    update={"rooms": [booking().rooms[0].model_copy(update={"check_out_date": date(2026, 11, 2)})]}
                ),
                "Check-out date",
            ),
        ],
    )
    async def test_rejects_invalid_requests(self, session, service, request_factory, message):
        with pytest.raises(BookingValidationError, match=message):
            await book(service, request_factory())
        assert await count_reservations(session) == 0

    async def test_requires_creating_profile(self, service):
        with pytest.raises(BookingValidationError, match="Missing required information"):
            await service.book(booking(), tenant_id="T1", location_id="L1", created_by="")


class TestCreateReservations:
    async def test_rejects_empty_batch(self, service):
        with pytest.raises(ValueError):
            await service.create_reservations([])

    async def test_retries_exactly_once_after_conflict(self, session, store, lotus):
        scripted = ScriptedRecordStore(store, insert_errors=[UniqueViolationError("duplicate key")])
        service = ReservationBookingService(scripted)

        result = await service.create_reservations([make_reservation("LOT-00004"), make_reservation("LOT-00005")])

        assert result.success
        assert scripted.insert_attempts == [["LOT-00004", "LOT-00005"], ["LOT-00006", "LOT-00007"]]
        assert [r.reservation_number for r in await stored_reservations(session)] == ["LOT-00006", "LOT-00007"]

    async def test_second_conflict_is_reported(self, session, store):
        scripted = ScriptedRecordStore(
            store,
            insert_errors=[UniqueViolationError("duplicate key"), UniqueViolationError("duplicate key")],
        )
        service = ReservationBookingService(scripted)

        result = await service.create_reservations([make_reservation("LOT-00004")])

        assert not result.success
        assert isinstance(result.error, UniqueViolationError)
        assert len(scripted.insert_attempts) == 2
        assert await count_reservations(session) == 0

    async def test_other_error_is_not_retried(self, session, store, lotus):
        recording = ScriptedRecordStore(store)
        service = ReservationBookingService(recording)

        result = await service.create_reservations([make_reservation("LOT-00001", guest_name=None)])

        assert not result.success
        assert result.error is not None
        assert result.error.kind is StoreErrorKind.OTHER
        assert len(recording.insert_attempts) == 1
        assert await count_reservations(session) == 0

    async def test_retry_failing_for_other_reason_is_reported(self, session, store):
        scripted = ScriptedRecordStore(
            store,
            insert_errors=[UniqueViolationError("duplicate key"), RecordStoreError("connection reset")],
        )
        service = ReservationBookingService(scripted)

        result = await service.create_reservations([make_reservation("LOT-00001")])

        assert not result.success
        assert result.error is not None
        assert result.error.kind is StoreErrorKind.OTHER
        assert await count_reservations(session) == 0

    async def test_fallback_numbers_are_redrawn_on_conflict(self, store, lotus):
        scripted = ScriptedRecordStore(store, insert_errors=[UniqueViolationError("duplicate key")])
        service = ReservationBookingService(scripted)

        result = await service.create_reservations([make_reservation("RES1760000000000-ab1c2")])

        assert result.success
        first, second = scripted.insert_attempts
        assert first == ["RES1760000000000-ab1c2"]
        assert FALLBACK_NUMBER.fullmatch(second[0])
        assert second != first

    async def test_concurrent_submissions_with_same_numbers(self, session, store, lotus):
        allocator = ReservationNumberAllocator(store)
        service = ReservationBookingService(store, allocator)
        await seed_reservations(session, "LOT-00007")

        # Both submissions read the same latest number before either inserts
        first_block = await allocator.allocate_block("T1", "L1", 1)
        second_block = await allocator.allocate_block("T1", "L1", 1)
        assert first_block.numbers == second_block.numbers == ["LOT-00008"]

        first = await service.create_reservations([make_reservation(first_block.numbers[0])])
        second = await service.create_reservations([make_reservation(second_block.numbers[0], room_id="room-102")])

        assert first.success and second.success
        assert first.reservation_numbers == ["LOT-00008"]
        assert second.reservation_numbers == ["LOT-00009"]
