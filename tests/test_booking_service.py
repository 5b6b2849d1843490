"""
Kadzai Backend — Booking Service Unit Tests
============================================

What we test:
    ✅ Payment check matches either reference and returns only contact fields
    ✅ Booking creation: totals, seat marking, reference handling
    ✅ Creation rejects reused payment refs, bad trips, duplicate/taken seats
    ✅ Lookup falls back from payment reference to booking reference
    ✅ Admin list filters, update and delete (seat release, completed guard)
    ✅ Passenger edits move seat reservations and reject taken/unknown seats
    ✅ A payment-reference race on update stays a 400
"""

import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError

from kadzai.exceptions import ConflictError, NotFoundError, ValidationError
from kadzai.models.booking import Booking, Passenger
from kadzai.schemas.booking import BookingCreate, BookingUpdate
from kadzai.services.booking_service import BookingService, generate_reference


def _booking(trip=None, **overrides) -> Booking:
    now = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
    fields = dict(
        reference="TE1A2B3C4D",
        payment_reference="PSK_123",
        trip_id=trip.id if trip else None,
        bus_id=trip.bus_id if trip else None,
        origin="Lagos",
        destination="Abuja",
        date="2025-03-07",
        time="08:00",
        operator="Kadzai Express",
        email="ada@example.com",
        phone="+2348012345678",
        status="confirmed",
        total_amount=30000.0,
        booking_date=now,
        created_at=now,
    )
    fields.update(overrides)
    booking = Booking(**fields)
    booking.passengers = [
        Passenger(id=uuid.uuid4(), name="Ada Obi", seat="1A", age=30, gender="female"),
        Passenger(id=uuid.uuid4(), name="Tunde Obi", seat="1B", age=32, gender="male"),
    ]
    if trip is not None:
        booking.trip = trip
    return booking


def _create_payload(trip_id, seats=("1A", "1B"), **overrides) -> BookingCreate:
    data = dict(
        trip_id=trip_id,
        email="ada@example.com",
        phone="+2348012345678",
        passengers=[
            {"name": f"Passenger {seat}", "seat": seat, "age": 30, "gender": "female"}
            for seat in seats
        ],
    )
    data.update(overrides)
    return BookingCreate(**data)


def test_generate_reference_format():
    reference = generate_reference()
    assert reference.startswith("TE")
    assert len(reference) == 10
    assert reference[2:] == reference[2:].upper()


class TestCheckPayment:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_requires_a_reference(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.check_payment(mock_db_session)
        assert exc_info.value.message == "Reference or paymentReference is required"

    @pytest.mark.asyncio
    async def test_existing_booking(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=_booking())

        result = await self.service.check_payment(mock_db_session, payment_reference="PSK_123")

        assert result.exists is True
        assert result.booking.reference == "TE1A2B3C4D"
        assert result.booking.email == "ada@example.com"
        dumped = result.model_dump(by_alias=True)
        assert "passengers" not in dumped["booking"]

    @pytest.mark.asyncio
    async def test_no_booking(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        result = await self.service.check_payment(mock_db_session, reference="TE00000000")

        assert result.exists is False
        assert result.booking is None


class TestGetBooking:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_found_by_payment_reference(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.return_value = make_result(scalar=_booking(sample_trip))

        result = await self.service.get_booking(mock_db_session, "PSK_123")

        assert result.reference == "TE1A2B3C4D"
        assert result.trip.id == sample_trip.id
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_falls_back_to_booking_reference(self, mock_db_session, make_result):
        mock_db_session.execute.side_effect = [
            make_result(scalar=None),
            make_result(scalar=_booking()),
        ]

        result = await self.service.get_booking(mock_db_session, "TE1A2B3C4D")

        assert result.reference == "TE1A2B3C4D"
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_booking(mock_db_session, "missing")
        assert exc_info.value.message == "Booking not found"


class TestCreateBooking:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_success_marks_seats_and_totals(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.side_effect = [
            make_result(scalar=None),         # payment reference unused
            make_result(scalar=sample_trip),  # trip lookup
        ]
        payload = _create_payload(sample_trip.id, payment_reference="PSK_999")

        result = await self.service.create_booking(mock_db_session, payload)

        assert result.total_amount == 30000.0
        assert result.status == "confirmed"
        assert result.payment_reference == "PSK_999"
        assert result.reference.startswith("TE")
        assert result.origin == "Lagos"
        assert result.date == "2025-03-07"
        assert result.operator == "Kadzai Express"
        assert [p.seat for p in result.passengers] == ["1A", "1B"]

        seats = {s.number: s.is_available for s in sample_trip.bus.seats}
        assert seats == {"1A": False, "1B": False, "2A": True, "2B": True}
        mock_db_session.add.assert_called_once()
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_supplied_reference_is_kept(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.side_effect = [
            make_result(scalar=None),         # payment reference unused
            make_result(scalar=None),         # booking reference unused
            make_result(scalar=sample_trip),
        ]
        payload = _create_payload(
            sample_trip.id, seats=("2A",), payment_reference="PSK_1", reference="TEABCDEF12"
        )

        result = await self.service.create_booking(mock_db_session, payload)

        assert result.reference == "TEABCDEF12"
        assert result.total_amount == 15000.0

    @pytest.mark.asyncio
    async def test_payment_reference_already_used(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.return_value = make_result(scalar="TE1A2B3C4D")
        payload = _create_payload(sample_trip.id, payment_reference="PSK_123")

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_booking(mock_db_session, payload)
        assert exc_info.value.message == "Payment reference already used"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_booking_reference_already_exists(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.return_value = make_result(scalar=_booking())
        payload = _create_payload(sample_trip.id, reference="TE1A2B3C4D")

        with pytest.raises(ConflictError):
            await self.service.create_booking(mock_db_session, payload)

    @pytest.mark.asyncio
    async def test_unknown_trip(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_booking(mock_db_session, _create_payload(uuid.uuid4()))
        assert exc_info.value.message == "Invalid or unavailable trip"

    @pytest.mark.asyncio
    async def test_unavailable_trip(self, mock_db_session, make_result, sample_trip):
        sample_trip.is_available = False
        mock_db_session.execute.return_value = make_result(scalar=sample_trip)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_booking(mock_db_session, _create_payload(sample_trip.id))
        assert exc_info.value.message == "Invalid or unavailable trip"

    @pytest.mark.asyncio
    async def test_duplicate_seats(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.return_value = make_result(scalar=sample_trip)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_booking(
                mock_db_session, _create_payload(sample_trip.id, seats=("1A", "1A"))
            )
        assert exc_info.value.message == "Duplicate seat selection"

    @pytest.mark.asyncio
    async def test_taken_seat(self, mock_db_session, make_result, sample_trip):
        sample_trip.bus.seats[1].is_available = False  # 1B
        mock_db_session.execute.return_value = make_result(scalar=sample_trip)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_booking(mock_db_session, _create_payload(sample_trip.id))
        assert exc_info.value.message == "Seat 1B is not available"
        # nothing was marked before the failure surfaced
        assert sample_trip.bus.seats[0].is_available is True

    @pytest.mark.asyncio
    async def test_unknown_seat(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.return_value = make_result(scalar=sample_trip)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_booking(
                mock_db_session, _create_payload(sample_trip.id, seats=("9Z",))
            )
        assert exc_info.value.message == "Seat 9Z is not available"

    @pytest.mark.asyncio
    async def test_insert_race_becomes_conflict(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.return_value = make_result(scalar=sample_trip)
        mock_db_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(ConflictError):
            await self.service.create_booking(mock_db_session, _create_payload(sample_trip.id))
        mock_db_session.rollback.assert_awaited_once()


class TestListBookings:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_list_with_total(self, mock_db_session, make_result):
        mock_db_session.execute.side_effect = [
            make_result(rows=[_booking(), _booking(reference="TEFFFFFFFF", payment_reference=None)]),
            make_result(count=7),
        ]

        result = await self.service.list_bookings(mock_db_session, limit=2, offset=0)

        assert result.total == 7
        assert [b.reference for b in result.data] == ["TE1A2B3C4D", "TEFFFFFFFF"]

    @pytest.mark.asyncio
    async def test_invalid_email_filter(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.list_bookings(mock_db_session, email="not-an-email")
        assert exc_info.value.message == "Invalid email format"

    @pytest.mark.asyncio
    async def test_invalid_status_filter(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.list_bookings(mock_db_session, status="pending")


class TestUpdateAndDelete:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_update_status(self, mock_db_session, make_result):
        booking = _booking()
        mock_db_session.execute.return_value = make_result(scalar=booking)

        result = await self.service.update_booking(
            mock_db_session,
            "TE1A2B3C4D",
            BookingUpdate(status="cancelled"),
            modified_by="admin@kadzai.com",
        )

        assert result.status == "cancelled"
        assert booking.modified_by == "admin@kadzai.com"
        assert booking.email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_update_rejects_taken_payment_reference(self, mock_db_session, make_result):
        mock_db_session.execute.side_effect = [
            make_result(scalar=_booking()),
            make_result(scalar="TEOTHER000"),
        ]

        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_booking(
                mock_db_session, "TE1A2B3C4D", BookingUpdate(payment_reference="PSK_OTHER")
            )
        assert exc_info.value.message == "Payment reference already used"

    @pytest.mark.asyncio
    async def test_update_missing_booking(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await self.service.update_booking(
                mock_db_session, "missing", BookingUpdate(status="cancelled")
            )

    @pytest.mark.asyncio
    async def test_delete_releases_seats(self, mock_db_session, make_result, sample_trip):
        booking = _booking(sample_trip)
        mock_db_session.execute.side_effect = [
            make_result(scalar=booking),
            make_result(),  # seat release UPDATE
        ]

        await self.service.delete_booking(mock_db_session, "TE1A2B3C4D")

        assert mock_db_session.execute.await_count == 2
        mock_db_session.delete.assert_awaited_once_with(booking)
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_completed_booking_cannot_be_deleted(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalar=_booking(status="completed"))

        with pytest.raises(ConflictError):
            await self.service.delete_booking(mock_db_session, "TE1A2B3C4D")
        mock_db_session.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_payment_reference_race(self, mock_db_session, make_result):
        mock_db_session.execute.side_effect = [
            make_result(scalar=_booking()),
            make_result(scalar=None),  # looked free at check time
        ]
        mock_db_session.flush.side_effect = IntegrityError("UPDATE", {}, Exception("duplicate key"))

        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_booking(
                mock_db_session, "TE1A2B3C4D", BookingUpdate(payment_reference="PSK_OTHER")
            )
        assert exc_info.value.message == "Payment reference already used"
        assert exc_info.value.status_code == 400
        mock_db_session.rollback.assert_awaited_once()


class TestPassengerEdits:

    def setup_method(self):
        self.service = BookingService()

    @pytest.mark.asyncio
    async def test_moves_seat_and_keeps_passenger_identity(self, mock_db_session, make_result, sample_trip):
        booking = _booking(sample_trip)
        ada_id = booking.passengers[0].id
        seat_2a = sample_trip.bus.seats[2]
        mock_db_session.execute.side_effect = [
            make_result(scalar=booking),
            make_result(rows=[seat_2a]),  # newly requested seats
            make_result(),                # release UPDATE
        ]
        payload = BookingUpdate(passengers=[
            {"id": str(ada_id), "name": "Ada Obi", "seat": "1A", "age": 31, "gender": "female"},
            {"name": "Chidi Obi", "seat": "2A", "age": 12, "gender": "male"},
        ])

        result = await self.service.update_booking(mock_db_session, "TE1A2B3C4D", payload)

        assert [p.seat for p in result.passengers] == ["1A", "2A"]
        assert result.passengers[0].id == ada_id
        assert result.passengers[0].age == 31
        assert seat_2a.is_available is False
        assert mock_db_session.execute.await_count == 3

    @pytest.mark.asyncio
    async def test_rejects_taken_seat(self, mock_db_session, make_result, sample_trip):
        booking = _booking(sample_trip)
        seat_2a = sample_trip.bus.seats[2]
        seat_2a.is_available = False
        mock_db_session.execute.side_effect = [
            make_result(scalar=booking),
            make_result(rows=[seat_2a]),
        ]
        payload = BookingUpdate(passengers=[
            {"name": "Ada Obi", "seat": "2A", "age": 30, "gender": "female"},
        ])

        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_booking(mock_db_session, "TE1A2B3C4D", payload)
        assert exc_info.value.message == "Seats 2A are not available"
        assert [p.seat for p in booking.passengers] == ["1A", "1B"]
        mock_db_session.flush.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_seat_not_on_bus(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.side_effect = [
            make_result(scalar=_booking(sample_trip)),
            make_result(rows=[]),
        ]
        payload = BookingUpdate(passengers=[
            {"name": "Ada Obi", "seat": "9Z", "age": 30, "gender": "female"},
        ])

        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_booking(mock_db_session, "TE1A2B3C4D", payload)
        assert exc_info.value.message == "Invalid seat numbers: 9Z"

    @pytest.mark.asyncio
    async def test_same_seats_need_no_seat_queries(self, mock_db_session, make_result, sample_trip):
        mock_db_session.execute.return_value = make_result(scalar=_booking(sample_trip))
        payload = BookingUpdate(passengers=[
            {"name": "Ada O.", "seat": "1B", "age": 30, "gender": "female"},
            {"name": "Tunde Obi", "seat": "1A", "age": 32, "gender": "male"},
        ])

        result = await self.service.update_booking(mock_db_session, "TE1A2B3C4D", payload)

        assert [p.name for p in result.passengers] == ["Ada O.", "Tunde Obi"]
        assert mock_db_session.execute.await_count == 1


class TestBookingSchemas:

    def test_update_rejects_empty_passenger_list(self):
        with pytest.raises(PydanticValidationError, match="Passengers must be a non-empty array"):
            BookingUpdate(passengers=[])

    def test_update_rejects_repeated_seat(self):
        with pytest.raises(PydanticValidationError, match="Duplicate seat numbers in booking"):
            BookingUpdate(passengers=[
                {"name": "A", "seat": "1A", "age": 30, "gender": "female"},
                {"name": "B", "seat": "1A", "age": 30, "gender": "male"},
            ])

    def test_create_has_no_upper_age_limit(self):
        payload = _create_payload(uuid.uuid4(), passengers=[
            {"name": "Old Timer", "seat": "1A", "age": 121, "gender": "male"},
        ])
        assert payload.passengers[0].age == 121

    def test_create_rejects_zero_age(self):
        with pytest.raises(PydanticValidationError):
            _create_payload(uuid.uuid4(), passengers=[
                {"name": "Baby", "seat": "1A", "age": 0, "gender": "male"},
            ])
