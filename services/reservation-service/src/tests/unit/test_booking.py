# services/reservation-service/src/tests/unit/test_booking.py
"""
Unit Tests for BookingService
"""

import uuid
from datetime import date, timedelta

import pytest

from apps.core.models import Reservation
from apps.core.services import (
    AlreadyRescheduledError,
    BookingService,
    InvalidIntervalError,
    RescheduleWindowExpiredError,
    ReservationConflictError,
    ReservationForbiddenError,
    ReservationNotFoundError,
    ReservationStateError,
)
from apps.core.services.booking_service import BookingSlot
from apps.core.services.timeslots import local_date
from tests.conftest import FixedClock, local


@pytest.mark.django_db
class TestCreateBooking:

    def setup_method(self):
        self.clock = FixedClock(local(2025, 6, 1, 9, 0))

    def _service(self, sink):
        return BookingService(notifier=sink, clock=self.clock)

    def test_one_off(self, consultorio, owner_id, sink):
        created = self._service(sink).create_booking(
            owner_id, 'user',
            [BookingSlot(consultorio.id, local(2025, 6, 10, 10, 0), local(2025, 6, 10, 11, 0))],
            title='Sesión',
        )

        assert len(created) == 1
        reservation = Reservation.objects.get(pk=created[0].pk)
        assert reservation.kind == Reservation.Kind.ONE_OFF
        assert reservation.status == Reservation.Status.ACTIVE
        assert reservation.recurrence_id is None
        assert reservation.title == 'Sesión'
        assert sink.kinds == ['reservation.created']

    def test_several_slots_in_one_request(self, consultorio, create_consultorio, owner_id, sink):
        other = create_consultorio()
        created = self._service(sink).create_booking(
            owner_id, 'user',
            [
                BookingSlot(other.id, local(2025, 6, 10, 12, 0), local(2025, 6, 10, 13, 0)),
                BookingSlot(consultorio.id, local(2025, 6, 10, 10, 0), local(2025, 6, 10, 11, 0)),
            ],
        )

        assert [r.start_time for r in created] == [local(2025, 6, 10, 10, 0), local(2025, 6, 10, 12, 0)]
        assert Reservation.objects.count() == 2

    def test_weekly_series(self, consultorio, owner_id, sink):
        created = self._service(sink).create_booking(
            owner_id, 'user',
            [BookingSlot(consultorio.id, local(2025, 1, 7, 10, 0), local(2025, 1, 7, 11, 0))],
            kind=Reservation.Kind.RECURRING,
        )

        assert len(created) == 18
        assert len({r.recurrence_id for r in created}) == 1
        assert local_date(created[-1].start_time) == date(2025, 5, 6)
        assert Reservation.objects.filter(recurrence_end_date=date(2025, 5, 7)).count() == 18

    def test_each_recurring_slot_is_its_own_series(self, consultorio, owner_id, sink):
        created = self._service(sink).create_booking(
            owner_id, 'user',
            [
                BookingSlot(consultorio.id, local(2025, 6, 2, 10, 0), local(2025, 6, 2, 11, 0)),
                BookingSlot(consultorio.id, local(2025, 6, 4, 10, 0), local(2025, 6, 4, 11, 0)),
            ],
            kind=Reservation.Kind.RECURRING,
            horizon_months=1,
        )

        assert len({r.recurrence_id for r in created}) == 2

    def test_conflict_rolls_back_whole_request(self, consultorio, create_reservation, owner_id, other_owner_id, sink):
        create_reservation(start_time=local(2025, 6, 24, 10, 0), owner_id=other_owner_id)

        with pytest.raises(ReservationConflictError) as excinfo:
            self._service(sink).create_booking(
                owner_id, 'user',
                [BookingSlot(consultorio.id, local(2025, 6, 3, 10, 0), local(2025, 6, 3, 11, 0))],
                kind=Reservation.Kind.RECURRING,
                horizon_months=1,
            )

        assert len(excinfo.value.resource_conflicts) == 1
        assert Reservation.objects.filter(owner_id=owner_id).count() == 0
        assert sink.events == []

    def test_accessory_conflict_in_other_room(self, create_consultorio, create_reservation, owner_id, sink):
        other = create_consultorio()
        create_reservation(start_time=local(2025, 6, 10, 10, 0), uses_shared_accessory=True)

        with pytest.raises(ReservationConflictError) as excinfo:
            self._service(sink).create_booking(
                owner_id, 'user',
                [BookingSlot(other.id, local(2025, 6, 10, 10, 0), local(2025, 6, 10, 11, 0))],
                uses_shared_accessory=True,
            )

        assert str(excinfo.value).startswith('La camilla está ocupada')

    def test_back_to_back_is_allowed(self, consultorio, create_reservation, owner_id, sink):
        create_reservation(start_time=local(2025, 6, 10, 10, 0))

        created = self._service(sink).create_booking(
            owner_id, 'user',
            [BookingSlot(consultorio.id, local(2025, 6, 10, 11, 0), local(2025, 6, 10, 12, 0))],
        )

        assert len(created) == 1

    def test_short_slot(self, consultorio, owner_id, sink):
        with pytest.raises(InvalidIntervalError):
            self._service(sink).create_booking(
                owner_id, 'user',
                [BookingSlot(consultorio.id, local(2025, 6, 10, 10, 0), local(2025, 6, 10, 10, 30))],
            )

    def test_no_slots(self, owner_id, sink):
        with pytest.raises(InvalidIntervalError):
            self._service(sink).create_booking(owner_id, 'user', [])

    def test_unknown_kind(self, consultorio, owner_id, sink):
        with pytest.raises(InvalidIntervalError):
            self._service(sink).create_booking(
                owner_id, 'user',
                [BookingSlot(consultorio.id, local(2025, 6, 10, 10, 0), local(2025, 6, 10, 11, 0))],
                kind='Mensual',
            )

    def test_unknown_consultorio(self, owner_id, sink):
        with pytest.raises(ReservationNotFoundError):
            self._service(sink).create_booking(
                owner_id, 'user',
                [BookingSlot(uuid.uuid4(), local(2025, 6, 10, 10, 0), local(2025, 6, 10, 11, 0))],
            )

    def test_inactive_consultorio(self, create_consultorio, owner_id, sink):
        closed = create_consultorio(is_active=False)
        with pytest.raises(ReservationNotFoundError):
            self._service(sink).create_booking(
                owner_id, 'user',
                [BookingSlot(closed.id, local(2025, 6, 10, 10, 0), local(2025, 6, 10, 11, 0))],
            )


@pytest.mark.django_db
class TestReschedule:

    def setup_method(self):
        self.clock = FixedClock(local(2025, 6, 10, 12, 0))

    def _service(self, sink):
        return BookingService(notifier=sink, clock=self.clock)

    @pytest.fixture
    def penalized(self, create_reservation):
        return create_reservation(
            start_time=local(2025, 6, 10, 10, 0),
            status=Reservation.Status.CANCELLED_WITH_PENALTY,
            cancelled_at=local(2025, 6, 9, 11, 0),
            reschedule_deadline=local(2025, 6, 15, 11, 0),
        )

    def _slot(self, consultorio):
        return [BookingSlot(consultorio.id, local(2025, 6, 13, 10, 0), local(2025, 6, 13, 11, 0))]

    def test_reschedule_links_replacement(self, penalized, consultorio, owner_id, sink):
        created = self._service(sink).create_booking(
            owner_id, 'user', self._slot(consultorio), reschedule_source_id=penalized.id
        )

        penalized.refresh_from_db()
        replacement = Reservation.objects.get(pk=created[0].pk)
        assert replacement.reschedule_source_id == penalized.id
        assert penalized.was_rescheduled is True
        assert penalized.status == Reservation.Status.CANCELLED_WITH_PENALTY
        assert sink.kinds == ['reservation.rescheduled']

    def test_second_reschedule_is_rejected(self, penalized, consultorio, owner_id, sink):
        service = self._service(sink)
        service.create_booking(owner_id, 'user', self._slot(consultorio), reschedule_source_id=penalized.id)

        with pytest.raises(AlreadyRescheduledError):
            service.create_booking(
                owner_id, 'user',
                [BookingSlot(consultorio.id, local(2025, 6, 14, 10, 0), local(2025, 6, 14, 11, 0))],
                reschedule_source_id=penalized.id,
            )

    def test_window_expired(self, penalized, consultorio, owner_id, sink):
        self.clock.now = local(2025, 6, 15, 11, 0, 1)

        with pytest.raises(RescheduleWindowExpiredError):
            self._service(sink).create_booking(
                owner_id, 'user', self._slot(consultorio), reschedule_source_id=penalized.id
            )

        assert Reservation.objects.count() == 1

    def test_deadline_itself_is_allowed(self, penalized, consultorio, owner_id, sink):
        self.clock.now = local(2025, 6, 15, 11, 0)
        created = self._service(sink).create_booking(
            owner_id, 'user', self._slot(consultorio), reschedule_source_id=penalized.id
        )
        assert len(created) == 1

    def test_source_not_penalized(self, create_reservation, consultorio, owner_id, sink):
        active = create_reservation(start_time=local(2025, 6, 20, 10, 0))

        with pytest.raises(ReservationStateError):
            self._service(sink).create_booking(
                owner_id, 'user', self._slot(consultorio), reschedule_source_id=active.id
            )

    def test_source_of_other_member(self, penalized, consultorio, other_owner_id, sink):
        with pytest.raises(ReservationForbiddenError):
            self._service(sink).create_booking(
                other_owner_id, 'user', self._slot(consultorio), reschedule_source_id=penalized.id
            )

    def test_unknown_source(self, consultorio, owner_id, sink):
        with pytest.raises(ReservationNotFoundError):
            self._service(sink).create_booking(
                owner_id, 'user', self._slot(consultorio), reschedule_source_id=uuid.uuid4()
            )

    def test_conflict_keeps_source_claimable(self, penalized, consultorio, create_reservation, other_owner_id, owner_id, sink):
        create_reservation(start_time=local(2025, 6, 13, 10, 0), owner_id=other_owner_id)

        with pytest.raises(ReservationConflictError):
            self._service(sink).create_booking(
                owner_id, 'user', self._slot(consultorio), reschedule_source_id=penalized.id
            )

        penalized.refresh_from_db()
        assert penalized.was_rescheduled is False


@pytest.mark.django_db
class TestCheckConflicts:

    def test_advisory_check_does_not_write(self, consultorio, create_reservation, sink):
        create_reservation(start_time=local(2025, 6, 10, 10, 0))

        report = BookingService(notifier=sink).check_conflicts(
            [BookingSlot(consultorio.id, local(2025, 6, 10, 10, 0), local(2025, 6, 10, 11, 0))]
        )

        assert report
        assert Reservation.objects.count() == 1
        assert sink.events == []
