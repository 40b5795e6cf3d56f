# services/reservation-service/src/tests/unit/test_cancellation_policy.py
"""
Unit Tests for cancellation decisions

No database: decisions are computed on unsaved reservations.
"""

import uuid
from datetime import timedelta

import pytest

from apps.core.models import Reservation
from apps.core.services import ReservationStateError
from apps.core.services.cancellation_policy import (
    Outcome,
    PenaltyRules,
    decide_single,
    fold,
)
from tests.conftest import local

RULES = PenaltyRules()


def _reservation(start, **kwargs):
    defaults = {
        'consultorio_id': uuid.uuid4(),
        'owner_id': uuid.uuid4(),
        'start_time': start,
        'end_time': start + timedelta(hours=1),
        'status': Reservation.Status.ACTIVE,
    }
    defaults.update(kwargs)
    return Reservation(**defaults)


def _penalized_source(now):
    return _reservation(
        local(2025, 6, 9, 10, 0),
        status=Reservation.Status.CANCELLED_WITH_PENALTY,
        cancelled_at=now - timedelta(days=1),
        reschedule_deadline=now + timedelta(days=5),
        was_rescheduled=True,
    )


class TestDecideSingle:

    def test_inside_penalty_window_is_penalized(self):
        reservation = _reservation(local(2025, 6, 10, 10, 0))
        now = local(2025, 6, 9, 11, 0)

        decision = decide_single(reservation, now, RULES)

        assert decision.outcome == Outcome.PENALIZED
        [change] = decision.changes
        assert change.values['status'] == Reservation.Status.CANCELLED_WITH_PENALTY
        assert change.values['cancelled_at'] == now
        assert change.values['reschedule_deadline'] == local(2025, 6, 15, 11, 0)

    def test_outside_penalty_window_is_free(self):
        reservation = _reservation(local(2025, 6, 10, 10, 0))
        now = local(2025, 6, 9, 9, 0)

        decision = decide_single(reservation, now, RULES)

        assert decision.outcome == Outcome.CANCELLED
        [change] = decision.changes
        assert change.values['status'] == Reservation.Status.CANCELLED_FREE
        assert 'reschedule_deadline' not in change.values

    def test_exactly_24_hours_is_free(self):
        reservation = _reservation(local(2025, 6, 10, 10, 0))
        decision = decide_single(reservation, local(2025, 6, 9, 10, 0), RULES)
        assert decision.outcome == Outcome.CANCELLED

    def test_one_second_inside_window_is_penalized(self):
        reservation = _reservation(local(2025, 6, 10, 10, 0))
        decision = decide_single(reservation, local(2025, 6, 9, 10, 0, 1), RULES)
        assert decision.outcome == Outcome.PENALIZED

    def test_started_reservation_is_penalized(self):
        reservation = _reservation(local(2025, 6, 10, 10, 0))
        decision = decide_single(reservation, local(2025, 6, 10, 10, 30), RULES)
        assert decision.outcome == Outcome.PENALIZED

    @pytest.mark.parametrize('status', [
        Reservation.Status.CANCELLED_FREE,
        Reservation.Status.CANCELLED_WITH_PENALTY,
        Reservation.Status.USED,
        Reservation.Status.RESCHEDULED,
    ])
    def test_only_active_can_be_cancelled(self, status):
        reservation = _reservation(local(2025, 6, 10, 10, 0), status=status)
        with pytest.raises(ReservationStateError):
            decide_single(reservation, local(2025, 6, 1, 10, 0), RULES)

    def test_replacement_reverts_its_source(self):
        now = local(2025, 6, 10, 12, 0)
        source = _penalized_source(now)
        replacement = _reservation(local(2025, 6, 12, 10, 0), reschedule_source_id=source.id)

        decision = decide_single(replacement, now, RULES, {source.id: source})

        assert decision.outcome == Outcome.RESCHEDULE_REVERTED
        cancel, restore = decision.changes
        assert cancel.reservation is replacement
        assert cancel.values['status'] == Reservation.Status.CANCELLED_FREE
        assert restore.reservation is source
        assert restore.values == {
            'status': Reservation.Status.ACTIVE,
            'cancelled_at': None,
            'reschedule_deadline': None,
            'was_rescheduled': False,
        }

    def test_revert_ignores_penalty_window(self):
        now = local(2025, 6, 12, 9, 30)
        source = _penalized_source(now)
        replacement = _reservation(local(2025, 6, 12, 10, 0), reschedule_source_id=source.id)

        decision = decide_single(replacement, now, RULES, {source.id: source})

        assert decision.outcome == Outcome.RESCHEDULE_REVERTED

    def test_missing_source_falls_back_to_normal_rules(self):
        now = local(2025, 6, 12, 9, 30)
        replacement = _reservation(local(2025, 6, 12, 10, 0), reschedule_source_id=uuid.uuid4())

        decision = decide_single(replacement, now, RULES, {})

        assert decision.outcome == Outcome.PENALIZED

    def test_source_no_longer_penalized_falls_back(self):
        now = local(2025, 6, 1, 9, 0)
        source = _penalized_source(now)
        source.status = Reservation.Status.ACTIVE
        replacement = _reservation(local(2025, 6, 12, 10, 0), reschedule_source_id=source.id)

        decision = decide_single(replacement, now, RULES, {source.id: source})

        assert decision.outcome == Outcome.CANCELLED
        assert [c.reservation for c in decision.changes] == [replacement]

    def test_custom_rules(self):
        rules = PenaltyRules(penalty_window=timedelta(hours=48), grace_period=timedelta(days=2))
        reservation = _reservation(local(2025, 6, 10, 10, 0))
        now = local(2025, 6, 8, 12, 0)

        decision = decide_single(reservation, now, rules)

        assert decision.outcome == Outcome.PENALIZED
        assert decision.changes[0].values['reschedule_deadline'] == local(2025, 6, 10, 12, 0)


class TestFold:

    def _series(self, first_start, count):
        recurrence_id = uuid.uuid4()
        return [
            _reservation(first_start + timedelta(weeks=week), recurrence_id=recurrence_id)
            for week in range(count)
        ]

    def test_first_instance_late_penalizes_only_it(self):
        series = self._series(local(2025, 6, 10, 10, 0), 10)
        now = local(2025, 6, 10, 8, 0)

        decision = fold(series, now, RULES)

        assert decision.outcome == Outcome.SERIES_CANCELLED_WITH_PENALTY
        statuses = [c.values['status'] for c in decision.changes]
        assert len(statuses) == 10
        assert statuses.count(Reservation.Status.CANCELLED_WITH_PENALTY) == 1
        assert statuses.count(Reservation.Status.CANCELLED_FREE) == 9
        assert statuses[0] == Reservation.Status.CANCELLED_WITH_PENALTY

    def test_all_far_away_is_free(self):
        series = self._series(local(2025, 6, 10, 10, 0), 4)

        decision = fold(series, local(2025, 6, 1, 10, 0), RULES)

        assert decision.outcome == Outcome.SERIES_CANCELLED
        assert all(
            c.values['status'] == Reservation.Status.CANCELLED_FREE for c in decision.changes
        )

    def test_order_of_input_does_not_matter(self):
        series = self._series(local(2025, 6, 10, 10, 0), 5)
        now = local(2025, 6, 10, 8, 0)

        decision = fold(list(reversed(series)), now, RULES)

        assert decision.reservations[0] is series[0]
        assert decision.changes[0].values['status'] == Reservation.Status.CANCELLED_WITH_PENALTY

    def test_only_first_of_batch_may_be_penalized(self):
        # Two instances inside the window; only the earliest is charged
        series = [
            _reservation(local(2025, 6, 10, 10, 0)),
            _reservation(local(2025, 6, 10, 12, 0)),
        ]
        decision = fold(series, local(2025, 6, 10, 8, 0), RULES)

        assert [c.values['status'] for c in decision.changes] == [
            Reservation.Status.CANCELLED_WITH_PENALTY,
            Reservation.Status.CANCELLED_FREE,
        ]

    def test_empty_batch(self):
        decision = fold([], local(2025, 6, 1, 10, 0), RULES)
        assert decision.outcome == Outcome.NO_FUTURE_BOOKINGS
        assert decision.changes == []

    def test_replacement_inside_series_reverts_source(self):
        now = local(2025, 6, 10, 8, 0)
        source = _penalized_source(now)
        series = self._series(local(2025, 6, 10, 10, 0), 3)
        series[0].reschedule_source_id = source.id

        decision = fold(series, now, RULES, {source.id: source})

        assert decision.outcome == Outcome.SERIES_CANCELLED
        assert decision.reservations == [series[0], source, series[1], series[2]]
        assert decision.changes[1].values['status'] == Reservation.Status.ACTIVE

    def test_non_active_instance_aborts_the_batch(self):
        series = self._series(local(2025, 6, 10, 10, 0), 3)
        series[1].status = Reservation.Status.USED

        with pytest.raises(ReservationStateError):
            fold(series, local(2025, 6, 1, 10, 0), RULES)

    def test_fold_is_pure(self):
        series = self._series(local(2025, 6, 10, 10, 0), 3)
        fold(series, local(2025, 6, 10, 8, 0), RULES)
        assert all(r.status == Reservation.Status.ACTIVE for r in series)
        assert all(r.cancelled_at is None for r in series)
