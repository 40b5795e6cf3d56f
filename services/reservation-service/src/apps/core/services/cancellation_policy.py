# services/reservation-service/src/apps/core/services/cancellation_policy.py
"""
Cancellation decisions.

Pure functions: given reservations and the current instant they return the
field changes to apply and the outcome tag. Nothing here touches the
database.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from functools import reduce
from typing import Dict, List, Mapping, Optional, Sequence

from apps.core.models import Reservation

from . import ReservationStateError


class Outcome(str, enum.Enum):
    PENALIZED = 'PENALIZED'
    CANCELLED = 'CANCELLED'
    RESCHEDULE_REVERTED = 'RESCHEDULE_REVERTED'
    SERIES_CANCELLED_WITH_PENALTY = 'SERIES_CANCELLED_WITH_PENALTY'
    SERIES_CANCELLED = 'SERIES_CANCELLED'
    NO_FUTURE_BOOKINGS = 'NO_FUTURE_BOOKINGS'

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class ReservationChange:
    reservation: Reservation
    values: Dict


@dataclass
class Decision:
    outcome: Outcome
    changes: List[ReservationChange] = field(default_factory=list)

    @property
    def reservations(self) -> List[Reservation]:
        return [change.reservation for change in self.changes]


@dataclass(frozen=True)
class PenaltyRules:
    penalty_window: timedelta = timedelta(hours=24)
    grace_period: timedelta = timedelta(days=6)

    @classmethod
    def from_policy(cls) -> 'PenaltyRules':
        from apps.core import policy
        return cls(
            penalty_window=timedelta(hours=policy.get('PENALTY_WINDOW_HOURS')),
            grace_period=timedelta(days=policy.get('RESCHEDULE_GRACE_DAYS')),
        )

    def is_late(self, reservation: Reservation, now: datetime) -> bool:
        """Strictly inside the penalty window."""
        return reservation.start_time - now < self.penalty_window


# =============================================================================
# Changes
# =============================================================================

def penalize(reservation: Reservation, now: datetime, rules: PenaltyRules) -> ReservationChange:
    return ReservationChange(reservation, {
        'status': Reservation.Status.CANCELLED_WITH_PENALTY,
        'cancelled_at': now,
        'reschedule_deadline': now + rules.grace_period,
    })


def cancel_free(reservation: Reservation, now: datetime) -> ReservationChange:
    return ReservationChange(reservation, {
        'status': Reservation.Status.CANCELLED_FREE,
        'cancelled_at': now,
    })


def restore(source: Reservation) -> ReservationChange:
    """Undo a penalty: the source becomes bookable and billable again."""
    return ReservationChange(source, {
        'status': Reservation.Status.ACTIVE,
        'cancelled_at': None,
        'reschedule_deadline': None,
        'was_rescheduled': False,
    })


def revertible_source(
    reservation: Reservation,
    sources: Mapping,
) -> Optional[Reservation]:
    """Penalized source this replacement may hand its slot back to."""
    if reservation.reschedule_source_id is None:
        return None
    source = sources.get(reservation.reschedule_source_id)
    if source is None or source.status != Reservation.Status.CANCELLED_WITH_PENALTY:
        return None
    return source


def _ensure_active(reservation: Reservation):
    if reservation.status != Reservation.Status.ACTIVE:
        raise ReservationStateError(
            f"Solo se pueden cancelar reservas activas (estado actual: {reservation.status})."
        )


# =============================================================================
# Decisions
# =============================================================================

def decide_single(
    reservation: Reservation,
    now: datetime,
    rules: PenaltyRules = PenaltyRules(),
    sources: Mapping = None,
) -> Decision:
    """Cancel one Active reservation."""
    _ensure_active(reservation)

    source = revertible_source(reservation, sources or {})
    if source is not None:
        return Decision(Outcome.RESCHEDULE_REVERTED, [
            cancel_free(reservation, now),
            restore(source),
        ])

    if rules.is_late(reservation, now):
        return Decision(Outcome.PENALIZED, [penalize(reservation, now, rules)])

    return Decision(Outcome.CANCELLED, [cancel_free(reservation, now)])


@dataclass(frozen=True)
class _SeriesState:
    changes: tuple = ()
    penalized: bool = False
    first: bool = True


def cancel_one_in_series(now: datetime, rules: PenaltyRules, sources: Mapping):
    """Reducer step; only the first instance of the batch may be penalized."""

    def step(state: _SeriesState, instance: Reservation) -> _SeriesState:
        _ensure_active(instance)
        source = revertible_source(instance, sources)
        if source is not None:
            changes = (cancel_free(instance, now), restore(source))
            return _SeriesState(state.changes + changes, state.penalized, False)
        if state.first and rules.is_late(instance, now):
            return _SeriesState(state.changes + (penalize(instance, now, rules),), True, False)
        return _SeriesState(state.changes + (cancel_free(instance, now),), state.penalized, False)

    return step


def fold(
    instances: Sequence[Reservation],
    now: datetime,
    rules: PenaltyRules = PenaltyRules(),
    sources: Mapping = None,
) -> Decision:
    """Cancel a batch of series instances as one decision, earliest first."""
    ordered = sorted(instances, key=lambda r: r.start_time)
    if not ordered:
        return Decision(Outcome.NO_FUTURE_BOOKINGS)

    state = reduce(cancel_one_in_series(now, rules, sources or {}), ordered, _SeriesState())
    outcome = (
        Outcome.SERIES_CANCELLED_WITH_PENALTY if state.penalized
        else Outcome.SERIES_CANCELLED
    )
    return Decision(outcome, list(state.changes))
