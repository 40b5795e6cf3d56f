# services/reservation-service/src/apps/core/services/cancellation_service.py
"""
Cancellation Service

Applies cancellation decisions: single reservations, whole series from a
given instance, and the revert of a reschedule when its replacement is
cancelled. Every multi-row change commits atomically or not at all.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Tuple

from django.utils import timezone

from apps.core import policy
from apps.core.events import (
    EventType,
    NotificationSink,
    notification_sink,
    publish_cancellation,
)
from apps.core.models import Reservation
from apps.core.repositories import ReservationRepository

from . import ReservationNotFoundError
from .cancellation_policy import Decision, Outcome, PenaltyRules, decide_single, fold
from .conflict_service import CandidateSlot, ConflictService
from .timeslots import to_datetime

logger = logging.getLogger(__name__)

OUTCOME_EVENTS = {
    Outcome.PENALIZED: EventType.RESERVATION_PENALIZED,
    Outcome.CANCELLED: EventType.RESERVATION_CANCELLED,
    Outcome.RESCHEDULE_REVERTED: EventType.RESERVATION_RESCHEDULE_REVERTED,
    Outcome.SERIES_CANCELLED_WITH_PENALTY: EventType.SERIES_CANCELLED,
    Outcome.SERIES_CANCELLED: EventType.SERIES_CANCELLED,
}


@dataclass
class CancellationResult:
    """Outcome tag plus the rows it mutated, in mutation order."""
    outcome: Outcome
    reservations: List[Reservation] = field(default_factory=list)

    @property
    def tag(self) -> str:
        return self.outcome.value

    @property
    def copy(self) -> Tuple[str, str]:
        from apps.core.messages import for_outcome
        return for_outcome(self.outcome)


class CancellationService:
    """
    Cancellation / penalty state machine.

    ``clock`` returns the current aware datetime; tests pin it.
    """

    def __init__(
        self,
        repository: ReservationRepository = None,
        notifier: NotificationSink = None,
        clock=None,
        rules: PenaltyRules = None,
        conflict_service: ConflictService = None,
    ):
        self.repository = repository or ReservationRepository()
        self.conflict_service = conflict_service or ConflictService(self.repository)
        self.notifier = notifier or notification_sink
        self.clock = clock or timezone.now
        self.rules = rules or PenaltyRules.from_policy()

    # ==========================================================================
    # Single
    # ==========================================================================

    def cancel_single(
        self,
        reservation_id: uuid.UUID,
        requesting_user_id,
        role: str,
    ) -> CancellationResult:
        """Cancel one reservation; penalize, cancel free or revert a reschedule."""
        with self.repository.unit_of_work():
            reservation = self.repository.find_for_update(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(f"Reserva {reservation_id} no encontrada.")
            policy.ensure_can_manage(reservation.owner_id, requesting_user_id, role)

            now = self.clock()
            decision = decide_single(
                reservation, now, self.rules, self._sources_for([reservation])
            )
            result = self._apply(decision)

        logger.info(
            f"Reservation {reservation_id} cancelled by {requesting_user_id}: {result.tag}"
        )
        self._notify(reservation.owner_id, result)
        return result

    # ==========================================================================
    # Series
    # ==========================================================================

    def cancel_series(
        self,
        recurrence_id: uuid.UUID,
        requesting_user_id,
        role: str,
        from_start: datetime,
        series_owner_id=None,
    ) -> CancellationResult:
        """Cancel every Active instance of a series starting at or after ``from_start``."""
        from_start = to_datetime(from_start)

        with self.repository.unit_of_work():
            series = self.repository.find_series(recurrence_id, for_update=True)
            if not series:
                raise ReservationNotFoundError(f"Serie {recurrence_id} no encontrada.")
            owner_id = series[0].owner_id
            if series_owner_id is not None and str(series_owner_id) != str(owner_id):
                raise ReservationNotFoundError(f"Serie {recurrence_id} no encontrada.")
            policy.ensure_can_manage(owner_id, requesting_user_id, role)

            instances = self.repository.find_series_instances(
                recurrence_id, from_start, for_update=True
            )
            if not instances:
                logger.info(f"Series {recurrence_id}: no future bookings to cancel")
                return CancellationResult(Outcome.NO_FUTURE_BOOKINGS)

            now = self.clock()
            decision = fold(instances, now, self.rules, self._sources_for(instances))
            result = self._apply(decision)

        logger.info(
            f"Series {recurrence_id} cancelled by {requesting_user_id} from {from_start}: "
            f"{result.tag}, {len(result.reservations)} rows"
        )
        self._notify(owner_id, result)
        return result

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _sources_for(self, reservations: List[Reservation]) -> dict:
        """
        Locked reschedule sources that can take their slot back.

        A source whose slot was booked by someone else while it sat penalized
        is left out, so its replacement is cancelled under the normal rules.
        """
        cancelling = [r.id for r in reservations]
        source_ids = {r.reschedule_source_id for r in reservations if r.reschedule_source_id}
        sources = {}
        for source_id in source_ids:
            source = self.repository.find_for_update(source_id)
            if source is None:
                logger.warning(f"Reschedule source {source_id} missing; normal cancellation applies")
                continue
            report = self.conflict_service.find_conflicts(
                [CandidateSlot.from_reservation(source)], exclude_ids=cancelling
            )
            if report:
                logger.warning(
                    f"Reschedule source {source_id} slot taken by "
                    f"{len(report.all_conflicts)} reservations; normal cancellation applies"
                )
                continue
            sources[source_id] = source
        return sources

    def _apply(self, decision: Decision) -> CancellationResult:
        saved = self.repository.update_many(
            [(change.reservation, change.values) for change in decision.changes]
        )
        return CancellationResult(decision.outcome, saved)

    def _notify(self, owner_id, result: CancellationResult):
        event_kind = OUTCOME_EVENTS.get(result.outcome)
        if event_kind:
            publish_cancellation(self.notifier, owner_id, event_kind, result)
