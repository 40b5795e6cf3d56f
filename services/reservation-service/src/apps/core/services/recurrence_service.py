# services/reservation-service/src/apps/core/services/recurrence_service.py
"""
Recurrence Service

Expands a booking into a weekly series bounded by a calendar-month horizon
and renews series that are about to end.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from django.utils import timezone

from apps.core import policy
from apps.core.events import NotificationSink, notification_sink, publish_series_renewed
from apps.core.models import Reservation
from apps.core.repositories import ReservationRepository

from . import RenewalConflictError, ReservationNotFoundError, ReservationStateError
from .conflict_service import CandidateSlot, ConflictService
from .timeslots import add_months, local_date, local_midnight, overlaps, shift_weeks

logger = logging.getLogger(__name__)


@dataclass
class RenewalResult:
    recurrence_id: uuid.UUID
    new_instances: List[Reservation]
    new_end_date: date

    @property
    def newly_created_count(self) -> int:
        return len(self.new_instances)


# =============================================================================
# Pure generation
# =============================================================================

def _instance(pattern: Reservation, start, duration: timedelta, recurrence_id, end_date) -> Reservation:
    return Reservation(
        consultorio_id=pattern.consultorio_id,
        owner_id=pattern.owner_id,
        start_time=start,
        end_time=start + duration,
        kind=Reservation.Kind.RECURRING,
        uses_shared_accessory=pattern.uses_shared_accessory,
        title=pattern.title,
        status=Reservation.Status.ACTIVE,
        recurrence_id=recurrence_id,
        recurrence_end_date=end_date,
    )


def _weekly(pattern: Reservation, first_week: int, end_date: date, recurrence_id) -> List[Reservation]:
    duration = pattern.end_time - pattern.start_time
    instances = []
    week = first_week
    start = shift_weeks(pattern.start_time, week)
    while local_date(start) < end_date:
        instances.append(_instance(pattern, start, duration, recurrence_id, end_date))
        week += 1
        start = shift_weeks(pattern.start_time, week)
    return instances


def generate_series(
    base: Reservation,
    horizon_months: int,
    recurrence_id: uuid.UUID = None,
) -> List[Reservation]:
    """
    Weekly instances from ``base.start_time`` up to (excluding) the series
    end date, which is the base's local date plus ``horizon_months``.

    Returned rows are unsaved.
    """
    recurrence_id = recurrence_id or uuid.uuid4()
    end_date = add_months(local_date(base.start_time), horizon_months)
    return _weekly(base, 0, end_date, recurrence_id)


def renew_series(
    pattern: Reservation,
    old_end_date: date,
    horizon_months: int,
) -> Tuple[List[Reservation], date]:
    """
    Continue a series past ``old_end_date``.

    The first new instance is the earliest cadence occurrence starting after
    local midnight of the old end date, so the day of the old end date is
    covered exactly once.
    """
    new_end_date = add_months(old_end_date, horizon_months)
    boundary = local_midnight(old_end_date)

    week = max(0, (old_end_date - local_date(pattern.start_time)).days // 7 - 1)
    while shift_weeks(pattern.start_time, week) <= boundary:
        week += 1

    instances = _weekly(pattern, week, new_end_date, pattern.recurrence_id)
    return instances, new_end_date


# =============================================================================
# Service
# =============================================================================

class RecurrenceService:
    """Series renewal and the expiring-series listing."""

    def __init__(
        self,
        repository: ReservationRepository = None,
        conflict_service: ConflictService = None,
        notifier: NotificationSink = None,
        clock=None,
    ):
        self.repository = repository or ReservationRepository()
        self.conflict_service = conflict_service or ConflictService(self.repository)
        self.notifier = notifier or notification_sink
        self.clock = clock or timezone.now

    def generate(self, base: Reservation, horizon_months: Optional[int] = None) -> List[Reservation]:
        if horizon_months is None:
            horizon_months = policy.get('DEFAULT_HORIZON_MONTHS')
        return generate_series(base, horizon_months)

    def renew(
        self,
        recurrence_id: uuid.UUID,
        requesting_user_id,
        role: str,
        horizon_months: Optional[int] = None,
    ) -> RenewalResult:
        """Append the next ``horizon_months`` of instances, all or nothing."""
        if horizon_months is None:
            horizon_months = policy.get('DEFAULT_HORIZON_MONTHS')

        with self.repository.unit_of_work():
            series = self.repository.find_series(recurrence_id, for_update=True)
            if not series:
                raise ReservationNotFoundError(f"Serie {recurrence_id} no encontrada.")

            owner_id = series[0].owner_id
            policy.ensure_can_manage(owner_id, requesting_user_id, role)

            active = [r for r in series if r.status == Reservation.Status.ACTIVE]
            if not active:
                raise ReservationStateError("La serie no tiene reservas activas para renovar.")

            old_end_date = max(r.recurrence_end_date for r in series)
            today = local_date(self.clock())
            window = policy.get('RENEWAL_WINDOW_DAYS')
            if (old_end_date - today).days > window:
                raise ReservationStateError(
                    f"Solo puedes renovar la serie cuando faltan {window} días o menos "
                    f"para su finalización."
                )

            pattern = active[-1]
            new_instances, new_end_date = renew_series(pattern, old_end_date, horizon_months)

            report = self.conflict_service.find_conflicts(
                [CandidateSlot.from_reservation(r) for r in new_instances]
            )
            if report:
                blocked = self._blocked_instances(new_instances, report)
                logger.info(
                    f"Renewal of series {recurrence_id} blocked by "
                    f"{len(report.all_conflicts)} reservations"
                )
                raise RenewalConflictError(
                    report.message(),
                    conflicting_instances=blocked,
                    resource_conflicts=report.resource_conflicts,
                    accessory_conflicts=report.accessory_conflicts,
                )

            created = self.repository.insert_many(new_instances)
            self.repository.set_series_end_date(recurrence_id, new_end_date)

        result = RenewalResult(recurrence_id, created, new_end_date)
        logger.info(
            f"Series {recurrence_id} renewed until {new_end_date}: "
            f"{result.newly_created_count} new reservations"
        )
        publish_series_renewed(self.notifier, owner_id, result)
        return result

    def expiring_series(self, within_days: Optional[int] = None) -> List[dict]:
        """Active series whose end date falls within the renewal window."""
        if within_days is None:
            within_days = policy.get('RENEWAL_WINDOW_DAYS')
        today = local_date(self.clock())
        return self.repository.series_ending_between(today, today + timedelta(days=within_days))

    @staticmethod
    def _blocked_instances(instances: List[Reservation], report) -> List[Reservation]:
        blocked = []
        for instance in instances:
            for existing in report.resource_conflicts:
                if existing.consultorio_id == instance.consultorio_id and overlaps(
                    instance.start_time, instance.end_time, existing.start_time, existing.end_time
                ):
                    blocked.append(instance)
                    break
            else:
                if instance.uses_shared_accessory and any(
                    overlaps(instance.start_time, instance.end_time, e.start_time, e.end_time)
                    for e in report.accessory_conflicts
                ):
                    blocked.append(instance)
        return blocked
