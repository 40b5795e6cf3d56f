# services/reservation-service/src/apps/core/services/booking_service.py
"""
Booking Service

Creates one-off bookings, weekly series and reschedule replacements for
penalized reservations.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from django.utils import timezone

from apps.core import policy
from apps.core.events import NotificationSink, notification_sink, publish_reservations_created
from apps.core.models import Consultorio, Reservation
from apps.core.repositories import ReservationRepository

from . import (
    AlreadyRescheduledError,
    InvalidIntervalError,
    RescheduleWindowExpiredError,
    ReservationNotFoundError,
    ReservationStateError,
)
from .conflict_service import CandidateSlot, ConflictReport, ConflictService
from .recurrence_service import generate_series
from .timeslots import validate_interval

logger = logging.getLogger(__name__)


@dataclass
class BookingSlot:
    """Requested room and time; the unit the calendar selection produces."""
    consultorio_id: uuid.UUID
    start: datetime
    end: datetime


class BookingService:
    """
    Service for creating reservations.

    Handles:
    - Slot validation
    - Series expansion
    - Conflict detection (accessory reported before room)
    - Reschedule of penalized reservations
    """

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

    # ==========================================================================
    # Create
    # ==========================================================================

    def create_booking(
        self,
        owner_id: uuid.UUID,
        role: str,
        slots: Sequence[BookingSlot],
        kind: str = Reservation.Kind.ONE_OFF,
        uses_shared_accessory: bool = False,
        title: str = '',
        horizon_months: Optional[int] = None,
        reschedule_source_id: Optional[uuid.UUID] = None,
    ) -> List[Reservation]:
        """Validate, expand, check and persist all-or-nothing."""
        if not slots:
            raise InvalidIntervalError("Selecciona al menos un horario.")
        if kind not in Reservation.Kind.values:
            raise InvalidIntervalError(f"Tipo de reserva inválido: {kind}")
        if horizon_months is None:
            horizon_months = policy.get('DEFAULT_HORIZON_MONTHS')

        instances = self.build_instances(
            owner_id, slots, kind, uses_shared_accessory, title, horizon_months
        )

        source = None
        with self.repository.unit_of_work():
            if reschedule_source_id is not None:
                source = self._claim_reschedule_source(reschedule_source_id, owner_id, role)
                instances[0].reschedule_source_id = source.id

            self.conflict_service.ensure_free(
                [CandidateSlot.from_reservation(r) for r in instances]
            )
            created = self.repository.insert_many(instances)

        if source is not None:
            logger.info(
                f"Reservation {source.id} rescheduled by {owner_id}: {len(created)} new reservations"
            )
        else:
            logger.info(f"Created {len(created)} {kind} reservations for {owner_id}")

        publish_reservations_created(self.notifier, created, source=source)
        return created

    def build_instances(
        self,
        owner_id: uuid.UUID,
        slots: Sequence[BookingSlot],
        kind: str,
        uses_shared_accessory: bool,
        title: str,
        horizon_months: int,
    ) -> List[Reservation]:
        """Unsaved reservations, earliest first; each recurring slot gets its own series."""
        min_minutes = policy.get('MIN_DURATION_MINUTES')
        consultorios = self._consultorios({s.consultorio_id for s in slots})

        instances = []
        for slot in slots:
            start, end = validate_interval(slot.start, slot.end, min_minutes)
            base = Reservation(
                consultorio=consultorios[str(slot.consultorio_id)],
                owner_id=owner_id,
                start_time=start,
                end_time=end,
                kind=kind,
                uses_shared_accessory=uses_shared_accessory,
                title=title or '',
                status=Reservation.Status.ACTIVE,
            )
            if kind == Reservation.Kind.RECURRING:
                instances.extend(generate_series(base, horizon_months))
            else:
                instances.append(base)

        return sorted(instances, key=lambda r: r.start_time)

    def check_conflicts(self, slots: Sequence[BookingSlot], uses_shared_accessory: bool = False) -> ConflictReport:
        """Advisory check for the booking dialog."""
        candidates = []
        for slot in slots:
            start, end = validate_interval(slot.start, slot.end, policy.get('MIN_DURATION_MINUTES'))
            candidates.append(CandidateSlot(slot.consultorio_id, start, end, uses_shared_accessory))
        return self.conflict_service.find_conflicts(candidates)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _claim_reschedule_source(self, source_id, owner_id, role) -> Reservation:
        """Lock the penalized source and mark it rescheduled."""
        source = self.repository.find_for_update(source_id)
        if source is None:
            raise ReservationNotFoundError(f"Reserva {source_id} no encontrada.")
        policy.ensure_can_manage(source.owner_id, owner_id, role)

        if source.status != Reservation.Status.CANCELLED_WITH_PENALTY:
            raise ReservationStateError("Solo se pueden reagendar reservas penalizadas.")
        if source.was_rescheduled:
            raise AlreadyRescheduledError("Esta reserva ya fue reagendada.")
        if source.reschedule_deadline is None or self.clock() > source.reschedule_deadline:
            raise RescheduleWindowExpiredError("El plazo para reagendar esta reserva venció.")

        self.repository.update_many([(source, {'was_rescheduled': True})])
        return source

    @staticmethod
    def _consultorios(ids) -> dict:
        found = {
            str(c.id): c
            for c in Consultorio.objects.filter(pk__in=list(ids), is_active=True)
        }
        missing = [str(i) for i in ids if str(i) not in found]
        if missing:
            raise ReservationNotFoundError(f"Consultorio no encontrado: {', '.join(missing)}")
        return found
