# services/reservation-service/src/apps/core/services/conflict_service.py
"""
Conflict Service

Advisory overlap check for candidate slots against the room and the shared
accessory (camilla). The database exclusion constraints are the final word.
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Sequence

from django.utils import timezone

from apps.core.models import Reservation
from apps.core.repositories import ReservationRepository

from . import ReservationConflictError
from .timeslots import format_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateSlot:
    """A slot about to be booked."""
    resource_id: uuid.UUID
    start: datetime
    end: datetime
    uses_shared_accessory: bool = False

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> 'CandidateSlot':
        return cls(
            resource_id=reservation.consultorio_id,
            start=reservation.start_time,
            end=reservation.end_time,
            uses_shared_accessory=reservation.uses_shared_accessory,
        )


@dataclass
class ConflictReport:
    """Room and accessory conflicts, kept apart so each can be reported."""
    resource_conflicts: List[Reservation] = field(default_factory=list)
    accessory_conflicts: List[Reservation] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.resource_conflicts or self.accessory_conflicts)

    @property
    def is_empty(self) -> bool:
        return not self

    @property
    def all_conflicts(self) -> List[Reservation]:
        seen = OrderedDict()
        for reservation in self.accessory_conflicts + self.resource_conflicts:
            seen.setdefault(reservation.id, reservation)
        return sorted(seen.values(), key=lambda r: r.start_time)

    def message(self) -> str:
        """User-facing description; the accessory is reported first."""
        if self.accessory_conflicts:
            slots = ', '.join(
                f"{format_slot(r.start_time)}-{timezone.localtime(r.end_time):%H:%M}"
                for r in self.accessory_conflicts
            )
            return f"La camilla está ocupada: {slots}"
        if self.resource_conflicts:
            slots = '\n'.join(
                f"{r.consultorio.name} - {format_slot(r.start_time)} - "
                f"{timezone.localtime(r.end_time):%H:%M}"
                for r in self.resource_conflicts
            )
            return f"Horarios ocupados detectados:\n{slots}"
        return ''


class ConflictService:
    """
    Finds existing Active/Used reservations overlapping candidate slots.

    One query per distinct room, plus one accessory query across all rooms
    when any candidate uses the camilla.
    """

    def __init__(self, repository: ReservationRepository = None):
        self.repository = repository or ReservationRepository()

    def find_conflicts(
        self,
        slots: Sequence[CandidateSlot],
        exclude_ids: Iterable[uuid.UUID] = (),
    ) -> ConflictReport:
        exclude_ids = list(exclude_ids)

        by_resource = OrderedDict()
        for slot in slots:
            by_resource.setdefault(slot.resource_id, []).append((slot.start, slot.end))

        resource_conflicts = []
        for resource_id, intervals in by_resource.items():
            resource_conflicts.extend(
                self.repository.find_overlapping(resource_id, intervals, exclude_ids)
            )

        accessory_intervals = [(s.start, s.end) for s in slots if s.uses_shared_accessory]
        accessory_conflicts = []
        if accessory_intervals:
            accessory_conflicts = self.repository.find_overlapping_accessory(
                accessory_intervals, exclude_ids
            )

        report = ConflictReport(
            resource_conflicts=self._unique(resource_conflicts),
            accessory_conflicts=self._unique(accessory_conflicts),
        )
        if report:
            logger.info(
                f"Conflicts found: {len(report.resource_conflicts)} room, "
                f"{len(report.accessory_conflicts)} accessory"
            )
        return report

    def ensure_free(
        self,
        slots: Sequence[CandidateSlot],
        exclude_ids: Iterable[uuid.UUID] = (),
    ) -> None:
        """Raise ReservationConflictError when any candidate overlaps."""
        report = self.find_conflicts(slots, exclude_ids)
        if report:
            raise ReservationConflictError(
                report.message(),
                resource_conflicts=report.resource_conflicts,
                accessory_conflicts=report.accessory_conflicts,
            )

    @staticmethod
    def _unique(reservations: List[Reservation]) -> List[Reservation]:
        seen = OrderedDict()
        for reservation in reservations:
            seen.setdefault(reservation.id, reservation)
        return sorted(seen.values(), key=lambda r: (r.start_time, str(r.id)))
