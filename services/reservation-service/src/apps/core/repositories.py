# services/reservation-service/src/apps/core/repositories.py
"""
Reservation Repository

Every read and write the booking core performs against the database. Writes
are all-or-nothing: a failed batch leaves no row behind.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from functools import reduce
from operator import or_
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Max, Q
from django.utils import timezone

from apps.core.models import Reservation

logger = logging.getLogger(__name__)

Interval = Tuple[datetime, datetime]


class ReservationRepository:
    """ORM-backed persistence for reservations."""

    def __init__(self, queryset=None):
        self._queryset = queryset

    @property
    def objects(self):
        if self._queryset is not None:
            return self._queryset.all()
        return Reservation.objects.select_related('consultorio')

    # ==========================================================================
    # Reads
    # ==========================================================================

    def find_by_id(self, reservation_id: uuid.UUID) -> Optional[Reservation]:
        return self.objects.filter(pk=reservation_id).first()

    def find_for_update(self, reservation_id: uuid.UUID) -> Optional[Reservation]:
        """Row-locked read; must run inside a transaction."""
        return Reservation.objects.select_for_update().filter(pk=reservation_id).first()

    def find_overlapping(
        self,
        resource_id: uuid.UUID,
        intervals: Sequence[Interval],
        exclude_ids: Iterable[uuid.UUID] = (),
    ) -> List[Reservation]:
        """Blocking reservations of one room overlapping any interval."""
        overlap = self._overlap_q(intervals)
        if overlap is None:
            return []
        queryset = self.objects.filter(
            consultorio_id=resource_id,
            status__in=Reservation.blocking_statuses(),
        ).filter(overlap)
        exclude_ids = list(exclude_ids)
        if exclude_ids:
            queryset = queryset.exclude(pk__in=exclude_ids)
        return list(queryset.order_by('start_time'))

    def find_overlapping_accessory(
        self,
        intervals: Sequence[Interval],
        exclude_ids: Iterable[uuid.UUID] = (),
    ) -> List[Reservation]:
        """Blocking accessory reservations, in any room, overlapping any interval."""
        overlap = self._overlap_q(intervals)
        if overlap is None:
            return []
        queryset = self.objects.filter(
            uses_shared_accessory=True,
            status__in=Reservation.blocking_statuses(),
        ).filter(overlap)
        exclude_ids = list(exclude_ids)
        if exclude_ids:
            queryset = queryset.exclude(pk__in=exclude_ids)
        return list(queryset.order_by('start_time'))

    def find_series_instances(
        self,
        recurrence_id: uuid.UUID,
        from_start: datetime,
        statuses: Optional[Sequence[str]] = None,
        for_update: bool = False,
    ) -> List[Reservation]:
        """Series instances starting at or after ``from_start``, earliest first."""
        statuses = statuses or [Reservation.Status.ACTIVE]
        queryset = self._locked() if for_update else self.objects
        return list(
            queryset.filter(
                recurrence_id=recurrence_id,
                start_time__gte=from_start,
                status__in=statuses,
            ).order_by('start_time')
        )

    def find_series(self, recurrence_id: uuid.UUID, for_update: bool = False) -> List[Reservation]:
        queryset = self._locked() if for_update else self.objects
        return list(queryset.filter(recurrence_id=recurrence_id).order_by('start_time'))

    def find_for_owner_in_period(
        self,
        owner_id: uuid.UUID,
        start: datetime,
        end: datetime,
        statuses: Sequence[str],
    ) -> List[Reservation]:
        """Owner's reservations whose start falls in ``[start, end)``."""
        return list(
            self.objects.filter(
                owner_id=owner_id,
                start_time__gte=start,
                start_time__lt=end,
                status__in=statuses,
            ).order_by('start_time')
        )

    def find_in_range(
        self,
        start: datetime,
        end: datetime,
        statuses: Sequence[str],
        owner_ids: Optional[Iterable[uuid.UUID]] = None,
    ) -> List[Reservation]:
        """Reservations overlapping ``[start, end)``."""
        queryset = self.objects.filter(
            start_time__lt=end,
            end_time__gt=start,
            status__in=statuses,
        )
        if owner_ids is not None:
            queryset = queryset.filter(owner_id__in=list(owner_ids))
        return list(queryset.order_by('start_time'))

    def series_ending_between(self, first_day: date, last_day: date) -> List[Dict]:
        """Series with an Active instance and an end date in ``[first_day, last_day]``."""
        return list(
            Reservation.objects.filter(
                recurrence_id__isnull=False,
                status=Reservation.Status.ACTIVE,
                recurrence_end_date__gte=first_day,
                recurrence_end_date__lte=last_day,
            )
            .values('recurrence_id', 'owner_id', 'consultorio_id', 'recurrence_end_date')
            .annotate(last_start=Max('start_time'))
            .order_by('recurrence_end_date', 'recurrence_id')
        )

    # ==========================================================================
    # Writes
    # ==========================================================================

    def insert_many(self, reservations: Sequence[Reservation]) -> List[Reservation]:
        """Insert every row or none."""
        if not reservations:
            return []
        with self.unit_of_work():
            created = Reservation.objects.bulk_create(list(reservations))
        logger.debug(f"Inserted {len(created)} reservations")
        return created

    def update_many(self, updates: Sequence[Tuple[Reservation, Dict]]) -> List[Reservation]:
        """Apply ``(reservation, {field: value})`` changes in one transaction, in order."""
        if not updates:
            return []
        saved = []
        with self.unit_of_work():
            for reservation, values in updates:
                for field, value in values.items():
                    setattr(reservation, field, value)
                reservation.save(update_fields=[*values.keys(), 'updated_at'])
                saved.append(reservation)
        logger.debug(f"Updated {len(saved)} reservations")
        return saved

    def set_series_end_date(self, recurrence_id: uuid.UUID, end_date: date) -> int:
        """Move the end date of every row of a series."""
        with self.unit_of_work():
            return Reservation.objects.filter(recurrence_id=recurrence_id).update(
                recurrence_end_date=end_date, updated_at=timezone.now()
            )

    @contextmanager
    def unit_of_work(self):
        """Atomic block translating database failures into service errors."""
        from .services import ReservationConflictError, StorageError

        try:
            with transaction.atomic():
                yield
        except IntegrityError as e:
            logger.warning(f"Write rejected by database constraint: {e}")
            raise ReservationConflictError(
                "El horario fue tomado por otra reserva. Intenta nuevamente."
            ) from e
        except DatabaseError as e:
            logger.error(f"Database failure, transaction rolled back: {e}")
            raise StorageError("No se pudo guardar la operación.") from e

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _locked(self):
        """Row-locked rows of the reservation table only; must run inside a transaction."""
        return self.objects.select_for_update(of=('self',))

    @staticmethod
    def _overlap_q(intervals: Sequence[Interval]) -> Optional[Q]:
        clauses = [Q(start_time__lt=end, end_time__gt=start) for start, end in intervals]
        if not clauses:
            return None
        return reduce(or_, clauses)
