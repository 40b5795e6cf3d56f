# services/reservation-service/src/apps/core/models/reservation.py
"""
Reservation Model

One booked slot of a consultorio. Weekly series are plain reservations that
share a recurrence id and a series end date.
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

MIN_DURATION = timedelta(minutes=60)


class Reservation(models.Model):
    """
    Reservation of a consultorio by a member.

    Cancellation is a status transition; rows are never deleted so billing
    history survives.
    """

    class Kind(models.TextChoices):
        ONE_OFF = 'Eventual', 'Eventual'
        RECURRING = 'Fija', 'Fija'

    class Status(models.TextChoices):
        ACTIVE = 'activa', 'Activa'
        CANCELLED_WITH_PENALTY = 'cancelada con penalización', 'Cancelada con penalización'
        CANCELLED_FREE = 'cancelada sin penalización', 'Cancelada sin penalización'
        USED = 'utilizada', 'Utilizada'
        RESCHEDULED = 'reagendada', 'Reagendada'

    # Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Resource / owner
    consultorio = models.ForeignKey(
        'core.Consultorio',
        on_delete=models.PROTECT,
        related_name='reservations'
    )
    owner_id = models.UUIDField(db_index=True)

    # Time
    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField()

    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.ONE_OFF
    )
    uses_shared_accessory = models.BooleanField(default=False)
    title = models.CharField(max_length=255, blank=True, default='')

    status = models.CharField(
        max_length=40,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True
    )

    # Series
    recurrence_id = models.UUIDField(blank=True, null=True, db_index=True)
    recurrence_end_date = models.DateField(blank=True, null=True)

    # Reschedule
    reschedule_source_id = models.UUIDField(blank=True, null=True, db_index=True)
    reschedule_deadline = models.DateTimeField(blank=True, null=True)
    was_rescheduled = models.BooleanField(default=False)

    # Cancellation
    cancelled_at = models.DateTimeField(blank=True, null=True)

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'reservations'
        ordering = ['start_time']
        indexes = [
            models.Index(fields=['consultorio', 'start_time', 'end_time'], name='reservation_room_time_idx'),
            models.Index(fields=['owner_id', 'start_time'], name='reservation_owner_time_idx'),
            models.Index(fields=['recurrence_id', 'start_time'], name='reservation_series_idx'),
            models.Index(fields=['status', 'start_time'], name='reservation_status_time_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F('start_time')),
                name='valid_reservation_times'
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(recurrence_id__isnull=True, recurrence_end_date__isnull=True)
                    | models.Q(recurrence_id__isnull=False, recurrence_end_date__isnull=False)
                ),
                name='recurrence_fields_together'
            ),
        ]

    def __str__(self):
        local_start = timezone.localtime(self.start_time)
        return f"{self.consultorio_id} {local_start:%Y-%m-%d %H:%M} ({self.status})"

    def clean(self):
        errors = {}
        if self.start_time and self.end_time:
            if self.end_time <= self.start_time:
                errors['end_time'] = 'La hora de fin debe ser posterior a la de inicio.'
            elif self.end_time - self.start_time < MIN_DURATION:
                errors['end_time'] = 'La reserva debe durar al menos 60 minutos.'
        if (self.recurrence_id is None) != (self.recurrence_end_date is None):
            errors['recurrence_id'] = 'Una serie requiere identificador y fecha de fin.'
        if self.kind == self.Kind.RECURRING and self.recurrence_id is None:
            errors['kind'] = 'Una reserva fija debe pertenecer a una serie.'
        if errors:
            raise ValidationError(errors)

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def resource_id(self):
        return self.consultorio_id

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_id is not None

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def duration_hours(self) -> Decimal:
        """Duration in hours, exact to the second."""
        return Decimal(int(self.duration.total_seconds())) / Decimal(3600)

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    @property
    def is_penalized(self) -> bool:
        return self.status == self.Status.CANCELLED_WITH_PENALTY

    def hours_until_start(self, now: datetime) -> float:
        return (self.start_time - now).total_seconds() / 3600

    def can_reschedule(self, now: datetime) -> bool:
        """Penalized, not yet replaced, and still inside the grace period."""
        return (
            self.is_penalized
            and not self.was_rescheduled
            and self.reschedule_deadline is not None
            and now <= self.reschedule_deadline
        )

    # ==========================================================================
    # Class Methods
    # ==========================================================================

    @classmethod
    def blocking_statuses(cls) -> list:
        """Statuses that occupy the room and the accessory."""
        return [cls.Status.ACTIVE, cls.Status.USED]

    @classmethod
    def billable_statuses(cls) -> list:
        """Statuses charged on the invoice (penalized bookings still bill)."""
        return [cls.Status.ACTIVE, cls.Status.USED, cls.Status.CANCELLED_WITH_PENALTY]
