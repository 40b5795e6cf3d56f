# services/reservation-service/src/apps/core/models/access_log.py
"""
Access Log Models

Door-access entries imported from the building's access-control export and
the operator rules that decide how unknown names are treated.
"""

import uuid

from django.db import models
from django.db.models.functions import Lower


class AccessNameRule(models.Model):
    """Permanent decision about a raw access-system name."""

    class Action(models.TextChoices):
        IGNORE = 'ignore', 'Ignorar'
        TRACK = 'track', 'Registrar sin facturar'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    access_name = models.CharField(max_length=255)
    action = models.CharField(max_length=20, choices=Action.choices)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'access_name_rules'
        ordering = ['access_name']
        constraints = [
            models.UniqueConstraint(
                Lower('access_name'),
                name='unique_access_name_rule_ci'
            ),
        ]

    def __str__(self):
        return f"{self.access_name} -> {self.action}"


class AccessLog(models.Model):
    """One reconciled door-access entry."""

    class Status(models.TextChoices):
        VALID = 'valid', 'Válido'
        NO_RESERVATION = 'no_reservation', 'Sin reserva'
        UNMATCHED = 'unmatched', 'Sin coincidencia'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    access_time = models.DateTimeField(db_index=True)
    access_name = models.CharField(max_length=255)
    content = models.TextField(blank=True, default='')

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        db_index=True
    )
    user_id = models.UUIDField(blank=True, null=True, db_index=True)
    reservation_id = models.UUIDField(blank=True, null=True)
    notified = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'access_logs'
        ordering = ['-access_time']
        constraints = [
            models.UniqueConstraint(
                fields=['access_time', 'access_name'],
                name='unique_access_entry'
            ),
        ]

    def __str__(self):
        return f"{self.access_name} @ {self.access_time:%Y-%m-%d %H:%M} ({self.status})"
