# services/reservation-service/src/apps/core/models/consultorio.py
"""
Consultorio Model

Bookable rooms and their hourly rate.
"""

import uuid
from decimal import Decimal

from django.db import models


class Consultorio(models.Model):
    """A bookable room."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00')
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'consultorios'
        ordering = ['name']

    def __str__(self):
        return self.name
