# services/reservation-service/src/apps/core/models/profile.py
"""
Member Profile Model

Local projection of the auth provider's users: display name, role, billing
mode and the alias used by the door-access system.
"""

import uuid

from django.db import models


class MemberProfile(models.Model):
    """Profile of a professional renting consultorios."""

    class Role(models.TextChoices):
        ADMIN = 'admin', 'Administrador'
        USER = 'user', 'Profesional'

    class BillingMode(models.TextChoices):
        WEEKLY = 'weekly', 'Semanal'
        MONTHLY = 'monthly', 'Mensual'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField(unique=True)

    first_name = models.CharField(max_length=100, blank=True, default='')
    last_name = models.CharField(max_length=100, blank=True, default='')
    email = models.EmailField(blank=True, null=True)

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.USER
    )
    billing_mode = models.CharField(
        max_length=20,
        choices=BillingMode.choices,
        blank=True,
        null=True
    )

    # Name as written by the door-access system, when it differs
    access_system_name = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'member_profiles'
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.full_name or str(self.user_id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN
