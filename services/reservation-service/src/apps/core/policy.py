# services/reservation-service/src/apps/core/policy.py
"""
Booking policy: configurable constants and the owner-or-admin rule.
"""

from django.conf import settings

from shared.common.authentication import ADMIN_ROLE

DEFAULTS = {
    'PENALTY_WINDOW_HOURS': 24,
    'RESCHEDULE_GRACE_DAYS': 6,
    'DEFAULT_HORIZON_MONTHS': 4,
    'RENEWAL_WINDOW_DAYS': 45,
    'MIN_DURATION_MINUTES': 60,
    'ACCESS_TOLERANCE_MINUTES': 50,
}


def get(name: str) -> int:
    overrides = getattr(settings, 'RESERVATION_POLICY', {}) or {}
    return overrides.get(name, DEFAULTS[name])


def is_admin(role: str) -> bool:
    return role == ADMIN_ROLE


def ensure_can_manage(owner_id, user_id, role: str) -> None:
    """Raise ReservationForbiddenError unless the user owns the row or is admin."""
    from .services import ReservationForbiddenError

    if is_admin(role):
        return
    if user_id is None or str(owner_id) != str(user_id):
        raise ReservationForbiddenError("No tienes permiso para modificar esta reserva.")
