# services/reservation-service/src/apps/core/models/__init__.py
"""
Reservation Service Models
"""

from .consultorio import Consultorio
from .reservation import Reservation
from .profile import MemberProfile
from .access_log import AccessNameRule, AccessLog

__all__ = [
    'Consultorio',
    'Reservation',
    'MemberProfile',
    'AccessNameRule',
    'AccessLog',
]
