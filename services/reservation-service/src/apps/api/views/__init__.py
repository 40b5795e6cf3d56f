# services/reservation-service/src/apps/api/views/__init__.py
"""
Reservation API Views
"""

from .reservation_views import (
    ConsultorioViewSet,
    ReservationViewSet,
    ConflictCheckView,
)

from .billing_views import (
    BillingPreviewView,
)

from .access_views import (
    AccessLogViewSet,
)


__all__ = [
    # Reservations
    'ConsultorioViewSet',
    'ReservationViewSet',
    'ConflictCheckView',

    # Billing
    'BillingPreviewView',

    # Access control
    'AccessLogViewSet',
]
