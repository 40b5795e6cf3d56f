# services/reservation-service/src/apps/api/serializers/__init__.py
"""
Reservation API Serializers
"""

from .reservation_serializers import (
    ConsultorioSerializer,
    ReservationSerializer,
    SlotSerializer,
    ReservationCreateSerializer,
    CancelSeriesSerializer,
    RenewSeriesSerializer,
    ConflictCheckSerializer,
)

from .billing_serializers import (
    BookingLineItemSerializer,
    BillingPreviewSerializer,
)

from .access_serializers import (
    AccessLogSerializer,
    AccessNameRuleSerializer,
    AccessImportSerializer,
    AccessAliasSerializer,
)


__all__ = [
    # Reservations
    'ConsultorioSerializer',
    'ReservationSerializer',
    'SlotSerializer',
    'ReservationCreateSerializer',
    'CancelSeriesSerializer',
    'RenewSeriesSerializer',
    'ConflictCheckSerializer',

    # Billing
    'BookingLineItemSerializer',
    'BillingPreviewSerializer',

    # Access control
    'AccessLogSerializer',
    'AccessNameRuleSerializer',
    'AccessImportSerializer',
    'AccessAliasSerializer',
]
