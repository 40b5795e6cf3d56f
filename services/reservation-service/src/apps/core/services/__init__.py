# services/reservation-service/src/apps/core/services/__init__.py
"""
Reservation Service Business Logic
"""


# Custom Exceptions
class ReservationServiceError(Exception):
    """Base exception for reservation service errors."""
    code = 'ERROR'


class ReservationNotFoundError(ReservationServiceError):
    """Reservation or series not found."""
    code = 'NOT_FOUND'


class ReservationForbiddenError(ReservationServiceError):
    """Requesting user is neither the owner nor an admin."""
    code = 'FORBIDDEN'


class ReservationStateError(ReservationServiceError):
    """Operation not valid for the reservation's current status."""
    code = 'INVALID_STATE'


class InvalidIntervalError(ReservationServiceError):
    """Malformed time slot or date input."""
    code = 'INVALID_INTERVAL'


class InvalidDateError(InvalidIntervalError):
    """Unparseable or naive date input."""
    code = 'INVALID_DATE'


class ReservationConflictError(ReservationServiceError):
    """Overlap with an existing reservation, for the room or the accessory."""
    code = 'CONFLICT'

    def __init__(self, message, resource_conflicts=None, accessory_conflicts=None):
        super().__init__(message)
        self.resource_conflicts = list(resource_conflicts or [])
        self.accessory_conflicts = list(accessory_conflicts or [])


class RenewalConflictError(ReservationConflictError):
    """Renewal blocked; carries the conflicting new instances."""
    code = 'RENEWAL_CONFLICT'

    def __init__(self, message, conflicting_instances=None, **kwargs):
        super().__init__(message, **kwargs)
        self.conflicting_instances = list(conflicting_instances or [])


class RescheduleWindowExpiredError(ReservationServiceError):
    """Grace period for a free replacement is over."""
    code = 'RESCHEDULE_WINDOW_EXPIRED'


class AlreadyRescheduledError(ReservationServiceError):
    """Penalized reservation already has a replacement."""
    code = 'ALREADY_RESCHEDULED'


class StorageError(ReservationServiceError):
    """Unexpected persistence failure; the unit of work was rolled back."""
    code = 'STORAGE_ERROR'


from .conflict_service import ConflictService, ConflictReport  # noqa: E402
from .recurrence_service import RecurrenceService  # noqa: E402
from .cancellation_service import CancellationService  # noqa: E402
from .booking_service import BookingService  # noqa: E402
from .billing_service import BillingService  # noqa: E402
from .access_control_service import AccessControlService  # noqa: E402


__all__ = [
    # Services
    'ConflictService',
    'ConflictReport',
    'RecurrenceService',
    'CancellationService',
    'BookingService',
    'BillingService',
    'AccessControlService',

    # Exceptions
    'ReservationServiceError',
    'ReservationNotFoundError',
    'ReservationForbiddenError',
    'ReservationStateError',
    'InvalidIntervalError',
    'InvalidDateError',
    'ReservationConflictError',
    'RenewalConflictError',
    'RescheduleWindowExpiredError',
    'AlreadyRescheduledError',
    'StorageError',
]
