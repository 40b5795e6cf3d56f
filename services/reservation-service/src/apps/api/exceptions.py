# services/reservation-service/src/apps/api/exceptions.py
"""
Service error -> API exception mapping.
"""

from apps.core.messages import for_error
from apps.core.services import (
    AlreadyRescheduledError,
    InvalidIntervalError,
    RenewalConflictError,
    RescheduleWindowExpiredError,
    ReservationConflictError,
    ReservationForbiddenError,
    ReservationNotFoundError,
    ReservationServiceError,
    ReservationStateError,
    StorageError,
)
from shared.common.exceptions import (
    AlreadyRescheduledException,
    BadRequestException,
    BaseAPIException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    RenewalConflictException,
    RescheduleWindowExpiredException,
    ReservationConflictException,
    ServiceUnavailableException,
)

# Most specific first
ERROR_MAP = [
    (RenewalConflictError, RenewalConflictException),
    (ReservationConflictError, ReservationConflictException),
    (ReservationNotFoundError, NotFoundException),
    (ReservationForbiddenError, ForbiddenException),
    (ReservationStateError, InvalidStateException),
    (RescheduleWindowExpiredError, RescheduleWindowExpiredException),
    (AlreadyRescheduledError, AlreadyRescheduledException),
    (InvalidIntervalError, BadRequestException),
    (StorageError, ServiceUnavailableException),
]


def _slot(reservation) -> dict:
    return {
        'id': str(reservation.id) if reservation.id else None,
        'consultorio_id': str(reservation.consultorio_id),
        'start_time': reservation.start_time.isoformat(),
        'end_time': reservation.end_time.isoformat(),
    }


def api_error(exc: ReservationServiceError) -> BaseAPIException:
    """API exception carrying the error code, UI copy and conflict details."""
    title, message = for_error(exc.code)
    extra = {'title': title, 'user_message': message}

    if isinstance(exc, ReservationConflictError):
        extra['resource_conflicts'] = [_slot(r) for r in exc.resource_conflicts]
        extra['accessory_conflicts'] = [_slot(r) for r in exc.accessory_conflicts]
    if isinstance(exc, RenewalConflictError):
        extra['conflicting_instances'] = [_slot(r) for r in exc.conflicting_instances]

    for error_class, api_class in ERROR_MAP:
        if isinstance(exc, error_class):
            return api_class(detail=str(exc), error_code=exc.code, extra_data=extra)
    return BadRequestException(detail=str(exc), error_code=exc.code, extra_data=extra)
