# shared/common/exceptions.py
"""
API Exception Classes and Exception Handler
"""

import logging
import traceback
from typing import Dict, Any, Optional
from rest_framework import status
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import APIException
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from django.conf import settings

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTIONS
# =============================================================================

class BaseAPIException(APIException):
    """Base exception class for all custom API exceptions"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Ocurrió un error inesperado.'
    default_code = 'error'
    error_code = 'INTERNAL_ERROR'

    def __init__(
        self,
        detail: Optional[str] = None,
        code: Optional[str] = None,
        error_code: Optional[str] = None,
        extra_data: Optional[Dict] = None
    ):
        super().__init__(detail=detail, code=code)
        self.error_code = error_code or self.error_code
        self.extra_data = extra_data or {}


# =============================================================================
# CLIENT ERRORS (4xx)
# =============================================================================

class BadRequestException(BaseAPIException):
    """400 Bad Request"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Solicitud inválida.'
    default_code = 'bad_request'
    error_code = 'BAD_REQUEST'


class ForbiddenException(BaseAPIException):
    """403 Forbidden"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'No tienes permiso para realizar esta acción.'
    default_code = 'forbidden'
    error_code = 'FORBIDDEN'


class NotFoundException(BaseAPIException):
    """404 Not Found"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'El recurso solicitado no existe.'
    default_code = 'not_found'
    error_code = 'NOT_FOUND'


class ConflictException(BaseAPIException):
    """409 Conflict"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'La operación entra en conflicto con el estado actual.'
    default_code = 'conflict'
    error_code = 'CONFLICT'


class GoneException(BaseAPIException):
    """410 Gone"""
    status_code = status.HTTP_410_GONE
    default_detail = 'El recurso ya no está disponible.'
    default_code = 'gone'
    error_code = 'GONE'


# =============================================================================
# SERVER ERRORS (5xx)
# =============================================================================

class ServiceUnavailableException(BaseAPIException):
    """503 Service Unavailable"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'El servicio no está disponible en este momento.'
    default_code = 'service_unavailable'
    error_code = 'SERVICE_UNAVAILABLE'


# =============================================================================
# DOMAIN-SPECIFIC EXCEPTIONS
# =============================================================================

class InvalidStateException(ConflictException):
    """Operation not valid for the reservation's current status"""
    default_detail = 'El estado de la reserva no permite esta operación.'
    error_code = 'INVALID_STATE'


class ReservationConflictException(ConflictException):
    """Overlapping reservation for the room or the shared accessory"""
    default_detail = 'El horario solicitado se superpone con otra reserva.'
    error_code = 'CONFLICT'


class RenewalConflictException(ReservationConflictException):
    """Series renewal blocked by reservations taken in the meantime"""
    default_detail = 'No se puede renovar la serie: hay horarios ocupados.'
    error_code = 'RENEWAL_CONFLICT'


class AlreadyRescheduledException(ConflictException):
    """Penalized reservation already has a replacement"""
    default_detail = 'Esta reserva ya fue reagendada.'
    error_code = 'ALREADY_RESCHEDULED'


class RescheduleWindowExpiredException(GoneException):
    """Reschedule grace period is over"""
    default_detail = 'El plazo para reagendar esta reserva venció.'
    error_code = 'RESCHEDULE_WINDOW_EXPIRED'


# =============================================================================
# EXCEPTION HANDLER
# =============================================================================

# DRF's own exceptions carry no error_code; their default_code maps here.
DRF_ERROR_CODES = {
    'not_authenticated': 'NOT_AUTHENTICATED',
    'authentication_failed': 'NOT_AUTHENTICATED',
    'permission_denied': 'FORBIDDEN',
    'not_found': 'NOT_FOUND',
    'invalid': 'VALIDATION_ERROR',
    'parse_error': 'BAD_REQUEST',
    'unsupported_media_type': 'BAD_REQUEST',
    'method_not_allowed': 'METHOD_NOT_ALLOWED',
    'throttled': 'THROTTLED',
}


def error_body(code: str, message: str, request_id: Optional[str], **extra) -> Dict[str, Any]:
    """The single error envelope every endpoint returns."""
    error = {'code': code, 'message': message, 'request_id': request_id}
    error.update(extra)
    return {'success': False, 'error': error}


def custom_exception_handler(exc, context) -> Optional[Response]:
    """
    Exception handler for DRF.

    API exceptions keep their status and gain the envelope. Model
    ``ValidationError`` becomes 400 and ``Http404`` becomes 404. Anything else
    is logged with its traceback and returned as an opaque 500.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    response = exception_handler(exc, context)
    if response is not None:
        return format_error_response(exc, response, request_id)

    if isinstance(exc, DjangoValidationError):
        details = exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages}
        return Response(
            error_body('VALIDATION_ERROR', 'Datos inválidos', request_id, details=details),
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        return Response(
            error_body('NOT_FOUND', str(exc) or 'Recurso no encontrado', request_id),
            status=status.HTTP_404_NOT_FOUND,
        )

    logger.exception(
        f"Unhandled exception: {exc}",
        extra={'request_id': request_id, 'exception_type': type(exc).__name__},
    )
    if settings.DEBUG:
        body = error_body(
            'INTERNAL_ERROR', str(exc), request_id,
            type=type(exc).__name__,
            traceback=traceback.format_exc().split('\n'),
        )
    else:
        body = error_body(
            'INTERNAL_ERROR', 'Ocurrió un error inesperado. Intenta nuevamente más tarde.', request_id
        )
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def format_error_response(exc, response: Response, request_id: str = None) -> Response:
    """Wrap a DRF-produced response in the error envelope."""
    code = getattr(exc, 'error_code', None) or DRF_ERROR_CODES.get(
        getattr(exc, 'default_code', ''), 'ERROR'
    )
    extra = dict(getattr(exc, 'extra_data', {}))

    details = extra.pop('errors', None)
    if not details and isinstance(response.data, dict) and 'detail' not in response.data:
        # field-level serializer errors
        details = response.data
    if details:
        extra['details'] = details

    response.data = error_body(code, get_error_message(exc, response), request_id, **extra)
    return response


def get_error_message(exc, response: Response) -> str:
    """First human-readable message from the exception or the response."""
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        if 'detail' in detail:
            return str(detail['detail'])
        return 'Datos inválidos'

    if isinstance(response.data, dict):
        return str(response.data.get('detail', response.data))
    return str(response.data)
