# shared/common/middleware.py
"""
Request Tracing Middleware
"""

import contextvars
import logging
import time
import uuid
from typing import Callable
from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

_request_id = contextvars.ContextVar('request_id', default=None)


def get_request_id():
    """Request ID of the request being served, if any."""
    return _request_id.get()


class RequestIDLogFilter(logging.Filter):
    """Stamp every log record with the current request ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'request_id'):
            record.request_id = get_request_id()
        return True


class RequestIDMiddleware:
    """
    Adds a unique request ID to each request.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        request.request_id = request_id
        token = _request_id.set(request_id)

        try:
            response = self.get_response(request)
        finally:
            _request_id.reset(token)

        response['X-Request-ID'] = request_id
        return response


class LoggingMiddleware:
    """
    One line per API call with status and duration.

    Health probes and the schema / docs pages are not logged. Mutating calls
    also log when they start.
    """

    QUIET_PREFIXES = ('/health/', '/api/schema/', '/api/docs/')
    MUTATING_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.path.startswith(self.QUIET_PREFIXES):
            return self.get_response(request)

        start = time.monotonic()

        if request.method in self.MUTATING_METHODS:
            logger.info(
                f"Request started: {request.method} {request.path}",
                extra={
                    'method': request.method,
                    'path': request.path,
                    'ip_address': self.get_client_ip(request),
                }
            )

        response = self.get_response(request)

        duration_ms = round((time.monotonic() - start) * 1000, 2)

        if response.status_code >= 500:
            log_method = logger.error
        elif response.status_code >= 400:
            log_method = logger.warning
        else:
            log_method = logger.info
        log_method(
            f"Request completed: {request.method} {request.path} - {response.status_code}",
            extra={
                'method': request.method,
                'path': request.path,
                'status_code': response.status_code,
                'duration_ms': duration_ms,
            }
        )

        response['X-Response-Time'] = f"{duration_ms:.2f}ms"

        return response

    def get_client_ip(self, request: HttpRequest) -> str:
        """Extract client IP from request"""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '')
