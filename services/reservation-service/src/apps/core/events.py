# services/reservation-service/src/apps/core/events.py
"""
Reservation Service Events

Domain events and the notification sink the booking core reports to.
Publishing is fire-and-forget: a failed publish never fails the operation
that triggered it.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable
from uuid import UUID

import requests
from django.conf import settings
from django.utils import timezone

from shared.common.middleware import get_request_id

logger = logging.getLogger(__name__)


class EventType:
    """Event type constants for reservation service."""

    RESERVATION_CREATED = 'reservation.created'
    RESERVATION_CANCELLED = 'reservation.cancelled'
    RESERVATION_PENALIZED = 'reservation.penalized'
    RESERVATION_RESCHEDULE_REVERTED = 'reservation.reschedule_reverted'
    RESERVATION_RESCHEDULED = 'reservation.rescheduled'

    SERIES_CANCELLED = 'series.cancelled'
    SERIES_RENEWED = 'series.renewed'

    ACCESS_LOG_IMPORTED = 'access_log.imported'


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for event payloads."""

    def default(self, obj):
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


class EventPublisher:
    """
    Publishes events to the configured backend (``log`` or ``webhook``).
    """

    def __init__(self):
        self.service_name = getattr(settings, 'SERVICE_NAME', 'reservation-service')
        self.enabled = getattr(settings, 'EVENT_PUBLISHING_ENABLED', True)

    def publish(
        self,
        event_type: str,
        payload: Dict[str, Any],
        correlation_id: str = None,
        metadata: Dict[str, Any] = None
    ) -> bool:
        """
        Publish an event.

        Returns:
            True if published successfully, False otherwise
        """
        if not self.enabled:
            logger.debug(f"Event publishing disabled, skipping: {event_type}")
            return False

        event = {
            'event_type': event_type,
            'service': self.service_name,
            'timestamp': timezone.now().isoformat(),
            'correlation_id': correlation_id,
            'payload': payload,
            'metadata': metadata or {},
        }

        try:
            event_json = json.dumps(event, cls=JSONEncoder)
            logger.info(f"Publishing event: {event_type}", extra={'event_type': event_type})
            self._publish_to_backend(event_type, event_json)
            return True
        except (TypeError, ValueError, requests.RequestException) as e:
            logger.error(f"Failed to publish event {event_type}: {e}")
            return False

    def _publish_to_backend(self, event_type: str, event_json: str):
        backend = getattr(settings, 'EVENT_BACKEND', 'log')

        if backend == 'webhook':
            self._publish_webhook(event_type, event_json)
        else:
            logger.debug(f"Event payload: {event_json[:500]}")

    def _publish_webhook(self, event_type: str, event_json: str):
        webhook_url = getattr(settings, 'EVENT_WEBHOOK_URL', None)
        if not webhook_url:
            logger.warning(f"EVENT_WEBHOOK_URL not set, dropping {event_type}")
            return

        response = requests.post(
            webhook_url,
            data=event_json,
            headers={'Content-Type': 'application/json', 'X-Event-Type': event_type},
            timeout=getattr(settings, 'EVENT_WEBHOOK_TIMEOUT', 5)
        )
        response.raise_for_status()


class NotificationSink:
    """Tells a member something happened to their reservations."""

    def __init__(self, publisher: EventPublisher = None):
        self.publisher = publisher or EventPublisher()

    def notify(self, owner_id, event_kind: str, payload: Dict[str, Any]) -> bool:
        try:
            return self.publisher.publish(
                event_kind,
                payload={'owner_id': owner_id, **payload},
                correlation_id=get_request_id(),
            )
        except Exception as e:  # noqa: BLE001
            logger.error(f"Notification {event_kind} for {owner_id} failed: {e}")
            return False


# Global sink instance
notification_sink = NotificationSink()


def reservation_payload(reservation) -> Dict[str, Any]:
    return {
        'reservation_id': reservation.id,
        'consultorio_id': reservation.consultorio_id,
        'start_time': reservation.start_time,
        'end_time': reservation.end_time,
        'status': reservation.status,
        'kind': reservation.kind,
        'recurrence_id': reservation.recurrence_id,
    }


# Convenience functions for publishing specific events
def publish_reservations_created(sink: NotificationSink, reservations: Iterable, source=None):
    """Publish created (or rescheduled, when replacing ``source``) event."""
    reservations = list(reservations)
    if not reservations:
        return
    first = reservations[0]
    payload = {
        'reservations': [reservation_payload(r) for r in reservations],
        'count': len(reservations),
        'recurrence_id': first.recurrence_id,
    }
    if source is not None:
        payload['reschedule_source_id'] = source.id
        sink.notify(first.owner_id, EventType.RESERVATION_RESCHEDULED, payload)
    else:
        sink.notify(first.owner_id, EventType.RESERVATION_CREATED, payload)


def publish_cancellation(sink: NotificationSink, owner_id, event_kind: str, outcome):
    """Publish the event matching a cancellation outcome."""
    sink.notify(
        owner_id,
        event_kind,
        {
            'outcome': outcome.tag,
            'reservations': [reservation_payload(r) for r in outcome.reservations],
        },
    )


def publish_series_renewed(sink: NotificationSink, owner_id, result):
    sink.notify(
        owner_id,
        EventType.SERIES_RENEWED,
        {
            'recurrence_id': result.recurrence_id,
            'new_recurrence_end_date': result.new_end_date,
            'newly_created_count': result.newly_created_count,
        },
    )


def publish_access_logs_imported(sink: NotificationSink, operator_id, stats: Dict[str, int]):
    sink.notify(operator_id, EventType.ACCESS_LOG_IMPORTED, dict(stats))
