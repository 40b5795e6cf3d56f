# services/reservation-service/src/tests/conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for reservation service tests.
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from shared.common.authentication import generate_access_token


def local(*args) -> datetime:
    """Aware datetime in the service's local timezone."""
    return timezone.make_aware(datetime(*args))


class FixedClock:
    """Injectable clock; tests move it explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class RecordingSink:
    """Notification sink that keeps what it was told."""

    def __init__(self):
        self.events = []

    def notify(self, owner_id, event_kind, payload):
        self.events.append((owner_id, event_kind, payload))
        return True

    @property
    def kinds(self):
        return [kind for _, kind, _ in self.events]


@pytest.fixture
def clock():
    """Clock pinned to 2025-06-01 09:00 local time."""
    return FixedClock(local(2025, 6, 1, 9, 0))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def owner_id():
    """Provide a test member ID."""
    return uuid.uuid4()


@pytest.fixture
def other_owner_id():
    """Provide a second member ID."""
    return uuid.uuid4()


@pytest.fixture
def admin_id():
    """Provide a test administrator ID."""
    return uuid.uuid4()


@pytest.fixture
def create_consultorio():
    """Factory fixture for creating consultorios."""
    from apps.core.models import Consultorio

    counter = {'n': 0}

    def _create_consultorio(**kwargs):
        counter['n'] += 1
        defaults = {
            'name': f"Consultorio {counter['n']}",
            'hourly_rate': Decimal('500.00'),
        }
        defaults.update(kwargs)
        return Consultorio.objects.create(**defaults)

    return _create_consultorio


@pytest.fixture
def consultorio(create_consultorio):
    return create_consultorio(name='Consultorio 1')


@pytest.fixture
def create_reservation(consultorio, owner_id):
    """Factory fixture for creating reservations."""
    from apps.core.models import Reservation

    def _create_reservation(**kwargs):
        start = kwargs.pop('start_time', local(2025, 6, 10, 10, 0))
        defaults = {
            'consultorio': consultorio,
            'owner_id': owner_id,
            'start_time': start,
            'end_time': kwargs.pop('end_time', start + timedelta(hours=1)),
            'kind': Reservation.Kind.ONE_OFF,
            'status': Reservation.Status.ACTIVE,
        }
        defaults.update(kwargs)
        return Reservation.objects.create(**defaults)

    return _create_reservation


@pytest.fixture
def create_series(consultorio, owner_id):
    """Factory fixture for weekly series stored as-is."""
    from apps.core.models import Reservation

    def _create_series(first_start, count, end_date, **kwargs):
        recurrence_id = kwargs.pop('recurrence_id', uuid.uuid4())
        defaults = {
            'consultorio': consultorio,
            'owner_id': owner_id,
            'kind': Reservation.Kind.RECURRING,
            'status': Reservation.Status.ACTIVE,
            'recurrence_id': recurrence_id,
            'recurrence_end_date': end_date,
        }
        defaults.update(kwargs)
        return [
            Reservation.objects.create(
                start_time=first_start + timedelta(weeks=week),
                end_time=first_start + timedelta(weeks=week, hours=1),
                **defaults,
            )
            for week in range(count)
        ]

    return _create_series


@pytest.fixture
def create_profile():
    """Factory fixture for member profiles."""
    from apps.core.models import MemberProfile

    def _create_profile(**kwargs):
        defaults = {
            'user_id': uuid.uuid4(),
            'first_name': 'Ana',
            'last_name': 'Pérez',
            'role': MemberProfile.Role.USER,
        }
        defaults.update(kwargs)
        return MemberProfile.objects.create(**defaults)

    return _create_profile


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def member_client(owner_id):
    """API client authenticated as a regular member."""
    client = APIClient()
    token = generate_access_token(owner_id, email='member@example.com')
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return client


@pytest.fixture
def admin_client(admin_id):
    """API client authenticated as an administrator."""
    client = APIClient()
    token = generate_access_token(admin_id, email='admin@example.com', role='admin')
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return client
