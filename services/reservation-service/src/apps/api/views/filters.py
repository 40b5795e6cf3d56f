# services/reservation-service/src/apps/api/views/filters.py
"""
API Filters

Django Filter classes for reservation API.
"""

import django_filters

from apps.core.models import AccessLog, Reservation


class ReservationFilter(django_filters.FilterSet):
    """Filter for reservation queries."""

    # Time range
    start_after = django_filters.DateTimeFilter(
        field_name='start_time',
        lookup_expr='gte'
    )
    start_before = django_filters.DateTimeFilter(
        field_name='start_time',
        lookup_expr='lt'
    )
    date = django_filters.DateFilter(
        field_name='start_time',
        lookup_expr='date'
    )

    # Status / kind
    status = django_filters.ChoiceFilter(
        choices=Reservation.Status.choices
    )
    status_in = django_filters.BaseInFilter(
        field_name='status'
    )
    kind = django_filters.ChoiceFilter(
        choices=Reservation.Kind.choices
    )

    # Resource / owner / series
    consultorio = django_filters.UUIDFilter(field_name='consultorio_id')
    owner_id = django_filters.UUIDFilter()
    recurrence_id = django_filters.UUIDFilter()
    uses_shared_accessory = django_filters.BooleanFilter()

    class Meta:
        model = Reservation
        fields = [
            'status', 'kind', 'consultorio',
            'owner_id', 'recurrence_id', 'uses_shared_accessory',
        ]


class AccessLogFilter(django_filters.FilterSet):
    """Filter for access log queries."""

    date_from = django_filters.DateFilter(
        field_name='access_time',
        lookup_expr='date__gte'
    )
    date_to = django_filters.DateFilter(
        field_name='access_time',
        lookup_expr='date__lte'
    )
    status = django_filters.ChoiceFilter(
        choices=AccessLog.Status.choices
    )
    access_name = django_filters.CharFilter(
        lookup_expr='icontains'
    )
    user_id = django_filters.UUIDFilter()

    class Meta:
        model = AccessLog
        fields = ['status', 'access_name', 'user_id']
