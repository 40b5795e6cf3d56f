# services/reservation-service/src/apps/api/views/reservation_views.py
"""
Reservation API Views

Booking, cancellation, series renewal and conflict checks.
"""

import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core import messages
from apps.core.models import Consultorio, Reservation
from apps.core.services import (
    BookingService,
    CancellationService,
    RecurrenceService,
    ReservationNotFoundError,
    ReservationServiceError,
    ReservationStateError,
)
from apps.core.services.booking_service import BookingSlot
from apps.api.exceptions import api_error
from apps.api.serializers import (
    CancelSeriesSerializer,
    ConflictCheckSerializer,
    ConsultorioSerializer,
    RenewSeriesSerializer,
    ReservationCreateSerializer,
    ReservationSerializer,
)
from shared.common.authentication import ADMIN_ROLE
from shared.common.permissions import IsAdmin, IsAuthenticated, IsOwnerOrAdmin, get_user_role

from .filters import ReservationFilter

logger = logging.getLogger(__name__)


def _slots(validated) -> list:
    return [
        BookingSlot(s['consultorio_id'], s['start'], s['end'])
        for s in validated
    ]


def _result_payload(result) -> dict:
    title, message = result.copy
    return {
        'success': True,
        'outcome': result.tag,
        'title': title,
        'message': message,
        'reservations': ReservationSerializer(result.reservations, many=True).data,
    }


class ConsultorioViewSet(viewsets.ReadOnlyModelViewSet):
    """Bookable rooms."""

    queryset = Consultorio.objects.filter(is_active=True)
    serializer_class = ConsultorioSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None


class ReservationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for reservations.

    Members see their own reservations; administrators see everyone's.
    """

    queryset = Reservation.objects.select_related('consultorio')
    serializer_class = ReservationSerializer
    permission_classes = [IsOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = ReservationFilter
    ordering_fields = ['start_time', 'created_at', 'status']
    ordering = ['start_time']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.booking_service = BookingService()
        self.cancellation_service = CancellationService()
        self.recurrence_service = RecurrenceService()

    def get_queryset(self):
        queryset = super().get_queryset()
        if get_user_role(self.request) != ADMIN_ROLE:
            queryset = queryset.filter(owner_id=self.request.user.id)
        return queryset

    def get_serializer_class(self):
        if self.action == 'create':
            return ReservationCreateSerializer
        if self.action == 'cancel_series':
            return CancelSeriesSerializer
        if self.action == 'renew_series':
            return RenewSeriesSerializer
        return ReservationSerializer

    def create(self, request, *args, **kwargs):
        """Create a one-off booking, a weekly series or a reschedule."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        role = get_user_role(request)
        owner_id = request.user.id
        if role == ADMIN_ROLE and data.get('owner_id'):
            owner_id = data['owner_id']

        try:
            created = self.booking_service.create_booking(
                owner_id=owner_id,
                role=role,
                slots=_slots(data['slots']),
                kind=data['kind'],
                uses_shared_accessory=data['uses_shared_accessory'],
                title=data.get('title', ''),
                horizon_months=data.get('horizon_months'),
                reschedule_source_id=data.get('reschedule_source_id'),
            )
        except ReservationServiceError as e:
            raise api_error(e) from e

        title, message = messages.RESCHEDULED if data.get('reschedule_source_id') else messages.CREATED
        return Response({
            'success': True,
            'title': title,
            'message': message,
            'count': len(created),
            'reservations': ReservationSerializer(created, many=True).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel one reservation."""
        try:
            result = self.cancellation_service.cancel_single(
                pk, request.user.id, get_user_role(request)
            )
        except ReservationServiceError as e:
            raise api_error(e) from e
        return Response(_result_payload(result))

    @action(detail=True, methods=['post'], url_path='cancel-series')
    def cancel_series(self, request, pk=None):
        """Cancel the series of this reservation from this (or a given) instance on."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reservation = self._series_member(pk)
            result = self.cancellation_service.cancel_series(
                reservation.recurrence_id,
                request.user.id,
                get_user_role(request),
                serializer.validated_data.get('from_start', reservation.start_time),
            )
        except ReservationServiceError as e:
            raise api_error(e) from e
        return Response(_result_payload(result))

    @action(detail=True, methods=['post'], url_path='renew-series')
    def renew_series(self, request, pk=None):
        """Extend the series of this reservation by another horizon."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reservation = self._series_member(pk)
            result = self.recurrence_service.renew(
                reservation.recurrence_id,
                request.user.id,
                get_user_role(request),
                serializer.validated_data.get('horizon_months'),
            )
        except ReservationServiceError as e:
            raise api_error(e) from e

        title, message = messages.series_renewed(result.newly_created_count)
        return Response({
            'success': True,
            'title': title,
            'message': message,
            'recurrence_id': str(result.recurrence_id),
            'new_recurrence_end_date': result.new_end_date.isoformat(),
            'newly_created_count': result.newly_created_count,
            'reservations': ReservationSerializer(result.new_instances, many=True).data,
        })

    @action(detail=False, methods=['get'], url_path='expiring-series', permission_classes=[IsAdmin])
    def expiring_series(self, request):
        """Series ending within the renewal window."""
        rows = self.recurrence_service.expiring_series()
        return Response({
            'success': True,
            'count': len(rows),
            'results': [
                {
                    'recurrence_id': str(row['recurrence_id']),
                    'owner_id': str(row['owner_id']),
                    'consultorio_id': str(row['consultorio_id']),
                    'recurrence_end_date': row['recurrence_end_date'].isoformat(),
                    'last_start': row['last_start'].isoformat(),
                }
                for row in rows
            ],
        })

    def _series_member(self, pk) -> Reservation:
        reservation = self.cancellation_service.repository.find_by_id(pk)
        if reservation is None:
            raise ReservationNotFoundError(f"Reserva {pk} no encontrada.")
        if reservation.recurrence_id is None:
            raise ReservationStateError("La reserva no pertenece a una serie.")
        return reservation


class ConflictCheckView(APIView):
    """Advisory conflict check before confirming a booking."""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ConflictCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = BookingService().check_conflicts(
                _slots(serializer.validated_data['slots']),
                serializer.validated_data['uses_shared_accessory'],
            )
        except ReservationServiceError as e:
            raise api_error(e) from e

        return Response({
            'success': True,
            'has_conflicts': bool(report),
            'message': report.message(),
            'resource_conflicts': ReservationSerializer(report.resource_conflicts, many=True).data,
            'accessory_conflicts': ReservationSerializer(report.accessory_conflicts, many=True).data,
        })
