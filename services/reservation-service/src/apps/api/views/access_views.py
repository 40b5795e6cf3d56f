# services/reservation-service/src/apps/api/views/access_views.py
"""
Access Control API Views

Door-access export import and the operator tools to resolve unknown names.
"""

import logging
from zipfile import BadZipFile

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser
from rest_framework.response import Response
from openpyxl.utils.exceptions import InvalidFileException

from apps.core.models import AccessLog
from apps.core.services import AccessControlService, ReservationServiceError
from apps.api.exceptions import api_error
from apps.api.serializers import (
    AccessAliasSerializer,
    AccessImportSerializer,
    AccessLogSerializer,
    AccessNameRuleSerializer,
)
from shared.common.exceptions import BadRequestException
from shared.common.pagination import LargeResultsSetPagination
from shared.common.permissions import IsAdmin

from .filters import AccessLogFilter

logger = logging.getLogger(__name__)


class AccessLogViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Imported access entries; administrators only."""

    queryset = AccessLog.objects.all()
    serializer_class = AccessLogSerializer
    permission_classes = [IsAdmin]
    pagination_class = LargeResultsSetPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AccessLogFilter
    ordering_fields = ['access_time', 'access_name', 'status']
    ordering = ['-access_time']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.access_service = AccessControlService()

    @action(detail=False, methods=['post'], url_path='import', parser_classes=[MultiPartParser])
    def import_file(self, request):
        """Import an .xlsx export and reconcile it with reservations."""
        serializer = AccessImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            stats = self.access_service.import_workbook(
                serializer.validated_data['file'], operator_id=request.user.id
            )
        except (BadZipFile, InvalidFileException, OSError, KeyError, ValueError) as e:
            logger.warning(f"Unreadable access export: {e}")
            raise BadRequestException("No se pudo leer la planilla") from e

        return Response({'success': True, 'stats': stats}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def rules(self, request):
        """Ignore or track a raw name that matches no member."""
        serializer = AccessNameRuleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        rule = self.access_service.set_name_rule(
            serializer.validated_data['access_name'],
            serializer.validated_data['action'],
        )
        return Response({
            'success': True,
            'data': AccessNameRuleSerializer(rule).data,
        })

    @action(detail=False, methods=['get'])
    def unmatched(self, request):
        """Raw names without a member or a rule."""
        rows = self.access_service.unmatched_names()
        return Response({
            'success': True,
            'count': len(rows),
            'results': [
                {
                    'access_name': row['access_name'],
                    'count': row['count'],
                    'last_seen': row['last_seen'].isoformat(),
                }
                for row in rows
            ],
        })

    @action(detail=False, methods=['post'])
    def aliases(self, request):
        """Link a raw name to a member for future imports."""
        serializer = AccessAliasSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            profile = self.access_service.assign_alias(
                serializer.validated_data['user_id'],
                serializer.validated_data['access_name'],
            )
        except ReservationServiceError as e:
            raise api_error(e) from e

        return Response({
            'success': True,
            'data': {
                'user_id': str(profile.user_id),
                'access_system_name': profile.access_system_name,
            },
        })
