# services/reservation-service/src/apps/api/views/billing_views.py
"""
Billing API Views
"""

import logging

from rest_framework import serializers
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.services import BillingService, ReservationServiceError
from apps.core.services.timeslots import Granularity
from apps.api.exceptions import api_error
from apps.api.serializers import BillingPreviewSerializer
from shared.common.authentication import ADMIN_ROLE
from shared.common.exceptions import ForbiddenException
from shared.common.permissions import IsAuthenticated, get_user_role

logger = logging.getLogger(__name__)


class BillingPreviewQuerySerializer(serializers.Serializer):
    billing_mode = serializers.ChoiceField(choices=Granularity.choices, required=False)
    owner_id = serializers.UUIDField(required=False)


class BillingPreviewView(APIView):
    """Estimate of the current week's or month's invoice."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = BillingPreviewQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        owner_id = request.user.id
        if query.validated_data.get('owner_id'):
            if get_user_role(request) != ADMIN_ROLE:
                raise ForbiddenException("Solo un administrador puede consultar a otro miembro")
            owner_id = query.validated_data['owner_id']

        try:
            preview = BillingService().preview_current_period(
                owner_id, query.validated_data.get('billing_mode')
            )
        except ReservationServiceError as e:
            raise api_error(e) from e

        return Response({
            'success': True,
            'data': BillingPreviewSerializer(preview).data,
        })
