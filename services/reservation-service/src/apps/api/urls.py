# services/reservation-service/src/apps/api/urls.py
"""
Reservation API URL Configuration
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    ConsultorioViewSet,
    ReservationViewSet,
    ConflictCheckView,
    BillingPreviewView,
    AccessLogViewSet,
)

app_name = 'api'

router = DefaultRouter()
router.register(r'reservations', ReservationViewSet, basename='reservation')
router.register(r'consultorios', ConsultorioViewSet, basename='consultorio')
router.register(r'access-logs', AccessLogViewSet, basename='access-log')

urlpatterns = [
    path('', include(router.urls)),

    # Advisory conflict check
    path('conflicts/', ConflictCheckView.as_view(), name='conflict-check'),

    # Billing
    path('billing/preview/', BillingPreviewView.as_view(), name='billing-preview'),
]
