# services/reservation-service/src/apps/api/serializers/billing_serializers.py
"""
Billing Preview Serializers
"""

from rest_framework import serializers


class BookingLineItemSerializer(serializers.Serializer):
    reservation_id = serializers.UUIDField()
    consultorio_id = serializers.UUIDField()
    consultorio_name = serializers.CharField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    status = serializers.CharField()
    kind = serializers.CharField()
    hours = serializers.DecimalField(max_digits=8, decimal_places=2)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class BillingPreviewSerializer(serializers.Serializer):
    owner_id = serializers.UUIDField()
    billing_mode = serializers.CharField(allow_null=True)
    period_start = serializers.DateTimeField(allow_null=True)
    period_end = serializers.DateTimeField(allow_null=True)
    bookings = BookingLineItemSerializer(many=True)
    totals = serializers.SerializerMethodField()

    def get_totals(self, obj) -> dict:
        return {key: str(value) for key, value in obj.totals.items()}
