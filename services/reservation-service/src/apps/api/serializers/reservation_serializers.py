# services/reservation-service/src/apps/api/serializers/reservation_serializers.py
"""
Reservation Serializers
"""

from rest_framework import serializers

from apps.core.models import Consultorio, Reservation


class ConsultorioSerializer(serializers.ModelSerializer):

    class Meta:
        model = Consultorio
        fields = ['id', 'name', 'hourly_rate', 'is_active']


class ReservationSerializer(serializers.ModelSerializer):
    """Reservation as shown on the calendar."""

    consultorio_name = serializers.CharField(source='consultorio.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    kind_display = serializers.CharField(source='get_kind_display', read_only=True)

    class Meta:
        model = Reservation
        fields = [
            'id', 'consultorio', 'consultorio_name', 'owner_id',
            'start_time', 'end_time', 'kind', 'kind_display',
            'uses_shared_accessory', 'title',
            'status', 'status_display',
            'recurrence_id', 'recurrence_end_date',
            'reschedule_source_id', 'reschedule_deadline', 'was_rescheduled',
            'cancelled_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class SlotSerializer(serializers.Serializer):
    consultorio_id = serializers.UUIDField()
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()

    def validate(self, attrs):
        if attrs['end'] <= attrs['start']:
            raise serializers.ValidationError({'end': "La hora de fin debe ser posterior a la de inicio."})
        return attrs


class ReservationCreateSerializer(serializers.Serializer):
    """Booking request from the calendar dialog."""

    slots = SlotSerializer(many=True, allow_empty=False)
    kind = serializers.ChoiceField(choices=Reservation.Kind.choices, default=Reservation.Kind.ONE_OFF)
    uses_shared_accessory = serializers.BooleanField(default=False)
    title = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    horizon_months = serializers.IntegerField(min_value=1, max_value=12, required=False)
    reschedule_source_id = serializers.UUIDField(required=False, allow_null=True)
    owner_id = serializers.UUIDField(
        required=False,
        help_text="Book on behalf of another member (admin only)"
    )


class CancelSeriesSerializer(serializers.Serializer):
    from_start = serializers.DateTimeField(
        required=False,
        help_text="Cancel instances starting at or after this instant; defaults to the selected one"
    )


class RenewSeriesSerializer(serializers.Serializer):
    horizon_months = serializers.IntegerField(min_value=1, max_value=12, required=False)


class ConflictCheckSerializer(serializers.Serializer):
    slots = SlotSerializer(many=True, allow_empty=False)
    uses_shared_accessory = serializers.BooleanField(default=False)
