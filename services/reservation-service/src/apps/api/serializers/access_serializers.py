# services/reservation-service/src/apps/api/serializers/access_serializers.py
"""
Access Control Serializers
"""

from rest_framework import serializers

from apps.core.models import AccessLog, AccessNameRule


class AccessLogSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = AccessLog
        fields = [
            'id', 'access_time', 'access_name', 'content',
            'status', 'status_display', 'user_id', 'reservation_id',
            'notified', 'created_at',
        ]
        read_only_fields = fields


class AccessNameRuleSerializer(serializers.ModelSerializer):

    class Meta:
        model = AccessNameRule
        fields = ['id', 'access_name', 'action', 'created_at']
        read_only_fields = ['id', 'created_at']
        # Upserted case-insensitively by the service
        validators = []


class AccessImportSerializer(serializers.Serializer):
    file = serializers.FileField()

    def validate_file(self, value):
        if not value.name.lower().endswith('.xlsx'):
            raise serializers.ValidationError("El archivo debe ser una planilla .xlsx")
        return value


class AccessAliasSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    access_name = serializers.CharField(max_length=255)
