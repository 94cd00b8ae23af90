"""
Scan serializers

Request validation for the scan endpoint and read shapes of scan logs.
"""

from rest_framework import serializers

from apps.scans.models import ScanLog


class CoordinatesSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class ScanContextSerializer(serializers.Serializer):
    location = serializers.CharField(required=False, allow_blank=True, max_length=255)
    device = serializers.CharField(required=False, allow_blank=True, max_length=255)
    checkpoint = serializers.CharField(required=False, allow_blank=True, max_length=255)
    coordinates = CoordinatesSerializer(required=False)


class ScanValidateSerializer(serializers.Serializer):
    """Validate a scanned ticket"""

    ticket_code = serializers.CharField(max_length=64, trim_whitespace=True)
    event_id = serializers.IntegerField(min_value=1)
    qr_data = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    scan_context = ScanContextSerializer(required=False)


class ScanPageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(required=False, default=20, min_value=1, max_value=100)


class ScanListQuerySerializer(ScanPageQuerySerializer):
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if attrs.get('date_from') and attrs.get('date_to') and attrs['date_from'] > attrs['date_to']:
            raise serializers.ValidationError({'date_to': 'Must not be earlier than date_from'})
        return attrs


class ScanLogSerializer(serializers.ModelSerializer):
    ticket_id = serializers.IntegerField(read_only=True)
    event_id = serializers.IntegerField(read_only=True)
    operator_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ScanLog
        fields = [
            'id',
            'ticket_id',
            'ticket_code',
            'event_id',
            'operator_id',
            'scan_time',
            'scan_context',
            'result',
            'result_code',
            'fraud_risk_level',
        ]
        read_only_fields = fields


class ScanResultSerializer(serializers.Serializer):
    """Successful admission"""

    valid = serializers.SerializerMethodField()
    ticket = serializers.SerializerMethodField()
    validated_at = serializers.DateTimeField()
    scan_id = serializers.IntegerField(source='scan_log.pk')
    fraud_analysis = serializers.SerializerMethodField()

    def get_valid(self, obj) -> bool:
        return True

    def get_ticket(self, obj) -> dict:
        ticket = obj.ticket
        guest = ticket.event_guest.guest
        return {
            'id': ticket.pk,
            'ticket_code': ticket.ticket_code,
            'event_id': ticket.event_guest.event_id,
            'guest_name': guest.full_name,
        }

    def get_fraud_analysis(self, obj) -> dict | None:
        return obj.fraud_analysis.to_dict() if obj.fraud_analysis else None
