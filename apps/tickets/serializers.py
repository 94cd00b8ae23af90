"""
Ticket generation serializers

Request validation for the generation endpoints and read shapes of
generation jobs.
"""

from rest_framework import serializers

from apps.tickets.models import TicketGenerationJob
from apps.tickets.services.generation_job_service import QR_FORMATS
from apps.tickets.services.generation_job_service import QR_SIZES

# =============================================================================
# REQUEST SERIALIZERS
# =============================================================================


class GenerationOptionsSerializer(serializers.Serializer):
    qr_format = serializers.ChoiceField(choices=QR_FORMATS, required=False)
    qr_size = serializers.ChoiceField(choices=QR_SIZES, required=False)
    pdf_format = serializers.BooleanField(required=False)
    include_logo = serializers.BooleanField(required=False)
    priority = serializers.IntegerField(required=False, min_value=1, max_value=10)


class GenerationJobCreateSerializer(serializers.Serializer):
    """Create a ticket generation job"""

    ticket_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )
    event_id = serializers.IntegerField(required=False, min_value=1)
    options = GenerationOptionsSerializer(required=False)


class GenerationJobListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TicketGenerationJob.Status.choices, required=False)
    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(required=False, default=20, min_value=1, max_value=100)


class FailedJobsQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, default=50, min_value=1, max_value=200)


# =============================================================================
# RESPONSE SERIALIZERS
# =============================================================================


class GenerationJobCreatedSerializer(serializers.ModelSerializer):
    job_uid = serializers.UUIDField(source='uid', read_only=True)

    class Meta:
        model = TicketGenerationJob
        fields = ['job_uid', 'status', 'tickets_count', 'created_at']
        read_only_fields = fields


class GenerationJobSerializer(serializers.ModelSerializer):
    """Generation job lifecycle as stored"""

    job_uid = serializers.UUIDField(source='uid', read_only=True)
    event_id = serializers.IntegerField(read_only=True)
    created_by = serializers.IntegerField(source='created_by_id', read_only=True)
    diagnostics = serializers.SerializerMethodField()
    summary = serializers.SerializerMethodField()

    class Meta:
        model = TicketGenerationJob
        fields = [
            'job_uid',
            'event_id',
            'status',
            'tickets_count',
            'tickets_processed',
            'error_message',
            'diagnostics',
            'summary',
            'created_by',
            'created_at',
            'started_at',
            'completed_at',
        ]
        read_only_fields = fields

    def get_diagnostics(self, obj) -> list:
        return obj.details.get('diagnostics', [])

    def get_summary(self, obj) -> dict | None:
        return obj.details.get('summary')


class GenerationJobStatusSerializer(GenerationJobSerializer):
    queue_status = serializers.SerializerMethodField()
    processing_time_ms = serializers.SerializerMethodField()
    ticket_results = serializers.SerializerMethodField()

    class Meta(GenerationJobSerializer.Meta):
        fields = GenerationJobSerializer.Meta.fields + ['queue_status', 'processing_time_ms', 'ticket_results']
        read_only_fields = fields

    def get_queue_status(self, obj) -> str | None:
        return self.context.get('queue_status')

    def get_processing_time_ms(self, obj) -> int | None:
        return obj.details.get('processing_time_ms')

    def get_ticket_results(self, obj) -> list:
        return obj.details.get('ticket_results', [])
