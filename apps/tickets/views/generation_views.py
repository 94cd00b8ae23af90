import logging

from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.permissions import IsAuthenticated

from apps.shared.base.base_api_view import BaseAPIView
from apps.shared.container import get_generation_job_service
from apps.shared.container import get_queue_producer
from apps.shared.utils.responses import api_response
from apps.tickets.serializers import FailedJobsQuerySerializer
from apps.tickets.serializers import GenerationJobCreatedSerializer
from apps.tickets.serializers import GenerationJobCreateSerializer
from apps.tickets.serializers import GenerationJobListQuerySerializer
from apps.tickets.serializers import GenerationJobSerializer
from apps.tickets.serializers import GenerationJobStatusSerializer

logger = logging.getLogger(__name__)


class BaseGenerationAPIView(BaseAPIView):
    """Base view for ticket generation operations"""

    permission_classes = [IsAuthenticated]
    _service = None

    def get_service(self):
        if self._service is None:
            self._service = get_generation_job_service()
        return self._service


@extend_schema(tags=["Ticket Generation"])
class GenerationJobCreateAPIView(BaseGenerationAPIView):
    """Create a ticket generation job"""

    serializer_class = GenerationJobCreateSerializer

    @extend_schema(request=GenerationJobCreateSerializer, responses={201: GenerationJobCreatedSerializer})
    def post(self, request):
        serializer = GenerationJobCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        job = self.get_service().create_job(
            ticket_ids=serializer.validated_data['ticket_ids'],
            options=serializer.validated_data.get('options'),
            event_id=serializer.validated_data.get('event_id'),
            user=request.user,
        )
        return api_response(GenerationJobCreatedSerializer(job).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Ticket Generation"])
class GenerationJobDetailAPIView(BaseGenerationAPIView):
    """Lifecycle of one generation job, with the queue's view of it"""

    @extend_schema(responses={200: GenerationJobStatusSerializer})
    def get(self, request, job_uid):
        view = self.get_service().get_job_status(job_uid=job_uid, user=request.user)
        serializer = GenerationJobStatusSerializer(view.job, context={'queue_status': view.queue_status})
        return api_response(serializer.data)


@extend_schema(tags=["Ticket Generation"])
class GenerationJobCancelAPIView(BaseGenerationAPIView):

    @extend_schema(request=None, responses={200: GenerationJobSerializer})
    def post(self, request, job_uid):
        job = self.get_service().cancel_job(job_uid=job_uid, user=request.user)
        return api_response(GenerationJobSerializer(job).data)


@extend_schema(tags=["Ticket Generation"])
class FailedGenerationJobsAPIView(BaseGenerationAPIView):
    """Recent failed jobs of the caller's events (all events for admins)"""

    @extend_schema(parameters=[FailedJobsQuerySerializer], responses={200: GenerationJobSerializer(many=True)})
    def get(self, request):
        query_serializer = FailedJobsQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        jobs = self.get_service().list_failed_jobs(user=request.user, limit=query_serializer.validated_data['limit'])
        return api_response({'jobs': GenerationJobSerializer(jobs, many=True).data, 'count': len(jobs)})


@extend_schema(tags=["Ticket Generation"])
class EventGenerationJobListAPIView(BaseGenerationAPIView):
    """Paginated generation jobs of an event"""

    @extend_schema(
        parameters=[
            GenerationJobListQuerySerializer,
            OpenApiParameter('event_id', int, OpenApiParameter.PATH),
        ],
        responses={200: GenerationJobSerializer(many=True)},
    )
    def get(self, request, event_id):
        query_serializer = GenerationJobListQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        filters = query_serializer.validated_data

        result = self.get_service().list_event_jobs(
            event_id=event_id,
            user=request.user,
            status=filters.get('status'),
            page=filters['page'],
            limit=filters['limit'],
        )
        return api_response(
            {
                'jobs': GenerationJobSerializer(result['jobs'], many=True).data,
                'pagination': result['pagination'],
            }
        )


@extend_schema(tags=["Ticket Generation"])
class EventGenerationJobStatsAPIView(BaseGenerationAPIView):

    @extend_schema(parameters=[OpenApiParameter('event_id', int, OpenApiParameter.PATH)])
    def get(self, request, event_id):
        stats = self.get_service().get_job_stats(event_id=event_id, user=request.user)
        return api_response(stats)


@extend_schema(tags=["Internal"])
class GenerationQueueStatsAPIView(BaseAPIView):
    """Depth of both generation queues and registry counters"""

    permission_classes = [IsAdminUser]

    def get_service(self):
        return get_queue_producer()

    def get(self, request):
        return api_response(self.get_service().get_queue_stats())
