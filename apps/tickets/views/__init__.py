from apps.tickets.views.generation_views import EventGenerationJobListAPIView
from apps.tickets.views.generation_views import EventGenerationJobStatsAPIView
from apps.tickets.views.generation_views import FailedGenerationJobsAPIView
from apps.tickets.views.generation_views import GenerationJobCancelAPIView
from apps.tickets.views.generation_views import GenerationJobCreateAPIView
from apps.tickets.views.generation_views import GenerationJobDetailAPIView
from apps.tickets.views.generation_views import GenerationQueueStatsAPIView
from apps.tickets.views.webhook_views import GenerationWebhookAPIView

__all__ = [
    'EventGenerationJobListAPIView',
    'EventGenerationJobStatsAPIView',
    'FailedGenerationJobsAPIView',
    'GenerationJobCancelAPIView',
    'GenerationJobCreateAPIView',
    'GenerationJobDetailAPIView',
    'GenerationQueueStatsAPIView',
    'GenerationWebhookAPIView',
]
