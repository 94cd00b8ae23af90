from django.urls import path

from apps.scans.views import TicketScanListAPIView
from apps.tickets.views import FailedGenerationJobsAPIView
from apps.tickets.views import GenerationJobCancelAPIView
from apps.tickets.views import GenerationJobCreateAPIView
from apps.tickets.views import GenerationJobDetailAPIView

app_name = 'tickets'


urlpatterns = [
    path('generation-jobs', GenerationJobCreateAPIView.as_view(), name='generation-job-create'),  # POST
    path('generation-jobs/failed', FailedGenerationJobsAPIView.as_view(), name='generation-jobs-failed'),  # GET
    path(
        'generation-jobs/<uuid:job_uid>',
        GenerationJobDetailAPIView.as_view(),
        name='generation-job-detail',
    ),  # GET
    path(
        'generation-jobs/<uuid:job_uid>/cancel',
        GenerationJobCancelAPIView.as_view(),
        name='generation-job-cancel',
    ),  # POST
    path('<int:ticket_id>/scans', TicketScanListAPIView.as_view(), name='ticket-scans'),  # GET
]
