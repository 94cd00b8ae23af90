from django.urls import path

from apps.scans.views import EventScanListAPIView
from apps.scans.views import EventScanStatsAPIView
from apps.tickets.views import EventGenerationJobListAPIView
from apps.tickets.views import EventGenerationJobStatsAPIView

app_name = 'events'


urlpatterns = [
    # Ticket generation jobs of an event
    path(
        '<int:event_id>/generation-jobs',
        EventGenerationJobListAPIView.as_view(),
        name='event-generation-jobs',
    ),  # GET
    path(
        '<int:event_id>/generation-jobs/stats',
        EventGenerationJobStatsAPIView.as_view(),
        name='event-generation-job-stats',
    ),  # GET
    # Scan audit
    path('<int:event_id>/scans', EventScanListAPIView.as_view(), name='event-scans'),  # GET
    path('<int:event_id>/scans/stats', EventScanStatsAPIView.as_view(), name='event-scan-stats'),  # GET
]
