from django.urls import path

from apps.tickets.views import GenerationQueueStatsAPIView
from apps.tickets.views import GenerationWebhookAPIView

app_name = 'generation-internal'


urlpatterns = [
    path('webhook', GenerationWebhookAPIView.as_view(), name='generation-webhook'),  # POST
    path('queue-stats', GenerationQueueStatsAPIView.as_view(), name='generation-queue-stats'),  # GET
]
