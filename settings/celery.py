"""Celery configuration for event_flow project."""

import os

from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'settings.main')

app = Celery('event_flow')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.update(
    worker_hijack_root_logger=False,
    worker_log_color=False,
    # Serialization settings (JSON for security)
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
)


@app.task(bind=True)
def health_check(self):
    """Health check task for monitoring."""
    return {'status': 'healthy', 'worker_id': self.request.id}
