import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.shared.base.models import SoftDeleteManager
from apps.shared.base.models import SoftDeleteModel
from apps.shared.base.models import SoftDeleteQuerySet


class TicketGenerationJobQuerySet(SoftDeleteQuerySet):
    def for_event(self, event_id):
        return self.filter(event_id=event_id)

    def failed(self):
        return self.filter(status=TicketGenerationJob.Status.FAILED)


class TicketGenerationJobManager(SoftDeleteManager.from_queryset(TicketGenerationJobQuerySet)):
    def get_queryset(self):
        return TicketGenerationJobQuerySet(self.model, using=self._db).alive()


class TicketGenerationJob(SoftDeleteModel):
    """
    Lifecycle record of one render request.

    `uid` is the external identity of the job: the queue task id, the
    idempotency key and the key results are matched on.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        PROCESSING = 'processing', _('Processing')
        COMPLETED = 'completed', _('Completed')
        FAILED = 'failed', _('Failed')

    TERMINAL_STATUSES = ('completed', 'failed')

    # forward-only; terminal statuses have no exits
    ALLOWED_TRANSITIONS = {
        'pending': {'processing', 'failed'},
        'processing': {'completed', 'failed'},
        'completed': set(),
        'failed': set(),
    }

    uid = models.UUIDField(_('Job UID'), default=uuid.uuid4, unique=True, editable=False)
    event = models.ForeignKey(
        'events.Event',
        on_delete=models.CASCADE,
        related_name='generation_jobs',
        verbose_name=_('Event'),
    )
    status = models.CharField(
        _('Status'),
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    tickets_count = models.PositiveIntegerField(_('Tickets Count'), default=0)
    tickets_processed = models.PositiveIntegerField(_('Tickets Processed'), default=0)
    details = models.JSONField(_('Details'), default=dict, blank=True)
    error_message = models.TextField(_('Error Message'), blank=True, default='')
    started_at = models.DateTimeField(_('Started At'), null=True, blank=True)
    completed_at = models.DateTimeField(_('Completed At'), null=True, blank=True)

    objects = TicketGenerationJobManager()

    class Meta:
        db_table = 'ticket_generation_jobs'
        verbose_name = _('Ticket Generation Job')
        verbose_name_plural = _('Ticket Generation Jobs')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['event', 'status'], name='generation_jobs_event_idx'),
            models.Index(fields=['status', 'created_at'], name='generation_jobs_status_idx'),
        ]

    def __str__(self):
        return f'Job {self.uid} ({self.status})'

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())

    @property
    def processing_seconds(self) -> float | None:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None
