from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.shared.base.models import SoftDeleteManager
from apps.shared.base.models import SoftDeleteModel
from apps.shared.base.models import SoftDeleteQuerySet


class EventQuerySet(SoftDeleteQuerySet):
    """QuerySet for events with ownership and lifecycle filters"""

    def for_organizer(self, user_id):
        """Events organized by specific user"""
        return self.filter(organizer_id=user_id)

    def published(self):
        return self.filter(status=Event.Status.PUBLISHED)

    def upcoming(self):
        """Future events"""
        return self.filter(event_date__gte=timezone.now())

    def past(self):
        """Past events"""
        return self.filter(event_date__lt=timezone.now())


class EventManager(SoftDeleteManager):
    """Custom manager for events"""

    def get_queryset(self):
        return EventQuerySet(self.model, using=self._db).alive()

    def for_organizer(self, user_id):
        return self.get_queryset().for_organizer(user_id)

    def published(self):
        return self.get_queryset().published()


class Event(SoftDeleteModel):
    """
    Event owned by an organizer.

    Read-only from the scan validation point of view: scans only look at
    status, event_date and max_attendees.
    """

    class Status(models.TextChoices):
        DRAFT = 'draft', _('Draft')
        PUBLISHED = 'published', _('Published')
        ARCHIVED = 'archived', _('Archived')

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='organized_events',
        verbose_name=_('Organizer'),
    )

    title = models.CharField(_('Title'), max_length=255)

    description = models.TextField(_('Description'), blank=True, default='')

    event_date = models.DateTimeField(_('Event Date'), null=True, blank=True, db_index=True)

    location = models.CharField(_('Location'), max_length=255, blank=True, default='')

    status = models.CharField(
        _('Status'),
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )

    max_attendees = models.PositiveIntegerField(
        _('Max Attendees'),
        null=True,
        blank=True,
        help_text=_('Upper bound of validated tickets; empty means unlimited'),
    )

    objects = EventManager()

    class Meta:
        db_table = 'events'
        verbose_name = _('Event')
        verbose_name_plural = _('Events')
        ordering = ['-event_date', 'title']
        indexes = [
            models.Index(fields=['organizer', 'status'], name='events_organizer_status_idx'),
            models.Index(fields=['status', 'event_date'], name='events_status_date_idx'),
        ]

    def __str__(self):
        return f'{self.title} ({self.event_date:%Y-%m-%d})' if self.event_date else self.title

    @property
    def is_published(self) -> bool:
        return self.status == self.Status.PUBLISHED

    @property
    def has_ended(self) -> bool:
        return self.event_date is not None and self.event_date < timezone.now()

    def save(self, *args, **kwargs):
        if self.title:
            self.title = self.title.strip()
        if self.location:
            self.location = self.location.strip()
        super().save(*args, **kwargs)
