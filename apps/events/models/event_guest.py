import secrets

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.shared.base.models import SoftDeleteManager
from apps.shared.base.models import SoftDeleteModel
from apps.shared.base.models import SoftDeleteQuerySet


def generate_invitation_code() -> str:
    return secrets.token_urlsafe(12)


class EventGuestQuerySet(SoftDeleteQuerySet):
    """Custom QuerySet for event guests"""

    def for_event(self, event_id):
        return self.filter(event_id=event_id)

    def confirmed(self):
        return self.filter(status=EventGuest.Status.CONFIRMED)

    def present(self):
        return self.filter(is_present=True)


class EventGuestManager(SoftDeleteManager):
    def get_queryset(self):
        return EventGuestQuerySet(self.model, using=self._db).alive()

    def for_event(self, event_id):
        return self.get_queryset().for_event(event_id)


class EventGuest(SoftDeleteModel):
    """Guest attached to an event through an invitation"""

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        CONFIRMED = 'confirmed', _('Confirmed')
        CANCELLED = 'cancelled', _('Cancelled')

    # cancelled is terminal; there is no way back to pending
    ALLOWED_TRANSITIONS = {
        'pending': {'confirmed', 'cancelled'},
        'confirmed': {'cancelled'},
        'cancelled': set(),
    }

    event = models.ForeignKey(
        'events.Event',
        on_delete=models.CASCADE,
        related_name='event_guests',
        verbose_name=_('Event'),
    )
    guest = models.ForeignKey(
        'events.Guest',
        on_delete=models.CASCADE,
        related_name='event_guests',
        verbose_name=_('Guest'),
    )
    invitation_code = models.CharField(
        _('Invitation Code'),
        max_length=64,
        unique=True,
        default=generate_invitation_code,
    )
    status = models.CharField(
        _('Status'),
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    is_present = models.BooleanField(_('Is Present'), default=False)
    check_in_time = models.DateTimeField(_('Check-in Time'), null=True, blank=True)

    objects = EventGuestManager()

    class Meta:
        db_table = 'event_guests'
        verbose_name = _('Event Guest')
        verbose_name_plural = _('Event Guests')
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'guest'],
                condition=models.Q(deleted_at__isnull=True),
                name='event_guests_event_guest_unique',
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'status'], name='event_guests_status_idx'),
        ]

    def __str__(self):
        return f'{self.guest} @ {self.event}'

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())
