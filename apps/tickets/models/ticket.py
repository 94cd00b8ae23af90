import secrets

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.shared.base.models import SoftDeleteManager
from apps.shared.base.models import SoftDeleteModel
from apps.shared.base.models import SoftDeleteQuerySet


def generate_ticket_code() -> str:
    return f'TKT-{secrets.token_hex(6).upper()}'


class TicketType(SoftDeleteModel):
    """Ticket category of an event (free, paid, donation)"""

    class Kind(models.TextChoices):
        FREE = 'free', _('Free')
        PAID = 'paid', _('Paid')
        DONATION = 'donation', _('Donation')

    event = models.ForeignKey(
        'events.Event',
        on_delete=models.CASCADE,
        related_name='ticket_types',
        verbose_name=_('Event'),
    )
    name = models.CharField(_('Name'), max_length=255)
    description = models.TextField(_('Description'), blank=True, default='')
    type = models.CharField(_('Type'), max_length=20, choices=Kind.choices, default=Kind.FREE)
    quantity = models.PositiveIntegerField(_('Quantity'), default=0, help_text=_('0 means unlimited'))
    price = models.DecimalField(_('Price'), max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(_('Currency'), max_length=3, default='EUR')
    available_from = models.DateTimeField(_('Available From'), null=True, blank=True)
    available_to = models.DateTimeField(_('Available To'), null=True, blank=True)

    class Meta:
        db_table = 'ticket_types'
        verbose_name = _('Ticket Type')
        verbose_name_plural = _('Ticket Types')
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name='ticket_types_price_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.name} ({self.get_type_display()})'

    @property
    def is_unlimited(self) -> bool:
        return self.quantity == 0


class TicketTemplate(SoftDeleteModel):
    """Renderer template; source_files_path points at the renderer's assets"""

    name = models.CharField(_('Name'), max_length=255)
    description = models.TextField(_('Description'), blank=True, default='')
    preview_url = models.URLField(_('Preview URL'), max_length=500, blank=True, default='')
    source_files_path = models.CharField(_('Source Files Path'), max_length=500)
    is_customizable = models.BooleanField(_('Is Customizable'), default=False)

    class Meta:
        db_table = 'ticket_templates'
        verbose_name = _('Ticket Template')
        verbose_name_plural = _('Ticket Templates')

    def __str__(self):
        return self.name


class TicketQuerySet(SoftDeleteQuerySet):
    def for_event(self, event_id):
        return self.filter(event_guest__event_id=event_id)

    def validated(self):
        return self.filter(is_validated=True)

    def with_render_relations(self):
        """Joins needed to build the renderer payload"""
        return self.select_related(
            'event_guest__guest',
            'event_guest__event',
            'ticket_type',
            'ticket_template',
        )


class TicketManager(SoftDeleteManager):
    def get_queryset(self):
        return TicketQuerySet(self.model, using=self._db).alive()

    def for_event(self, event_id):
        return self.get_queryset().for_event(event_id)


class Ticket(SoftDeleteModel):
    """
    Admission ticket of one event guest.

    is_validated flips from False to True exactly once, through
    TicketDAL.consume_ticket.
    """

    ticket_code = models.CharField(_('Ticket Code'), max_length=64, unique=True, default=generate_ticket_code)
    qr_code_data = models.TextField(_('QR Code Data'), blank=True, default='')
    ticket_type = models.ForeignKey(
        TicketType,
        on_delete=models.PROTECT,
        related_name='tickets',
        verbose_name=_('Ticket Type'),
    )
    ticket_template = models.ForeignKey(
        TicketTemplate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tickets',
        verbose_name=_('Ticket Template'),
    )
    event_guest = models.ForeignKey(
        'events.EventGuest',
        on_delete=models.CASCADE,
        related_name='tickets',
        verbose_name=_('Event Guest'),
    )
    price = models.DecimalField(_('Price'), max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(_('Currency'), max_length=3, default='EUR')
    is_validated = models.BooleanField(_('Is Validated'), default=False, db_index=True)
    validated_at = models.DateTimeField(_('Validated At'), null=True, blank=True)
    ticket_file_url = models.CharField(_('Ticket File URL'), max_length=1000, blank=True, default='')
    generated_at = models.DateTimeField(_('Generated At'), null=True, blank=True)

    objects = TicketManager()

    class Meta:
        db_table = 'tickets'
        verbose_name = _('Ticket')
        verbose_name_plural = _('Tickets')
        indexes = [
            models.Index(fields=['event_guest', 'is_validated'], name='tickets_guest_validated_idx'),
        ]

    def __str__(self):
        return self.ticket_code
