from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.shared.base.models import BaseModel


class ScanLogQuerySet(models.QuerySet):
    def for_event(self, event_id):
        return self.filter(event_id=event_id)

    def for_ticket(self, ticket_id):
        return self.filter(ticket_id=ticket_id)

    def valid(self):
        return self.filter(result=ScanLog.Result.VALID)


class ScanLog(BaseModel):
    """
    Audit row of one scan attempt.

    Append-only: written for every attempt past input validation, whether the
    ticket was admitted or not. ticket is empty when the code did not resolve.
    """

    class Result(models.TextChoices):
        VALID = 'valid', _('Valid')
        INVALID = 'invalid', _('Invalid')

    ticket = models.ForeignKey(
        'tickets.Ticket',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='scan_logs',
        verbose_name=_('Ticket'),
    )
    ticket_code = models.CharField(_('Ticket Code'), max_length=64, db_index=True)
    event = models.ForeignKey(
        'events.Event',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='scan_logs',
        verbose_name=_('Event'),
    )
    operator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='scan_logs',
        verbose_name=_('Operator'),
    )
    scan_time = models.DateTimeField(_('Scan Time'), default=timezone.now, db_index=True)
    scan_context = models.JSONField(_('Scan Context'), default=dict, blank=True)
    result = models.CharField(_('Result'), max_length=10, choices=Result.choices)
    result_code = models.CharField(_('Result Code'), max_length=64)
    fraud_risk_level = models.CharField(_('Fraud Risk Level'), max_length=16, blank=True, default='')

    objects = ScanLogQuerySet.as_manager()

    class Meta:
        db_table = 'scan_logs'
        verbose_name = _('Scan Log')
        verbose_name_plural = _('Scan Logs')
        ordering = ['-scan_time']
        indexes = [
            models.Index(fields=['event', 'scan_time'], name='scan_logs_event_time_idx'),
            models.Index(fields=['ticket', 'scan_time'], name='scan_logs_ticket_time_idx'),
        ]

    def __str__(self):
        return f'{self.ticket_code} {self.result} at {self.scan_time:%Y-%m-%d %H:%M:%S}'
