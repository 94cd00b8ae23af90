from django.db import models
from django.db.models.functions import Lower
from django.utils.translation import gettext_lazy as _

from apps.shared.base.models import SoftDeleteModel


class Guest(SoftDeleteModel):
    """Person who can be invited to events. Email is unique case-insensitively."""

    first_name = models.CharField(_('First Name'), max_length=150)
    last_name = models.CharField(_('Last Name'), max_length=150, blank=True, default='')
    email = models.EmailField(_('Email'), null=True, blank=True)
    phone = models.CharField(_('Phone'), max_length=32, blank=True, default='')

    class Meta:
        db_table = 'guests'
        verbose_name = _('Guest')
        verbose_name_plural = _('Guests')
        ordering = ['last_name', 'first_name']
        constraints = [
            models.UniqueConstraint(
                Lower('email'),
                condition=models.Q(deleted_at__isnull=True, email__isnull=False),
                name='guests_email_ci_unique',
            ),
        ]

    def __str__(self):
        return self.full_name or self.email or f'Guest {self.pk}'

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip()
        if self.first_name:
            self.first_name = self.first_name.strip()
        if self.last_name:
            self.last_name = self.last_name.strip()
        super().save(*args, **kwargs)
