"""User model for organizers, scan operators and administrators."""

import uuid
from typing import ClassVar

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.accounts.managers.custom_user_manager import CustomUserManager
from apps.shared.base.models import BaseModel


class CustomUser(AbstractUser, BaseModel):
    """
    Email-based account.

    Organizers own events; operators scan tickets; `is_staff` marks platform
    administrators who may act on any event.
    """

    username = None
    first_name = models.CharField(_('first name'), max_length=150, blank=True)
    last_name = models.CharField(_('last name'), max_length=150, blank=True)

    email = models.EmailField(_('email address'), unique=True)

    user_uuid = models.UUIDField(
        _('User UUID'),
        default=uuid.uuid4,
        unique=True,
        editable=False,
        help_text=_('Stable identifier for external references'),
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS: ClassVar[list[str]] = []

    objects = CustomUserManager()

    class Meta:
        db_table = 'accounts_customuser'
        verbose_name = _('User')
        verbose_name_plural = _('Users')

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.__class__.objects.normalize_email(self.email)
        if self.first_name:
            self.first_name = self.first_name.strip()
        if self.last_name:
            self.last_name = self.last_name.strip()
        super().save(*args, **kwargs)

    @property
    def is_admin(self) -> bool:
        return bool(self.is_staff or self.is_superuser)

    @property
    def full_name(self) -> str:
        """Get full name (first + last)"""
        return f'{self.first_name} {self.last_name}'.strip()

    def __str__(self):
        return self.full_name or self.email

    def __repr__(self):
        return f"<CustomUser(id={self.id}, email='{self.email}', is_staff={self.is_staff})>"
