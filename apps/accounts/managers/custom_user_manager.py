"""
CustomUserManager for the email-based user model.
"""

from django.contrib.auth.models import BaseUserManager


class CustomUserManager(BaseUserManager):
    """Manager creating users identified by email instead of username."""

    use_in_migrations = True

    def normalize_email(self, email):
        """Normalize email address (lowercase)"""
        if email:
            return super().normalize_email(email).lower()
        return email

    def create_user(self, email: str, password: str | None = None, **extra_fields):
        """
        Create a regular user.

        Raises:
            ValueError: If email is missing
        """
        if not email:
            raise ValueError('Users must have an email address')

        extra_fields.setdefault('is_active', True)

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str, **extra_fields):
        """Create administrator with full privileges."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if not extra_fields.get('is_staff'):
            raise ValueError('Superuser must have is_staff=True')
        if not extra_fields.get('is_superuser'):
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)

    def administrators(self):
        return self.filter(is_staff=True, is_active=True)
