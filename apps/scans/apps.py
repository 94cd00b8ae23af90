from django.apps import AppConfig


class ScansConfig(AppConfig):
    """Configuration for the Scans application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.scans'
    verbose_name = 'Scan Validation'
