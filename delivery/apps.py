"""Django application configuration for the delivery engine."""

from django.apps import AppConfig
from django.conf import settings


class DeliveryConfig(AppConfig):
    """Configuration class for the delivery application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "delivery"
    verbose_name = "Notification delivery"

    def ready(self) -> None:
        """Configure structured logging once the app registry is loaded."""
        if getattr(settings, "TEST_MODE", False):
            return

        from delivery.logging import setup_logging  # noqa: PLC0415

        setup_logging()
