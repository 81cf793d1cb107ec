from django.apps import AppConfig


class PortalConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "portal"
    verbose_name = "MediPortal"

    def ready(self) -> None:
        # Registers the change broadcasting receivers.
        from . import signals  # noqa: F401
