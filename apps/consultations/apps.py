from __future__ import annotations

from django.apps import AppConfig


class ConsultationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.consultations"
    verbose_name = "Consultation Requests"

    def ready(self) -> None:  # pragma: no cover - import side effects only
        # Register the email template system checks.
        from . import checks  # noqa: F401

        return None
