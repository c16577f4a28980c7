"""Client accounts produced by redeeming a registration token."""

from django.conf import settings
from django.db import models


class Client(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_profile",
    )
    consultation = models.OneToOneField(
        "consultations.ConsultationRequest",
        on_delete=models.PROTECT,
        related_name="client",
    )
    full_name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=32, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):  # pragma: no cover - human readable representation
        return f"{self.full_name} <{self.email}>"
