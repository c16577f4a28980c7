import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


class ConsultationStatus(models.TextChoices):
    LEAD = "lead", "Lead"
    UNDER_REVIEW = "under_review", "Under review"
    APPROVED = "approved", "Approved"
    PAYMENT_VERIFIED = "payment_verified", "Payment verified"
    SCHEDULED = "scheduled", "Scheduled"
    CONFIRMED = "confirmed", "Confirmed"
    WAITLISTED = "waitlisted", "Waitlisted"
    REJECTED = "rejected", "Rejected"
    COMPLETED = "completed", "Completed"


# Statuses a request can only hold once payment verification has happened
# (or which are terminal/side branches that may follow it).
PAID_STATUSES = (
    ConsultationStatus.PAYMENT_VERIFIED,
    ConsultationStatus.SCHEDULED,
    ConsultationStatus.CONFIRMED,
    ConsultationStatus.COMPLETED,
    ConsultationStatus.WAITLISTED,
    ConsultationStatus.REJECTED,
)


class ConsultationRequest(models.Model):
    """A prospect's consultation request moving through the intake pipeline."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Contact details supplied by the prospect; never edited after intake.
    full_name = models.CharField(max_length=255)
    email = models.EmailField(db_index=True)
    phone = models.CharField(max_length=32, blank=True)
    linkedin_url = models.URLField(max_length=500, blank=True)

    # Intake
    role_targets = models.CharField(max_length=500, blank=True)
    location_preferences = models.CharField(max_length=500, blank=True)
    minimum_salary = models.CharField(max_length=100, blank=True)
    target_market = models.CharField(max_length=255, blank=True)
    employment_status = models.CharField(max_length=100, blank=True)
    package_interest = models.CharField(max_length=100, blank=True)
    area_of_concern = models.TextField(blank=True)
    consultation_window = models.CharField(max_length=255, blank=True)
    message = models.TextField(blank=True)
    preferred_slots = models.JSONField(default=list, blank=True)

    # Lifecycle
    status = models.CharField(
        max_length=32,
        choices=ConsultationStatus.choices,
        default=ConsultationStatus.LEAD,
        db_index=True,
    )
    status_reason = models.TextField(blank=True)

    # Payment
    payment_method = models.CharField(max_length=64, blank=True)
    payment_amount = models.DecimalField(
        max_digits=10, decimal_places=2, blank=True, null=True
    )
    payment_reference = models.CharField(max_length=255, blank=True)
    payment_verified = models.BooleanField(default=False)
    payment_verified_at = models.DateTimeField(blank=True, null=True)
    payment_verified_by = models.CharField(max_length=255, blank=True)
    package_tier = models.CharField(max_length=64, blank=True)

    # Registration
    registration_token = models.TextField(blank=True)
    token_expires_at = models.DateTimeField(blank=True, null=True)
    token_used = models.BooleanField(default=False)
    token_used_at = models.DateTimeField(blank=True, null=True)

    # Scheduling
    confirmed_slot_index = models.PositiveSmallIntegerField(blank=True, null=True)
    confirmed_slot = models.JSONField(blank=True, null=True)
    meeting_link = models.URLField(max_length=500, blank=True)
    admin_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)
        constraints = [
            models.CheckConstraint(
                condition=Q(payment_verified=False) | Q(status__in=PAID_STATUSES),
                name="consultations_payment_after_approval",
            ),
        ]

    def __str__(self):
        return f"{self.full_name} <{self.email}> ({self.status})"

    @property
    def has_registration_token(self) -> bool:
        return bool(self.registration_token)


class ConsultationStatusChange(models.Model):
    """History row written for every successful status transition."""

    consultation = models.ForeignKey(
        ConsultationRequest,
        on_delete=models.CASCADE,
        related_name="status_changes",
    )
    from_status = models.CharField(max_length=32, choices=ConsultationStatus.choices)
    to_status = models.CharField(max_length=32, choices=ConsultationStatus.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consultation_status_changes",
    )
    actor_label = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return f"{self.consultation_id}: {self.from_status} -> {self.to_status}"


class LogEntry(models.Model):
    """Persisted application log record for staff observability."""

    LEVEL_CHOICES = [
        ("DEBUG", "Debug"),
        ("INFO", "Info"),
        ("WARNING", "Warning"),
        ("ERROR", "Error"),
        ("CRITICAL", "Critical"),
    ]

    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    logger_name = models.CharField(max_length=255, db_index=True)
    level = models.CharField(max_length=16, choices=LEVEL_CHOICES)
    message = models.TextField()
    context = models.JSONField(blank=True, null=True)

    class Meta:
        ordering = ("-timestamp", "-id")

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"[{self.level}] {self.logger_name}: {self.message[:75]}"
