"""Initial schema for the ``consultations`` application."""

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("lead", "Lead"),
    ("under_review", "Under review"),
    ("approved", "Approved"),
    ("payment_verified", "Payment verified"),
    ("scheduled", "Scheduled"),
    ("confirmed", "Confirmed"),
    ("waitlisted", "Waitlisted"),
    ("rejected", "Rejected"),
    ("completed", "Completed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ConsultationRequest",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("full_name", models.CharField(max_length=255)),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("linkedin_url", models.URLField(blank=True, max_length=500)),
                ("role_targets", models.CharField(blank=True, max_length=500)),
                ("location_preferences", models.CharField(blank=True, max_length=500)),
                ("minimum_salary", models.CharField(blank=True, max_length=100)),
                ("target_market", models.CharField(blank=True, max_length=255)),
                ("employment_status", models.CharField(blank=True, max_length=100)),
                ("package_interest", models.CharField(blank=True, max_length=100)),
                ("area_of_concern", models.TextField(blank=True)),
                ("consultation_window", models.CharField(blank=True, max_length=255)),
                ("message", models.TextField(blank=True)),
                ("preferred_slots", models.JSONField(blank=True, default=list)),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES,
                        db_index=True,
                        default="lead",
                        max_length=32,
                    ),
                ),
                ("status_reason", models.TextField(blank=True)),
                ("payment_method", models.CharField(blank=True, max_length=64)),
                (
                    "payment_amount",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, max_length=255)),
                ("payment_verified", models.BooleanField(default=False)),
                ("payment_verified_at", models.DateTimeField(blank=True, null=True)),
                ("payment_verified_by", models.CharField(blank=True, max_length=255)),
                ("package_tier", models.CharField(blank=True, max_length=64)),
                ("registration_token", models.TextField(blank=True)),
                ("token_expires_at", models.DateTimeField(blank=True, null=True)),
                ("token_used", models.BooleanField(default=False)),
                ("token_used_at", models.DateTimeField(blank=True, null=True)),
                (
                    "confirmed_slot_index",
                    models.PositiveSmallIntegerField(blank=True, null=True),
                ),
                ("confirmed_slot", models.JSONField(blank=True, null=True)),
                ("meeting_link", models.URLField(blank=True, max_length=500)),
                ("admin_notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("-created_at",),
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("payment_verified", False))
                        | models.Q(
                            (
                                "status__in",
                                (
                                    "payment_verified",
                                    "scheduled",
                                    "confirmed",
                                    "completed",
                                    "waitlisted",
                                    "rejected",
                                ),
                            )
                        ),
                        name="consultations_payment_after_approval",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LogEntry",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("timestamp", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("logger_name", models.CharField(db_index=True, max_length=255)),
                (
                    "level",
                    models.CharField(
                        choices=[
                            ("DEBUG", "Debug"),
                            ("INFO", "Info"),
                            ("WARNING", "Warning"),
                            ("ERROR", "Error"),
                            ("CRITICAL", "Critical"),
                        ],
                        max_length=16,
                    ),
                ),
                ("message", models.TextField()),
                ("context", models.JSONField(blank=True, null=True)),
            ],
            options={
                "ordering": ("-timestamp", "-id"),
            },
        ),
        migrations.CreateModel(
            name="ConsultationStatusChange",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("from_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("to_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("actor_label", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="consultation_status_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "consultation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_changes",
                        to="consultations.consultationrequest",
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at", "-id"),
            },
        ),
    ]
