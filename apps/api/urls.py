"""URL configuration for the API application."""

from __future__ import annotations

from django.urls import path

from apps.api.views import (
    ConsultationDetailView,
    ConsultationHistoryView,
    ConsultationListCreateView,
    ContactSubmissionView,
    HealthSummaryView,
    RegisterClientView,
    ValidateRegistrationTokenView,
)

app_name = 'api'

urlpatterns = [
    path('health/', HealthSummaryView.as_view(), name='health-summary'),
    path('consultations/', ConsultationListCreateView.as_view(), name='consultation-list'),
    path(
        'consultations/validate-token/<str:token>/',
        ValidateRegistrationTokenView.as_view(),
        name='consultation-validate-token',
    ),
    path('consultations/register/', RegisterClientView.as_view(), name='consultation-register'),
    path(
        'consultations/<uuid:pk>/',
        ConsultationDetailView.as_view(),
        name='consultation-detail',
    ),
    path(
        'consultations/<uuid:pk>/history/',
        ConsultationHistoryView.as_view(),
        name='consultation-history',
    ),
    path('contact/', ContactSubmissionView.as_view(), name='contact'),
]
