"""Tests for the staff listing query builder."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.consultations.models import ConsultationRequest, ConsultationStatus
from apps.consultations.services import build_consultation_queryset, parse_positive_int


@pytest.fixture
def listing(consultation_factory, advance_to):
    ada = consultation_factory(full_name="Ada Lovelace", email="ada@example.com")
    grace = advance_to(
        consultation_factory(full_name="Grace Hopper", email="grace@navy.example"),
        ConsultationStatus.UNDER_REVIEW,
    )
    alan = advance_to(
        consultation_factory(full_name="Alan Turing", email="alan@example.com"),
        ConsultationStatus.REJECTED,
    )
    ConsultationRequest.objects.filter(pk=alan.pk).update(
        created_at=timezone.now() - timedelta(days=10)
    )
    return {"ada": ada, "grace": grace, "alan": alan}


@pytest.mark.django_db
def test_status_filter_accepts_comma_separated_values(listing):
    queryset, filters = build_consultation_queryset(
        {"status": "lead, under_review,bogus"}
    )

    assert {item.pk for item in queryset} == {listing["ada"].pk, listing["grace"].pk}
    assert filters.statuses == ["lead", "under_review"]


@pytest.mark.django_db
def test_search_matches_name_or_email(listing):
    by_name, _ = build_consultation_queryset({"search": "hopper"})
    by_email, _ = build_consultation_queryset({"search": "EXAMPLE.COM"})

    assert [item.pk for item in by_name] == [listing["grace"].pk]
    assert {item.pk for item in by_email} == {listing["ada"].pk, listing["alan"].pk}


@pytest.mark.django_db
def test_date_range_filters_on_submission_date(listing):
    today = timezone.now().date()
    recent, filters = build_consultation_queryset(
        {"date_from": (today - timedelta(days=1)).isoformat(), "date_to": "not-a-date"}
    )

    assert listing["alan"].pk not in {item.pk for item in recent}
    assert filters.date_to is None


@pytest.mark.django_db
def test_sort_by_name_and_unknown_sort_falls_back(listing):
    ordered, filters = build_consultation_queryset({"sort": "name"})
    fallback, fallback_filters = build_consultation_queryset({"sort": "-shoe_size"})

    assert [item.full_name for item in ordered] == [
        "Ada Lovelace",
        "Alan Turing",
        "Grace Hopper",
    ]
    assert filters.sort == "name"
    assert fallback_filters.sort == "-date"
    assert list(fallback)[-1].pk == listing["alan"].pk


@pytest.mark.parametrize(
    "value, expected", [(None, 5), ("3", 3), ("0", 5), ("-2", 5), ("abc", 5)]
)
def test_parse_positive_int(value, expected):
    assert parse_positive_int(value, 5) == expected
