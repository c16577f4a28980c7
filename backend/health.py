"""Simple health check view for uptime monitoring."""
from __future__ import annotations

from django.db import connections
from django.db.utils import OperationalError
from django.http import JsonResponse


def database_status() -> str:
    """Return ``ok``, ``unverified`` or ``unavailable`` for the default database."""

    connection = connections["default"]
    try:
        if connection.connection is not None and connection.is_usable():
            return "ok"
        if connection.connection is None:
            # Avoid opening new connections to keep the check fast.
            return "unverified"
        return "unavailable"
    except OperationalError:
        return "unavailable"


def health_view(request):
    """Return a lightweight service health response."""

    return JsonResponse({"status": "ok", "database": database_status()})
