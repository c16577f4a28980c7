"""DRF exception handler rendering the ``{"error": ...}`` response shape."""

from __future__ import annotations

import logging

from django.db import DatabaseError
from jwt import PyJWTError
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.consultations.exceptions import (
    ConsultationError,
    DependencyError,
    InvalidInputError,
    RegistrationTokenError,
)
from apps.consultations.services import flatten_errors

logger = logging.getLogger(__name__)


def _view_name(context) -> str | None:
    view = (context or {}).get("view")
    return type(view).__name__ if view is not None else None


def _render_consultation_error(exc: ConsultationError) -> Response:
    if isinstance(exc, (RegistrationTokenError, DependencyError)):
        body = {"error": exc.public_message}
    else:
        body = {"error": exc.message}
    if isinstance(exc, InvalidInputError) and exc.fields:
        body["fields"] = exc.fields
    return Response(body, status=exc.status_code)


def _render_drf_response(exc, response: Response) -> Response:
    data = response.data
    if isinstance(exc, drf_exceptions.ValidationError) and isinstance(data, dict):
        fields = flatten_errors(data)
        response.data = {
            "error": "Invalid input: " + ", ".join(sorted(fields)),
            "fields": fields,
        }
    elif isinstance(data, dict) and "detail" in data:
        response.data = {"error": str(data["detail"])}
    elif isinstance(data, list):
        response.data = {"error": " ".join(str(item) for item in data)}
    return response


def api_exception_handler(exc, context):
    """Map domain and framework errors onto JSON error responses."""

    if isinstance(exc, ConsultationError):
        if isinstance(exc, DependencyError):
            logger.error(
                "Dependency failure in %s",
                _view_name(context),
                exc_info=exc,
                extra={"context": {"action": "api.dependency_error"}},
            )
        return _render_consultation_error(exc)

    if isinstance(exc, (DatabaseError, PyJWTError)):
        logger.error(
            "Unhandled %s in %s",
            type(exc).__name__,
            _view_name(context),
            exc_info=exc,
            extra={"context": {"action": "api.unhandled_error"}},
        )
        return _render_consultation_error(DependencyError())

    response = exception_handler(exc, context)
    if response is None:
        return None
    return _render_drf_response(exc, response)
