"""Error taxonomy for the consultation pipeline."""

from __future__ import annotations

from typing import Mapping, Sequence


class ConsultationError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    public_message = "Request could not be processed."

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)


class InvalidInputError(ConsultationError):
    """Missing or malformed fields supplied by the caller."""

    status_code = 400
    public_message = "Invalid input."

    def __init__(
        self,
        message: str | None = None,
        *,
        fields: Mapping[str, Sequence[str] | str] | None = None,
    ):
        self.fields = {
            name: [errors] if isinstance(errors, str) else [str(e) for e in errors]
            for name, errors in (fields or {}).items()
        }
        if message is None and self.fields:
            message = "Invalid input: " + ", ".join(sorted(self.fields))
        super().__init__(message)


class NotFoundError(ConsultationError):
    status_code = 404
    public_message = "Consultation request not found."


class InvalidTransitionError(ConsultationError):
    status_code = 409
    public_message = "Status change not allowed."

    def __init__(self, from_status: str, to_status: str, message: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message or f"Cannot move consultation from {from_status} to {to_status}."
        )


class RegistrationTokenError(ConsultationError):
    """Base for redemption failures; all share one public message."""

    status_code = 401
    public_message = "This registration link is invalid or has expired."


class TokenInvalidError(RegistrationTokenError):
    pass


class TokenExpiredError(RegistrationTokenError):
    pass


class TokenAlreadyUsedError(RegistrationTokenError):
    status_code = 403


class DependencyError(ConsultationError):
    """Datastore or signer failure; details are logged, never returned."""

    status_code = 500
    public_message = "An internal error occurred. Please try again later."
