"""System checks validating the email template registry at startup."""

from __future__ import annotations

import re

from django.core.checks import Error, register
from django.template import TemplateDoesNotExist
from django.template.loader import get_template


def _placeholder_pattern(variable: str) -> re.Pattern[str]:
    return re.compile(r"\{\{\s*" + re.escape(variable) + r"\b")


@register()
def check_email_templates(app_configs=None, **kwargs):
    from .emails import EMAIL_TEMPLATES

    errors = []
    for template in EMAIL_TEMPLATES.values():
        try:
            source = get_template(template.path).template.source
        except TemplateDoesNotExist:
            errors.append(
                Error(
                    f"Email template {template.path} does not exist.",
                    id="consultations.E001",
                )
            )
            continue

        for variable in template.required:
            if not _placeholder_pattern(variable).search(source):
                errors.append(
                    Error(
                        f"Email template {template.name} does not reference "
                        f"required variable '{variable}'.",
                        id="consultations.E002",
                    )
                )
    return errors


@register()
def check_transition_templates(app_configs=None, **kwargs):
    from .emails import EMAIL_TEMPLATES
    from .transitions import ALLOWED_TRANSITIONS, TRANSITION_EMAIL_TEMPLATES

    errors = []
    for from_status, targets in ALLOWED_TRANSITIONS.items():
        for to_status in sorted(targets):
            template_name = TRANSITION_EMAIL_TEMPLATES.get((from_status, to_status))
            if template_name is None:
                errors.append(
                    Error(
                        f"Transition {from_status} -> {to_status} has no email template.",
                        id="consultations.E003",
                    )
                )
            elif template_name not in EMAIL_TEMPLATES:
                errors.append(
                    Error(
                        f"Transition {from_status} -> {to_status} uses unknown "
                        f"template '{template_name}'.",
                        id="consultations.E004",
                    )
                )
    return errors
