"""ASGI configuration for the Apply Bureau backend."""

from __future__ import annotations

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.prod")

application = get_asgi_application()
