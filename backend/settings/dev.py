"""
Development settings for the Apply Bureau backend.

Reads a ``.env`` file at the project root so a local Supabase connection
string and Resend key can be supplied without exporting them.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import environ

# Load the .env file before base settings read the environment.
environ.Env.read_env(
    os.path.join(Path(__file__).resolve().parent.parent.parent, ".env")
)

from .base import *  # noqa: E402,F401,F403
from .base import (  # noqa: E402
    build_allowed_hosts,
    build_database_config,
    get_csrf_trusted_origins,
    get_env_bool,
    get_secret_key,
)

DEBUG = get_env_bool("DJANGO_DEBUG", default=True)
SECRET_KEY = get_secret_key(DEBUG)

ALLOWED_HOSTS = build_allowed_hosts(
    "DEV_ALLOWED_HOSTS",
    "ALLOWED_HOSTS",
    default=("localhost", "127.0.0.1"),
)

CSRF_TRUSTED_ORIGINS = get_csrf_trusted_origins(
    "DEV_CSRF_TRUSTED_ORIGINS",
    default=("http://localhost", "http://127.0.0.1"),
)

DATABASES = {
    "default": build_database_config(
        "DEV_DATABASE_URL",
        fallback_env_vars=("DATABASE_URL", "SUPABASE_DB_URL"),
        default_url="sqlite:///" + str(BASE_DIR / "db.sqlite3"),
        conn_max_age=0,
    )
}

EMAIL_BACKEND = os.getenv(
    "EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend"
)

SESSION_COOKIE_SECURE = get_env_bool("DJANGO_SESSION_COOKIE_SECURE", default=False)
CSRF_COOKIE_SECURE = get_env_bool("DJANGO_CSRF_COOKIE_SECURE", default=False)

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

_active_db = DATABASES["default"]
logging.getLogger(__name__).info(
    "Using database engine: %s | Name: %s | Host: %s",
    _active_db.get("ENGINE"),
    _active_db.get("NAME"),
    _active_db.get("HOST"),
)
