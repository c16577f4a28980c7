"""Production settings for the Apply Bureau backend."""

from __future__ import annotations

from .base import *  # noqa: F401,F403
from .base import (
    build_allowed_hosts,
    build_database_config,
    get_csrf_trusted_origins,
    get_env_bool,
    get_env_int,
    get_secret_key,
)

DEBUG = get_env_bool("DJANGO_DEBUG", default=False)

SECRET_KEY = get_secret_key(DEBUG)

ALLOWED_HOSTS = build_allowed_hosts(
    "PROD_ALLOWED_HOSTS",
    "ALLOWED_HOSTS",
    default=(".ondigitalocean.app",),
)

CSRF_TRUSTED_ORIGINS = get_csrf_trusted_origins(
    "PROD_CSRF_TRUSTED_ORIGINS",
    default=("https://applybureau.com",),
)

# Supabase requires TLS on its pooled Postgres connections.
DATABASES = {
    "default": build_database_config(
        "PROD_DATABASE_URL",
        fallback_env_vars=("DATABASE_URL", "SUPABASE_DB_URL"),
        conn_max_age=600,
    )
}
DATABASES["default"].setdefault("OPTIONS", {})
DATABASES["default"]["OPTIONS"].setdefault("sslmode", "require")

SECURE_SSL_REDIRECT = get_env_bool("DJANGO_SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = get_env_int("DJANGO_SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = get_env_bool(
    "DJANGO_SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True
)
