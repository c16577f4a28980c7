"""Shared Django settings for the Apply Bureau backend."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Sequence

from django.core.exceptions import ImproperlyConfigured

import dj_database_url
import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration


BASE_DIR = Path(__file__).resolve().parent.parent.parent


def get_env_bool(name: str, default: bool = False) -> bool:
    """Return a boolean for an environment variable."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"true", "1", "yes", "on"}


def get_env_int(name: str, default: int) -> int:
    """Return an integer for ``name`` or ``default`` if unset."""

    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ImproperlyConfigured(
            f"Environment variable {name} must be an integer."
        ) from exc


def get_secret_key(debug: bool) -> str:
    """Fetch the Django secret key from the environment."""

    secret_key = os.getenv("DJANGO_SECRET_KEY") or os.getenv("SECRET_KEY")
    if secret_key:
        return secret_key
    if debug:
        return "django-insecure-development-key"
    raise ImproperlyConfigured(
        "DJANGO_SECRET_KEY must be set in production environments."
    )


DEFAULT_ALLOWED_HOSTS = (
    "localhost",
    "127.0.0.1",
)


def _normalise_list(values: Iterable[str]) -> list[str]:
    """Return a list of unique, stripped values preserving order."""

    normalised: list[str] = []
    for value in values:
        candidate = value.strip()
        if not candidate or candidate in normalised:
            continue
        normalised.append(candidate)
    return normalised


def split_env_list(name: str) -> list[str]:
    """Return the comma separated values stored in ``name``."""

    raw_value = os.getenv(name)
    if not raw_value:
        return []
    return _normalise_list(raw_value.split(","))


def build_allowed_hosts(
    *env_vars: str,
    default: Iterable[str] | None = None,
) -> list[str]:
    """Aggregate allowed hosts from the first populated environment variables."""

    hosts: list[str] = []
    for env_var in env_vars:
        hosts.extend(split_env_list(env_var))

    if not hosts:
        hosts.extend(DEFAULT_ALLOWED_HOSTS if default is None else default)

    return _normalise_list(hosts)


def get_csrf_trusted_origins(
    env_var: str,
    default: Iterable[str] | None = None,
) -> list[str]:
    """Fetch trusted origins allowing override per environment."""

    origins = split_env_list(env_var)
    if origins:
        return origins
    return list(default or [])


def build_database_config(
    primary_env_var: str,
    *,
    fallback_env_vars: Sequence[str] = (),
    default_url: str | None = None,
    test_env_vars: Sequence[str] = (),
    conn_max_age: int = 600,
) -> dict[str, object]:
    """Build a Django database configuration from connection URLs.

    Supabase exposes a regular Postgres connection string, so the hosted
    datastore is reached through ``DATABASE_URL`` like any other database.
    """

    database_url = None
    for candidate in (primary_env_var, *fallback_env_vars):
        database_url = os.getenv(candidate)
        if database_url:
            break
    database_url = database_url or default_url
    if not database_url:
        raise ImproperlyConfigured("A database connection string is required.")

    parsed = dj_database_url.parse(
        database_url,
        conn_max_age=conn_max_age,
        ssl_require=get_env_bool("DATABASE_SSL_REQUIRE", False),
    )

    for candidate in test_env_vars:
        test_url = os.getenv(candidate)
        if test_url:
            test_config = dj_database_url.parse(test_url, conn_max_age=0)
            parsed["TEST"] = {
                key: test_config[key]
                for key in ("NAME", "USER", "PASSWORD", "HOST", "PORT")
                if key in test_config
            }
            break
    return parsed


def _get_sample_rate(name: str, default: float) -> float:
    """Fetch a float configuration value from the environment."""

    value = os.getenv(name)
    if value is None:
        return default

    try:
        return float(value)
    except ValueError:
        return default


def init_sentry() -> None:
    """Configure Sentry monitoring when a DSN is available."""

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return None

    environment = (
        os.getenv("SENTRY_ENVIRONMENT")
        or os.getenv("DJANGO_ENV")
        or ("development" if get_env_bool("DJANGO_DEBUG", True) else "production")
    )

    sentry_sdk.init(
        dsn=dsn,
        integrations=[DjangoIntegration(), CeleryIntegration()],
        environment=environment,
        send_default_pii=False,
        traces_sample_rate=_get_sample_rate("SENTRY_TRACES_SAMPLE_RATE", 0.2),
    )
    sentry_sdk.set_tag("environment", environment)
    return None


_SETTINGS_MODULE = os.getenv("DJANGO_SETTINGS_MODULE", "")
_IS_LOCAL_SETTINGS = _SETTINGS_MODULE.endswith((".dev", ".test"))

DEBUG = get_env_bool("DJANGO_DEBUG", default=_IS_LOCAL_SETTINGS)
SECRET_KEY = get_secret_key(DEBUG or _IS_LOCAL_SETTINGS)

ALLOWED_HOSTS = build_allowed_hosts("ALLOWED_HOSTS")
CSRF_TRUSTED_ORIGINS = get_csrf_trusted_origins("CSRF_TRUSTED_ORIGINS")
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = get_env_bool("DJANGO_SECURE_SSL_REDIRECT", default=False)
SESSION_COOKIE_SECURE = get_env_bool("DJANGO_SESSION_COOKIE_SECURE", default=True)
CSRF_COOKIE_SECURE = get_env_bool("DJANGO_CSRF_COOKIE_SECURE", default=True)
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'apps.users',
    'apps.consultations.apps.ConsultationsConfig',
    'apps.clients',
    'apps.contact',
    'apps.api',
]

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'EXCEPTION_HANDLER': 'apps.api.exceptions.api_exception_handler',
    'DEFAULT_THROTTLE_CLASSES': [
        'apps.api.throttling.RoleBasedRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'role': '60/min',
    },
    'ROLE_BASED_THROTTLE_RATES': {
        'anon': os.getenv("THROTTLE_ANON_RATE", "20/min"),
        'client': os.getenv("THROTTLE_CLIENT_RATE", "60/min"),
        'staff': os.getenv("THROTTLE_STAFF_RATE", "120/min"),
    },
}

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'apps.users.middleware.JWTAuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'backend.urls'
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'backend.wsgi.application'

DATABASES = {
    'default': build_database_config(
        'DATABASE_URL',
        fallback_env_vars=('SUPABASE_DB_URL',),
        default_url='sqlite:///db.sqlite3',
        test_env_vars=('TEST_DATABASE_URL',),
    )
}

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {'min_length': get_env_int("PASSWORD_MIN_LENGTH", 6)},
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# Structured logging configuration persisting key workflow actions.
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(levelname)s %(name)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
        'database': {
            'level': 'INFO',
            'class': 'apps.consultations.logging.DatabaseLogHandler',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
        },
        'apps.consultations': {
            'handlers': ['console', 'database'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps.clients': {
            'handlers': ['console', 'database'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps.contact': {
            'handlers': ['console', 'database'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps.api': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}


# Email is delivered through Resend's SMTP relay; the API key doubles as the
# SMTP password for the fixed "resend" user.
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
EMAIL_BACKEND = os.getenv(
    "EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend"
)
EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.resend.com")
EMAIL_PORT = get_env_int("EMAIL_PORT", 587)
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "resend")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", RESEND_API_KEY)
EMAIL_USE_TLS = get_env_bool("EMAIL_USE_TLS", True)
EMAIL_TIMEOUT = get_env_int("EMAIL_TIMEOUT", 30)
DEFAULT_FROM_EMAIL = os.getenv(
    "DEFAULT_FROM_EMAIL", "Apply Bureau <no-reply@applybureau.com>"
)
STAFF_NOTIFICATION_EMAILS = tuple(split_env_list("STAFF_NOTIFICATION_EMAILS"))
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")


# Celery configuration shared with the worker process.
CELERY_BROKER_URL = os.getenv(
    "CELERY_BROKER_URL",
    os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0"),
)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", None)
CELERY_TASK_DEFAULT_QUEUE = os.getenv("CELERY_TASK_DEFAULT_QUEUE", "apply_bureau")
CELERY_TASK_ALWAYS_EAGER = get_env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_EAGER_PROPAGATES = get_env_bool(
    "CELERY_TASK_EAGER_PROPAGATES", CELERY_TASK_ALWAYS_EAGER
)
CELERY_TASK_ACKS_LATE = get_env_bool("CELERY_TASK_ACKS_LATE", False)
CELERY_TASK_SOFT_TIME_LIMIT = get_env_int("CELERY_TASK_SOFT_TIME_LIMIT", 60)
CELERY_TASK_TIME_LIMIT = get_env_int("CELERY_TASK_TIME_LIMIT", 300)


# JWT authentication configuration
JWT_AUTH_SECRET = os.getenv("JWT_AUTH_SECRET") or SECRET_KEY
JWT_AUTH_ALGORITHM = os.getenv("JWT_AUTH_ALGORITHM", "HS256")
_jwt_algorithms_env = os.getenv("JWT_AUTH_ALGORITHMS")
JWT_AUTH_ALGORITHMS = (
    tuple(algo.strip() for algo in _jwt_algorithms_env.split(",") if algo.strip())
    if _jwt_algorithms_env
    else None
)
CLIENT_SESSION_TTL_SECONDS = get_env_int("CLIENT_SESSION_TTL_SECONDS", 24 * 60 * 60)

# Registration links expire seven days after payment verification.
REGISTRATION_TOKEN_TTL_SECONDS = get_env_int(
    "REGISTRATION_TOKEN_TTL_SECONDS", 7 * 24 * 60 * 60
)


# Configure monitoring once settings are imported.
init_sentry()
