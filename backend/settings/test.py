"""Settings used by the pytest suite."""

from __future__ import annotations

from .base import *  # noqa: F401,F403

DEBUG = False
SECRET_KEY = "test-secret-key"
JWT_AUTH_SECRET = "test-jwt-secret"
JWT_AUTH_ALGORITHM = "HS256"
JWT_AUTH_ALGORITHMS = None

ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
DEFAULT_FROM_EMAIL = "Apply Bureau <no-reply@applybureau.test>"
STAFF_NOTIFICATION_EMAILS = ("staff@applybureau.test",)
FRONTEND_URL = "https://app.applybureau.test"

CELERY_BROKER_URL = "memory://"
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.InMemoryStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "ROLE_BASED_THROTTLE_RATES": {
        "anon": "1000/min",
        "client": "1000/min",
        "staff": "1000/min",
    },
}
