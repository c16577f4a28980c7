"""Django project package for the Apply Bureau backend."""

from .celery import celery_app

__all__ = ["celery_app"]
