"""URL configuration for the Apply Bureau backend."""
from django.contrib import admin
from django.urls import include, path

from .health import health_view

urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health_view, name='health'),
    path('api/', include('apps.api.urls')),
]
