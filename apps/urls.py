"""URL Configuration

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.1/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include
from django.urls import path
from drf_spectacular.views import SpectacularAPIView
from drf_spectacular.views import SpectacularRedocView
from drf_spectacular.views import SpectacularSwaggerView

urlpatterns = [
    # Admin and Documentation
    path('admin/', admin.site.urls),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
    # Core API Routes
    path('api/events/', include('apps.events.urls')),  # Event-scoped jobs and scans
    path('api/tickets/', include('apps.tickets.urls')),  # Ticket generation jobs
    path('api/scans/', include('apps.scans.urls')),  # Scan validation
    # Renderer callbacks and operations
    path('internal/generation/', include('apps.tickets.internal_urls')),
]
