"""
URL Configuration for EstateHub Backend API

All routes are prefixed with /api/.
"""
from django.contrib import admin
from django.urls import include, path

from apps.core.views import health_check

urlpatterns = [
    # Django Admin
    path('admin/', admin.site.urls),

    # Health check endpoint (public)
    path('api/health', health_check, name='health_check'),

    # Calendar endpoints
    path('api/calendar/', include('apps.events.urls')),

    # Properties endpoints
    path('api/properties/', include('apps.properties.urls')),

    # Leads endpoints
    path('api/leads/', include('apps.leads.urls')),

    # Reports endpoints
    path('api/reports/', include('apps.reports.urls')),

    # Viewings endpoints
    path('api/viewings/', include('apps.viewings.urls')),
]
