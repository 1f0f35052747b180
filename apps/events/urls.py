"""
Calendar URL Configuration
"""
from django.urls import path

from .views import (
    EventDayView,
    EventDetailView,
    EventLeadOptionsView,
    EventListCreateView,
    EventMonthView,
    EventPermissionView,
    EventPropertyOptionsView,
    EventTypeOptionsView,
    EventRangeView,
    EventSearchView,
    EventWeekView,
)

urlpatterns = [
    path('events', EventListCreateView.as_view(), name='calendar_events'),

    # Range endpoints (must come before <str:event_id> to avoid conflict)
    path('events/range', EventRangeView.as_view(), name='calendar_events_range'),
    path('events/month', EventMonthView.as_view(), name='calendar_events_month'),
    path('events/week', EventWeekView.as_view(), name='calendar_events_week'),
    path('events/day', EventDayView.as_view(), name='calendar_events_day'),
    path('events/search', EventSearchView.as_view(), name='calendar_events_search'),

    path('events/<str:event_id>', EventDetailView.as_view(), name='calendar_event_detail'),
    path('events/<str:event_id>/permissions', EventPermissionView.as_view(), name='calendar_event_permissions'),

    # Dropdown data for the event form
    path('properties', EventPropertyOptionsView.as_view(), name='calendar_property_options'),
    path('leads', EventLeadOptionsView.as_view(), name='calendar_lead_options'),
    path('event-types', EventTypeOptionsView.as_view(), name='calendar_event_types'),
]
