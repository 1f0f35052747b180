"""
Properties URL Configuration
"""
from django.urls import path

from .views import (
    PropertiesByAgentView,
    PropertyDetailView,
    PropertyListCreateView,
    PropertyReferralsView,
    PropertyStatsView,
)

urlpatterns = [
    path('', PropertyListCreateView.as_view(), name='properties_list_create'),

    # Fixed paths (must come before <str:property_id> to avoid conflict)
    path('stats/overview', PropertyStatsView.as_view(), name='properties_stats'),
    path('agent/<str:agent_id>', PropertiesByAgentView.as_view(), name='properties_by_agent'),

    path('<str:property_id>', PropertyDetailView.as_view(), name='property_detail'),
    path('<str:property_id>/referrals', PropertyReferralsView.as_view(), name='property_referrals'),
]
