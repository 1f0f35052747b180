"""
Viewings URL Configuration
"""
from django.urls import path

from .views import ViewingDetailView, ViewingListCreateView, ViewingsByAgentView, ViewingStatsView

urlpatterns = [
    path('', ViewingListCreateView.as_view(), name='viewings_list_create'),
    path('stats', ViewingStatsView.as_view(), name='viewing_stats'),
    path('agent/<str:agent_id>', ViewingsByAgentView.as_view(), name='viewings_by_agent'),

    path('<str:viewing_id>', ViewingDetailView.as_view(), name='viewing_detail'),
]
