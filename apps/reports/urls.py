"""
Reports URL Configuration
"""
from django.urls import path

from .views import (
    CommissionPreviewView,
    LeadSourcesView,
    ReportDetailView,
    ReportListCreateView,
    ReportRecalculateView,
)

urlpatterns = [
    path('monthly', ReportListCreateView.as_view(), name='reports_monthly'),
    path('monthly/<str:report_id>', ReportDetailView.as_view(), name='report_detail'),
    path('monthly/<str:report_id>/recalculate', ReportRecalculateView.as_view(), name='report_recalculate'),
    path('commission-preview', CommissionPreviewView.as_view(), name='commission_preview'),
    path('lead-sources', LeadSourcesView.as_view(), name='lead_sources'),
]
