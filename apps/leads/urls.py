"""
Leads URL Configuration
"""
from django.urls import path

from .views import (
    LeadDetailView,
    LeadListCreateView,
    LeadReferralDetailView,
    LeadReferralsView,
    LeadStatusListView,
)

urlpatterns = [
    path('', LeadListCreateView.as_view(), name='leads_list_create'),
    path('statuses', LeadStatusListView.as_view(), name='lead_statuses'),

    path('<str:lead_id>', LeadDetailView.as_view(), name='lead_detail'),
    path('<str:lead_id>/referrals', LeadReferralsView.as_view(), name='lead_referrals'),
    path('<str:lead_id>/referrals/<str:referral_id>', LeadReferralDetailView.as_view(), name='lead_referral_detail'),
]
