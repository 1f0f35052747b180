"""
Django Admin Configuration for EstateHub

Provides admin interface for viewing and managing data.
"""
from django.contrib import admin

from .models import AgentReport, CalendarEvent, Lead, Property, PropertyStatus, Referral, TeamMembership, User, Viewing


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin interface for users."""
    list_display = ['name', 'email', 'role', 'is_active', 'created_at']
    list_filter = ['role', 'is_active']
    search_fields = ['name', 'email']
    readonly_fields = ['id', 'created_at', 'updated_at']
    ordering = ['name']


@admin.register(TeamMembership)
class TeamMembershipAdmin(admin.ModelAdmin):
    list_display = ['team_leader', 'agent', 'is_active', 'assigned_at']
    list_filter = ['is_active']


@admin.register(PropertyStatus)
class PropertyStatusAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'can_be_referred', 'is_active']


class ReferralInline(admin.TabularInline):
    model = Referral
    extra = 0
    readonly_fields = ['external']


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    """Admin interface for properties."""
    list_display = ['reference_number', 'status', 'property_type', 'location', 'agent', 'price', 'closed_date']
    list_filter = ['status', 'property_type']
    search_fields = ['reference_number', 'location', 'owner_name']
    readonly_fields = ['id', 'referrals_count', 'created_at', 'updated_at']
    inlines = [ReferralInline]


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ['customer_name', 'agent', 'status', 'reference_source', 'date']
    search_fields = ['customer_name', 'phone_number']


@admin.register(Viewing)
class ViewingAdmin(admin.ModelAdmin):
    list_display = ['viewing_date', 'viewing_time', 'agent', 'property', 'lead', 'status', 'is_serious']
    list_filter = ['status', 'is_serious']


@admin.register(CalendarEvent)
class CalendarEventAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'start_time', 'end_time', 'created_by', 'assigned_to']
    list_filter = ['type']
    search_fields = ['title', 'location']


@admin.register(AgentReport)
class AgentReportAdmin(admin.ModelAdmin):
    """Admin interface for commission reports."""
    list_display = ['agent', 'start_date', 'end_date', 'sales_count', 'total_commission']
    list_filter = ['start_date']
    readonly_fields = ['id', 'created_at', 'updated_at']
