"""
Core Serializers for EstateHub Django Backend

Read serializers for the API payloads. Calendar events keep the camelCase
keys the calendar client consumes; everything else is snake_case.
"""
from rest_framework import serializers

from .constants import REDACTED_VALUE
from .models import AgentReport, CalendarEvent, Lead, LeadReferral, LeadStatus, Property, Referral, User, Viewing
from .utils import format_datetime


class UserSummarySerializer(serializers.ModelSerializer):
    """Minimal user info for nested display."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role']
        read_only_fields = fields


# =============================================================================
# Calendar
# =============================================================================

class CalendarEventSerializer(serializers.ModelSerializer):
    """Read serializer for calendar events."""

    start = serializers.SerializerMethodField()
    end = serializers.SerializerMethodField()
    allDay = serializers.BooleanField(source='all_day')
    attendees = serializers.SerializerMethodField()
    createdBy = serializers.UUIDField(source='created_by_id', allow_null=True)
    createdByName = serializers.CharField(source='created_by.name', default=None)
    assignedTo = serializers.UUIDField(source='assigned_to_id', allow_null=True)
    assignedToName = serializers.CharField(source='assigned_to.name', default=None)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')
    propertyId = serializers.UUIDField(source='property_id', allow_null=True)
    propertyReference = serializers.CharField(source='property.reference_number', default=None)
    propertyLocation = serializers.CharField(source='property.location', default=None)
    leadId = serializers.UUIDField(source='lead_id', allow_null=True)
    leadName = serializers.CharField(source='lead.customer_name', default=None)
    leadPhone = serializers.CharField(source='lead.phone_number', default=None)

    class Meta:
        model = CalendarEvent
        fields = [
            'id', 'title', 'description', 'start', 'end', 'allDay', 'color',
            'type', 'location', 'attendees', 'notes', 'createdBy', 'createdByName',
            'assignedTo', 'assignedToName', 'createdAt', 'updatedAt', 'propertyId',
            'propertyReference', 'propertyLocation', 'leadId', 'leadName', 'leadPhone',
        ]
        read_only_fields = fields

    def get_start(self, obj):
        return format_datetime(obj.start_time)

    def get_end(self, obj):
        return format_datetime(obj.end_time)

    def get_attendees(self, obj):
        return obj.get_attendee_names()


# =============================================================================
# Properties
# =============================================================================

class ReferralSerializer(serializers.ModelSerializer):
    """Read serializer for property referrals."""

    employee_id = serializers.UUIDField(allow_null=True)
    employee_name = serializers.CharField(source='employee.name', default=None)

    class Meta:
        model = Referral
        fields = ['id', 'name', 'type', 'employee_id', 'employee_name', 'date', 'external', 'created_at']
        read_only_fields = fields


class PropertySerializer(serializers.ModelSerializer):
    """
    Read serializer for properties.

    Pass `reveal_owner` in the context (a callable taking the property) to
    redact owner name and phone for viewers who may not see them.
    """

    status_id = serializers.UUIDField()
    status_name = serializers.CharField(source='status.name')
    status_code = serializers.CharField(source='status.code')
    status_can_be_referred = serializers.BooleanField(source='status.can_be_referred')
    agent_id = serializers.UUIDField(allow_null=True)
    agent_name = serializers.CharField(source='agent.name', default=None)
    created_by_id = serializers.UUIDField(allow_null=True)
    owner_id = serializers.UUIDField(allow_null=True)
    referrals = ReferralSerializer(many=True, read_only=True)

    class Meta:
        model = Property
        fields = [
            'id', 'reference_number', 'status_id', 'status_name', 'status_code',
            'status_can_be_referred', 'property_type', 'location', 'category',
            'building_name', 'owner_id', 'owner_name', 'phone_number', 'surface',
            'price', 'agent_id', 'agent_name', 'created_by_id', 'notes',
            'property_url', 'closed_date', 'referrals_count', 'referrals',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        reveal_owner = self.context.get('reveal_owner')
        if reveal_owner is not None and not reveal_owner(instance):
            data['owner_name'] = REDACTED_VALUE
            data['phone_number'] = REDACTED_VALUE
        return data


# =============================================================================
# Leads
# =============================================================================

class LeadStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = LeadStatus
        fields = ['id', 'name', 'code', 'color', 'can_be_referred']
        read_only_fields = fields


class LeadReferralSerializer(serializers.ModelSerializer):
    agent_id = serializers.UUIDField(allow_null=True)
    agent_name = serializers.CharField(source='agent.name', default=None)

    class Meta:
        model = LeadReferral
        fields = ['id', 'name', 'type', 'agent_id', 'agent_name', 'referral_date', 'external', 'created_at']
        read_only_fields = fields


class LeadSerializer(serializers.ModelSerializer):
    """Read serializer for leads."""

    agent_id = serializers.UUIDField(allow_null=True)
    agent_name = serializers.CharField(source='agent.name', default=None)
    added_by_id = serializers.UUIDField(allow_null=True)
    added_by_name = serializers.CharField(source='added_by.name', default=None)
    status_id = serializers.UUIDField(allow_null=True)
    status_name = serializers.CharField(source='status.name', default=None)
    status_can_be_referred = serializers.BooleanField(source='status.can_be_referred', default=True)
    referrals = LeadReferralSerializer(many=True, read_only=True)

    class Meta:
        model = Lead
        fields = [
            'id', 'customer_name', 'phone_number', 'agent_id', 'agent_name',
            'added_by_id', 'added_by_name', 'status_id', 'status_name',
            'status_can_be_referred', 'reference_source', 'date', 'notes',
            'referrals', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


# =============================================================================
# Viewings
# =============================================================================

class ViewingSerializer(serializers.ModelSerializer):
    """Read serializer for viewings, with the property, lead and agent labels."""

    agent_id = serializers.UUIDField()
    agent_name = serializers.CharField(source='agent.name', default=None)
    agent_role = serializers.CharField(source='agent.role', default=None)
    property_id = serializers.UUIDField(allow_null=True)
    property_reference = serializers.CharField(source='property.reference_number', default=None)
    property_location = serializers.CharField(source='property.location', default=None)
    property_type = serializers.CharField(source='property.property_type', default=None)
    lead_id = serializers.UUIDField(allow_null=True)
    lead_name = serializers.CharField(source='lead.customer_name', default=None)
    lead_phone = serializers.CharField(source='lead.phone_number', default=None)
    calendar_event_id = serializers.UUIDField(allow_null=True)

    class Meta:
        model = Viewing
        fields = [
            'id', 'property_id', 'property_reference', 'property_location',
            'property_type', 'lead_id', 'lead_name', 'lead_phone', 'agent_id',
            'agent_name', 'agent_role', 'viewing_date', 'viewing_time', 'status',
            'is_serious', 'description', 'notes', 'calendar_event_id',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


# =============================================================================
# Reports
# =============================================================================

class AgentReportSerializer(serializers.ModelSerializer):
    """Read serializer for commission reports."""

    agent_id = serializers.UUIDField()
    agent_name = serializers.CharField(source='agent.name', default=None)
    created_by_id = serializers.UUIDField(allow_null=True)

    class Meta:
        model = AgentReport
        fields = [
            'id', 'agent_id', 'agent_name', 'start_date', 'end_date',
            'listings_count', 'lead_sources', 'viewings_count', 'boosts',
            'sales_count', 'sales_amount', 'agent_commission',
            'finders_commission', 'team_leader_commission',
            'administration_commission', 'referral_received_count',
            'referral_received_commission', 'referrals_on_properties_count',
            'referrals_on_properties_commission', 'total_commission',
            'created_by_id', 'created_at', 'updated_at',
        ]
        read_only_fields = fields
