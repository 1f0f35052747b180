"""
Core Models for EstateHub Django Backend

These are UNMANAGED models that map to existing PostgreSQL tables.
They do NOT create migrations - Django reads from existing tables.
"""
import uuid

from django.db import models

from .constants import CLOSED_STATUS_CODES, REFERRAL_TYPE_CUSTOM, REFERRAL_TYPE_EMPLOYEE, VIEWING_STATUS_SCHEDULED
from .managers import CalendarEventManager, LeadManager, PropertyManager, ViewingManager
from .roles import AGENT, ROLE_CHOICES


class User(models.Model):
    """
    Represents a CRM user (staff member).
    Maps to: public.users
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    name = models.CharField(max_length=255)
    email = models.CharField(max_length=255, unique=True)
    phone = models.CharField(max_length=50, null=True, blank=True)
    role = models.CharField(max_length=50, choices=ROLE_CHOICES, default=AGENT)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        managed = False
        db_table = 'users'

    def __str__(self):
        return self.name


class TeamMembership(models.Model):
    """
    Links an agent to their team leader.
    Maps to: public.team_agents
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    team_leader = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='team_memberships'
    )
    agent = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='team_leader_links'
    )
    is_active = models.BooleanField(default=True)
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        managed = False
        db_table = 'team_agents'

    def __str__(self):
        return f"{self.team_leader_id} -> {self.agent_id}"


class PropertyStatus(models.Model):
    """
    Property status (active, sold, rented...).
    Maps to: public.statuses
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=50, unique=True)
    color = models.CharField(max_length=20, default='#6B7280')
    can_be_referred = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        managed = False
        db_table = 'statuses'
        verbose_name_plural = 'Property statuses'

    def __str__(self):
        return self.name

    @property
    def is_closed(self) -> bool:
        """Sold, rented and closed statuses require a closed_date."""
        return (
            (self.code or '').lower() in CLOSED_STATUS_CODES
            or (self.name or '').lower() in CLOSED_STATUS_CODES
        )


class LeadStatus(models.Model):
    """
    Lead pipeline status.
    Maps to: public.lead_statuses
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=50, unique=True)
    color = models.CharField(max_length=20, default='#6B7280')
    can_be_referred = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        managed = False
        db_table = 'lead_statuses'
        verbose_name_plural = 'Lead statuses'

    def __str__(self):
        return self.name


class Lead(models.Model):
    """
    A prospective buyer, tenant or owner.
    Maps to: public.leads
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    customer_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=50, null=True, blank=True)
    agent = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_leads'
    )
    added_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='added_leads'
    )
    status = models.ForeignKey(
        LeadStatus,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='leads'
    )
    reference_source = models.CharField(max_length=100, null=True, blank=True)
    date = models.DateField()
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LeadManager()

    class Meta:
        managed = False
        db_table = 'leads'

    def __str__(self):
        return self.customer_name


class LeadReferral(models.Model):
    """
    Someone who referred a lead. `external` is derived by the referral classifier.
    Maps to: public.lead_referrals
    """
    TYPE_CHOICES = [
        (REFERRAL_TYPE_EMPLOYEE, 'Employee'),
        (REFERRAL_TYPE_CUSTOM, 'Custom'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    lead = models.ForeignKey(
        Lead,
        on_delete=models.CASCADE,
        related_name='referrals'
    )
    agent = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='lead_referrals'
    )
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=REFERRAL_TYPE_EMPLOYEE)
    referral_date = models.DateField()
    external = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        managed = False
        db_table = 'lead_referrals'
        ordering = ['referral_date', 'created_at']

    def __str__(self):
        return f"{self.name} ({self.referral_date})"


class Property(models.Model):
    """
    A listed property.
    Maps to: public.properties
    """
    TYPE_CHOICES = [
        ('sale', 'Sale'),
        ('rent', 'Rent'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    reference_number = models.CharField(max_length=50, unique=True)
    status = models.ForeignKey(
        PropertyStatus,
        on_delete=models.PROTECT,
        related_name='properties'
    )
    property_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    location = models.CharField(max_length=255)
    category = models.CharField(max_length=100, null=True, blank=True)
    building_name = models.CharField(max_length=255, null=True, blank=True)
    owner = models.ForeignKey(
        Lead,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='owned_properties'
    )
    owner_name = models.CharField(max_length=255, null=True, blank=True)
    phone_number = models.CharField(max_length=50, null=True, blank=True)
    surface = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    agent = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_properties'
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_properties'
    )
    notes = models.TextField(null=True, blank=True)
    property_url = models.TextField(null=True, blank=True)
    closed_date = models.DateField(null=True, blank=True)
    referrals_count = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PropertyManager()

    class Meta:
        managed = False
        db_table = 'properties'
        verbose_name_plural = 'Properties'

    def __str__(self):
        return self.reference_number


class Referral(models.Model):
    """
    Someone who referred a property. `external` is derived by the referral classifier.
    Maps to: public.referrals
    """
    TYPE_CHOICES = [
        (REFERRAL_TYPE_EMPLOYEE, 'Employee'),
        (REFERRAL_TYPE_CUSTOM, 'Custom'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='referrals'
    )
    employee = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='property_referrals'
    )
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=REFERRAL_TYPE_EMPLOYEE)
    date = models.DateField()
    external = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        managed = False
        db_table = 'referrals'
        ordering = ['date', 'created_at']

    def __str__(self):
        return f"{self.name} ({self.date})"


class CalendarEvent(models.Model):
    """
    A calendar entry (meeting, showing, assignment...).
    Maps to: public.calendar_events
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    title = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    all_day = models.BooleanField(default=False)
    color = models.CharField(max_length=20, default='blue')
    type = models.CharField(max_length=50, default='other')
    location = models.CharField(max_length=255, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_events'
    )
    assigned_to = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_events'
    )
    property = models.ForeignKey(
        Property,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='events'
    )
    lead = models.ForeignKey(
        Lead,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='events'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CalendarEventManager()

    class Meta:
        managed = False
        db_table = 'calendar_events'
        ordering = ['start_time']

    def __str__(self):
        return self.title

    def get_attendee_names(self) -> list[str]:
        return [ref.name for ref in sorted(self.attendee_refs.all(), key=lambda ref: ref.position)]


class EventAttendee(models.Model):
    """
    An attendee of a calendar event, referenced by display name.

    `user` is a best-effort link resolved by name when the attendee is saved.
    Visibility matches on `name`, so two users sharing a display name are
    indistinguishable.
    Maps to: public.calendar_event_attendees
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    event = models.ForeignKey(
        CalendarEvent,
        on_delete=models.CASCADE,
        related_name='attendee_refs'
    )
    name = models.CharField(max_length=255)
    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='attending'
    )
    position = models.IntegerField(default=0)

    class Meta:
        managed = False
        db_table = 'calendar_event_attendees'

    def __str__(self):
        return self.name


class Viewing(models.Model):
    """
    A property viewing carried out by an agent.
    Maps to: public.viewings
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    agent = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='viewings'
    )
    property = models.ForeignKey(
        Property,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='viewings'
    )
    lead = models.ForeignKey(
        Lead,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='viewings'
    )
    viewing_date = models.DateField()
    viewing_time = models.TimeField(null=True, blank=True)
    status = models.CharField(max_length=50, default=VIEWING_STATUS_SCHEDULED)
    is_serious = models.BooleanField(default=False)
    description = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    calendar_event = models.ForeignKey(
        CalendarEvent,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='viewings'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ViewingManager()

    class Meta:
        managed = False
        db_table = 'viewings'


class CommissionSetting(models.Model):
    """
    Key/value business settings; commission percentages live here.
    Maps to: public.system_settings
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    setting_key = models.CharField(max_length=100, unique=True)
    setting_value = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        managed = False
        db_table = 'system_settings'

    def __str__(self):
        return f"{self.setting_key}={self.setting_value}"


class AgentReport(models.Model):
    """
    Commission report snapshot for one agent over a date range.

    Buckets are computed by services.commission_service and may be
    recalculated; `boosts` is manual and survives recalculation.
    Maps to: public.monthly_agent_reports
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    agent = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='reports'
    )
    start_date = models.DateField()
    end_date = models.DateField()

    listings_count = models.IntegerField(default=0)
    lead_sources = models.JSONField(default=dict, blank=True)
    viewings_count = models.IntegerField(default=0)
    boosts = models.DecimalField(max_digits=15, decimal_places=2, default=0)

    sales_count = models.IntegerField(default=0)
    sales_amount = models.DecimalField(max_digits=15, decimal_places=2, default=0)

    agent_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    finders_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    team_leader_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    administration_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)

    referral_received_count = models.IntegerField(default=0)
    referral_received_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    referrals_on_properties_count = models.IntegerField(default=0)
    referrals_on_properties_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)

    total_commission = models.DecimalField(max_digits=15, decimal_places=2, default=0)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_reports'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        managed = False
        db_table = 'monthly_agent_reports'
        ordering = ['-start_date', 'agent__name']

    def __str__(self):
        return f"{self.agent_id} {self.start_date}..{self.end_date}"


class Notification(models.Model):
    """
    In-app notification for a user.
    Maps to: public.notifications
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(max_length=20, default='info')
    entity_type = models.CharField(max_length=50, null=True, blank=True)
    entity_id = models.CharField(max_length=64, null=True, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        managed = False
        db_table = 'notifications'
        ordering = ['-created_at']


class EventReminder(models.Model):
    """
    A scheduled reminder for one user about one event.
    Maps to: public.reminder_tracking
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    event = models.ForeignKey(
        CalendarEvent,
        on_delete=models.CASCADE,
        related_name='reminders'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='event_reminders'
    )
    reminder_type = models.CharField(max_length=20)
    scheduled_time = models.DateTimeField()
    sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        managed = False
        db_table = 'reminder_tracking'
        unique_together = [('event', 'user', 'reminder_type')]
