"""
CalendarEvent QuerySet and Manager.
"""
from datetime import datetime
from uuid import UUID

from django.db import models
from django.db.models import Q

from apps.core.querysets import VisibilityQuerySetMixin
from apps.core.roles import RoleCapabilities


class CalendarEventQuerySet(VisibilityQuerySetMixin, models.QuerySet):
    """
    Custom QuerySet for CalendarEvent with visibility and range support.

    Only admins see every event. Everyone else sees events they created,
    are assigned to, or attend by display name.
    """

    owner_fields = ('created_by_id', 'assigned_to_id')
    team_fields = ('created_by_id', 'assigned_to_id')

    def sees_everything(self, capabilities: RoleCapabilities) -> bool:
        return capabilities.role == 'admin'

    def ownership_q(self, user):
        condition = super().ownership_q(user)
        if user.name:
            condition |= Q(attendee_refs__name=user.name)
        return condition

    def overlapping(self, start: datetime, end: datetime):
        """
        Events overlapping [start, end], both ends inclusive.

        Covers events starting in the range, ending in the range, or
        spanning the whole range.
        """
        return self.filter(start_time__lte=end, end_time__gte=start)

    def created_by(self, user_id: UUID):
        return self.filter(created_by_id=user_id)

    def attended_by(self, name: str):
        return self.filter(attendee_refs__name=name).distinct()

    def of_type(self, event_type: str):
        return self.filter(type=event_type)

    def starting_between(self, date_from=None, date_to=None):
        qs = self
        if date_from:
            qs = qs.filter(start_time__date__gte=date_from)
        if date_to:
            qs = qs.filter(start_time__date__lte=date_to)
        return qs

    def search(self, term: str):
        """Case-insensitive search over event text, linked records and people."""
        return self.filter(
            Q(title__icontains=term)
            | Q(description__icontains=term)
            | Q(location__icontains=term)
            | Q(notes__icontains=term)
            | Q(property__reference_number__icontains=term)
            | Q(property__location__icontains=term)
            | Q(lead__customer_name__icontains=term)
            | Q(lead__phone_number__icontains=term)
            | Q(created_by__name__icontains=term)
            | Q(assigned_to__name__icontains=term)
        ).distinct()

    def with_relations(self):
        return self.select_related(
            'created_by', 'assigned_to', 'property', 'lead'
        ).prefetch_related('attendee_refs')


CalendarEventManager = models.Manager.from_queryset(CalendarEventQuerySet)
