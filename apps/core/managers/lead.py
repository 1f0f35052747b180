"""
Lead QuerySet and Manager.
"""
from datetime import date

from django.db import models
from django.db.models import Q

from apps.core.querysets import VisibilityQuerySetMixin


class LeadQuerySet(VisibilityQuerySetMixin, models.QuerySet):
    """Custom QuerySet for Lead with visibility support."""

    owner_fields = ('agent_id', 'added_by_id', 'referrals__agent_id')
    team_fields = ('agent_id',)

    def dated_between(self, start: date, end: date):
        return self.filter(date__gte=start, date__lte=end)

    def search(self, term: str):
        return self.filter(
            Q(customer_name__icontains=term)
            | Q(phone_number__icontains=term)
            | Q(reference_source__icontains=term)
        )

    def with_relations(self):
        return self.select_related('agent', 'added_by', 'status').prefetch_related('referrals')


LeadManager = models.Manager.from_queryset(LeadQuerySet)
