"""
Viewing QuerySet and Manager.
"""
from datetime import date

from django.db import models
from django.db.models import Count, Q

from apps.core.constants import VIEWING_STATUSES
from apps.core.querysets import VisibilityQuerySetMixin


class ViewingQuerySet(VisibilityQuerySetMixin, models.QuerySet):
    """Viewings belong to the agent carrying them out."""

    owner_fields = ('agent_id',)
    team_fields = ('agent_id',)

    def dated_between(self, start: date | None, end: date | None):
        qs = self
        if start:
            qs = qs.filter(viewing_date__gte=start)
        if end:
            qs = qs.filter(viewing_date__lte=end)
        return qs

    def search(self, term: str):
        return self.filter(
            Q(lead__customer_name__icontains=term)
            | Q(property__reference_number__icontains=term)
            | Q(property__location__icontains=term)
        )

    def with_relations(self):
        return self.select_related('agent', 'property', 'lead')

    def ordered(self):
        """Serious viewings first, then most recent."""
        return self.order_by('-is_serious', '-viewing_date', '-viewing_time', '-created_at')

    def status_counts(self) -> dict:
        counts = dict.fromkeys(VIEWING_STATUSES, 0)
        for row in self.order_by().values('status').annotate(count=Count('id')):
            counts[row['status']] = row['count']
        counts['total_viewings'] = sum(counts.values())
        return counts


ViewingManager = models.Manager.from_queryset(ViewingQuerySet)
