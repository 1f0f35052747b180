"""
Property QuerySet and Manager for listing and commission queries.
"""
from datetime import date
from decimal import Decimal
from uuid import UUID

from django.db import models
from django.db.models import Q

from apps.core.constants import CLOSED_STATUS_CODES
from apps.core.querysets import VisibilityQuerySetMixin


def closed_status_q(prefix: str = 'status__') -> Q:
    """Match statuses whose code or name is one of the closed kinds."""
    condition = Q()
    for code in CLOSED_STATUS_CODES:
        condition |= Q(**{f'{prefix}code__iexact': code}) | Q(**{f'{prefix}name__iexact': code})
    return condition


class PropertyQuerySet(VisibilityQuerySetMixin, models.QuerySet):
    """
    Custom QuerySet for Property with visibility and filter support.
    """

    owner_fields = ('agent_id', 'created_by_id', 'referrals__employee_id')
    team_fields = ('agent_id',)

    def closed(self):
        return self.filter(closed_status_q())

    def closed_between(self, start: date, end: date):
        return self.closed().filter(closed_date__gte=start, closed_date__lte=end)

    def for_agent(self, agent_id: UUID):
        return self.filter(agent_id=agent_id)

    def created_between(self, start: date, end: date):
        return self.filter(created_at__date__gte=start, created_at__date__lte=end)

    def with_filters(
        self,
        status_id: UUID | None = None,
        property_type: str | None = None,
        price_min: Decimal | None = None,
        price_max: Decimal | None = None,
        search: str | None = None,
    ):
        """
        Apply listing filters.

        Args:
            status_id: Exact status
            property_type: 'sale' or 'rent'
            price_min: Lower price bound (inclusive)
            price_max: Upper price bound (inclusive)
            search: Free text over reference, location, building and owner

        Returns:
            Filtered queryset
        """
        qs = self
        if status_id:
            qs = qs.filter(status_id=status_id)
        if property_type:
            qs = qs.filter(property_type=property_type)
        if price_min is not None:
            qs = qs.filter(price__gte=price_min)
        if price_max is not None:
            qs = qs.filter(price__lte=price_max)
        if search:
            qs = qs.filter(
                Q(reference_number__icontains=search)
                | Q(location__icontains=search)
                | Q(building_name__icontains=search)
                | Q(owner_name__icontains=search)
                | Q(agent__name__icontains=search)
            )
        return qs

    def with_relations(self):
        return self.select_related('status', 'agent', 'created_by', 'owner').prefetch_related('referrals')


PropertyManager = models.Manager.from_queryset(PropertyQuerySet)
