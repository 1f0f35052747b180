"""
Property Selectors

Read queries for properties: role-based visibility, owner-detail
redaction, filtered listing, per-agent listing and stats.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.db.models import Count, Sum

from apps.core.authentication import AuthenticatedUser
from apps.core.models import Property
from apps.core.roles import TEAM_LEADER, RoleCapabilities
from apps.core.utils import quantize_money
from services.hierarchy_service import HierarchyService

logger = logging.getLogger(__name__)


@dataclass
class PropertyFilters:
    status_id: UUID | None = None
    property_type: str | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    search: str | None = None


def visible_properties(user: AuthenticatedUser, team_agent_ids: list[UUID] | None = None):
    """
    Properties the user may see.

    View-all roles see everything. Others see properties they are the agent
    of, created, or referred; team leaders also see their agents' properties.
    """
    if team_agent_ids is None:
        team_agent_ids = HierarchyService.team_agent_ids_for(user)
    return Property.objects.with_relations().visible_to(user, team_agent_ids)


def owner_detail_checker(
    user: AuthenticatedUser,
    team_agent_ids: list[UUID] | None = None,
) -> Callable[[Property], bool]:
    """
    Build a predicate telling whether the user may see a property's owner
    name and phone.

    View-all roles always may. Otherwise only the property's agent may, plus
    (for team leaders) the leader of that agent's team.
    """
    capabilities = RoleCapabilities.for_role(user.role)
    if capabilities.can_view_all:
        return lambda prop: True

    allowed = {str(user.id)}
    if capabilities.role == TEAM_LEADER:
        if team_agent_ids is None:
            team_agent_ids = HierarchyService.get_team_agent_ids(user.id)
        allowed.update(str(agent_id) for agent_id in team_agent_ids)

    return lambda prop: bool(prop.agent_id) and str(prop.agent_id) in allowed


def list_properties(user: AuthenticatedUser, filters: PropertyFilters | None = None):
    qs = visible_properties(user)
    if filters:
        qs = qs.with_filters(
            status_id=filters.status_id,
            property_type=filters.property_type,
            price_min=filters.price_min,
            price_max=filters.price_max,
            search=filters.search,
        )
    return qs.order_by('-created_at')


def get_property(property_id: UUID) -> Property | None:
    return Property.objects.with_relations().filter(id=property_id).first()


def can_view_property(user: AuthenticatedUser, prop: Property) -> bool:
    return visible_properties(user).filter(id=prop.id).exists()


def properties_by_agent(agent_id: UUID):
    return Property.objects.with_relations().for_agent(agent_id).order_by('-created_at')


def get_property_stats() -> dict:
    """Totals across all properties, by status and by type."""
    by_status = (
        Property.objects
        .values('status__name', 'status__code')
        .annotate(count=Count('id'), total_value=Sum('price'))
        .order_by('status__name')
    )
    by_type = (
        Property.objects
        .values('property_type')
        .annotate(count=Count('id'))
        .order_by('property_type')
    )
    totals = Property.objects.aggregate(count=Count('id'), total_value=Sum('price'))

    return {
        'total': totals['count'] or 0,
        'total_value': str(quantize_money(totals['total_value'] or Decimal('0'))),
        'closed': Property.objects.closed().count(),
        'by_status': [
            {
                'status': row['status__name'],
                'code': row['status__code'],
                'count': row['count'],
                'total_value': str(quantize_money(row['total_value'] or Decimal('0'))),
            }
            for row in by_status
        ],
        'by_type': {row['property_type']: row['count'] for row in by_type},
    }
