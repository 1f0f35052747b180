"""
Viewing Selectors
"""
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from apps.core.authentication import AuthenticatedUser
from apps.core.models import Viewing
from apps.core.roles import TEAM_LEADER, RoleCapabilities
from services.hierarchy_service import HierarchyService


@dataclass
class ViewingFilters:
    status: str | None = None
    agent_id: UUID | None = None
    property_id: UUID | None = None
    lead_id: UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None


def visible_viewings(user: AuthenticatedUser):
    """
    Viewings the user may see.

    View-all roles see every viewing. Others see the viewings they carry
    out; team leaders also see their agents' viewings.
    """
    team_agent_ids = HierarchyService.team_agent_ids_for(user)
    return Viewing.objects.with_relations().visible_to(user, team_agent_ids)


def list_viewings(user: AuthenticatedUser, filters: ViewingFilters | None = None):
    qs = visible_viewings(user)
    if filters:
        if filters.status:
            qs = qs.filter(status=filters.status)
        if filters.agent_id:
            qs = qs.filter(agent_id=filters.agent_id)
        if filters.property_id:
            qs = qs.filter(property_id=filters.property_id)
        if filters.lead_id:
            qs = qs.filter(lead_id=filters.lead_id)
        qs = qs.dated_between(filters.date_from, filters.date_to)
        if filters.search:
            qs = qs.search(filters.search)
    return qs.ordered()


def get_viewing(viewing_id: UUID) -> Viewing | None:
    return Viewing.objects.with_relations().filter(id=viewing_id).first()


def can_view_viewing(user: AuthenticatedUser, viewing: Viewing) -> bool:
    return visible_viewings(user).filter(id=viewing.id).exists()


def get_viewing_stats(user: AuthenticatedUser) -> dict:
    """Per-status counts over the viewings the user may see."""
    return Viewing.objects.visible_to(user, HierarchyService.team_agent_ids_for(user)).status_counts()


def can_view_agent_viewings(user: AuthenticatedUser, agent_id: UUID) -> bool:
    """
    View-all roles may list any agent's viewings. Everyone may list their
    own; team leaders may also list their team agents'.
    """
    capabilities = RoleCapabilities.for_role(user.role)
    if capabilities.can_view_all or str(agent_id) == str(user.id):
        return True
    if capabilities.role == TEAM_LEADER:
        return HierarchyService.is_agent_under_team_leader(user.id, agent_id)
    return False


def viewings_by_agent(agent_id: UUID):
    return Viewing.objects.with_relations().filter(agent_id=agent_id).ordered()
