"""
Lead Selectors
"""
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from apps.core.authentication import AuthenticatedUser
from apps.core.models import Lead, LeadStatus
from services.hierarchy_service import HierarchyService


@dataclass
class LeadFilters:
    status_id: UUID | None = None
    agent_id: UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None


def visible_leads(user: AuthenticatedUser):
    """
    Leads the user may see.

    View-all roles see every lead. Others see leads they are the agent of,
    added, or referred; team leaders also see their agents' leads.
    """
    team_agent_ids = HierarchyService.team_agent_ids_for(user)
    return Lead.objects.with_relations().visible_to(user, team_agent_ids)


def list_leads(user: AuthenticatedUser, filters: LeadFilters | None = None):
    qs = visible_leads(user)
    if filters:
        if filters.status_id:
            qs = qs.filter(status_id=filters.status_id)
        if filters.agent_id:
            qs = qs.filter(agent_id=filters.agent_id)
        if filters.date_from:
            qs = qs.filter(date__gte=filters.date_from)
        if filters.date_to:
            qs = qs.filter(date__lte=filters.date_to)
        if filters.search:
            qs = qs.search(filters.search)
    return qs.order_by('-date', '-created_at')


def get_lead(lead_id: UUID) -> Lead | None:
    return Lead.objects.with_relations().filter(id=lead_id).first()


def can_view_lead(user: AuthenticatedUser, lead: Lead) -> bool:
    return visible_leads(user).filter(id=lead.id).exists()


def get_lead_statuses():
    return LeadStatus.objects.filter(is_active=True).order_by('name')
