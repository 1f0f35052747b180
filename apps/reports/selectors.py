"""
Report Selectors

Role-scoped reads over agent commission reports.
"""
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from apps.core.authentication import AuthenticatedUser
from apps.core.models import AgentReport, Lead
from apps.core.roles import AGENT, AGENT_MANAGER, TEAM_LEADER, normalize_role
from services.hierarchy_service import HierarchyService


@dataclass
class ReportFilters:
    agent_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None


def visible_reports(user: AuthenticatedUser):
    """
    Reports the user may see.

    Agents see their own reports, team leaders their team agents' reports
    (not their own), agent managers reports of users with the agent role.
    Everyone else sees all reports.
    """
    role = normalize_role(user.role)
    qs = AgentReport.objects.select_related('agent', 'created_by')

    if role == AGENT:
        return qs.filter(agent_id=user.id)
    if role == TEAM_LEADER:
        return qs.filter(agent_id__in=HierarchyService.get_team_agent_ids(user.id))
    if role == AGENT_MANAGER:
        return qs.filter(agent__role=AGENT)
    return qs


def list_reports(user: AuthenticatedUser, filters: ReportFilters | None = None):
    qs = visible_reports(user)
    if filters:
        if filters.agent_id:
            qs = qs.filter(agent_id=filters.agent_id)
        if filters.start_date:
            qs = qs.filter(end_date__gte=filters.start_date)
        if filters.end_date:
            qs = qs.filter(start_date__lte=filters.end_date)
    return qs.order_by('-start_date', 'agent__name')


def get_report(report_id: UUID) -> AgentReport | None:
    return AgentReport.objects.select_related('agent', 'created_by').filter(id=report_id).first()


def report_access_error(user: AuthenticatedUser, report: AgentReport) -> str | None:
    """Why the user may not view the report, or None if they may."""
    role = normalize_role(user.role)

    if role == AGENT and str(report.agent_id) != str(user.id):
        return 'You can only view your own reports'
    if role == TEAM_LEADER and not HierarchyService.is_agent_under_team_leader(user.id, report.agent_id):
        return 'You can only view reports for agents under you'
    if role == AGENT_MANAGER and normalize_role(report.agent.role) != AGENT:
        return 'You can only view reports for agents'
    return None


def overlapping_reports(agent_id: UUID, start_date: date, end_date: date, exclude_id: UUID | None = None):
    """Reports of the agent whose range shares at least one day with [start_date, end_date]."""
    qs = AgentReport.objects.filter(
        agent_id=agent_id,
        start_date__lte=end_date,
        end_date__gte=start_date,
    )
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    return qs


def get_lead_sources() -> list[str]:
    """Distinct non-empty lead reference sources, alphabetically."""
    sources = (
        Lead.objects
        .exclude(reference_source__isnull=True)
        .exclude(reference_source='')
        .values_list('reference_source', flat=True)
        .distinct()
        .order_by('reference_source')
    )
    return list(sources)
