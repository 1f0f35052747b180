"""
Hierarchy Service

Team-leader to agent relationships. Teams are one level deep: an agent
belongs to at most one active team, led by a team leader.
"""
import logging
from uuid import UUID

from apps.core.roles import TEAM_LEADER, normalize_role

logger = logging.getLogger(__name__)


class HierarchyService:
    """
    Service for navigating team membership.
    """

    @staticmethod
    def get_team_agent_ids(team_leader_id: UUID) -> list[UUID]:
        """
        Get the active agents on a team leader's team.

        Args:
            team_leader_id: The team leader's user ID

        Returns:
            List of agent IDs (empty if the user leads no team)
        """
        from apps.core.models import TeamMembership

        return list(
            TeamMembership.objects
            .filter(team_leader_id=team_leader_id, is_active=True)
            .values_list('agent_id', flat=True)
        )

    @staticmethod
    def team_agent_ids_for(user) -> list[UUID]:
        """Team agent IDs when the user is a team leader, otherwise empty."""
        if normalize_role(user.role) != TEAM_LEADER:
            return []
        return HierarchyService.get_team_agent_ids(user.id)

    @staticmethod
    def get_team_leader_id(agent_id: UUID) -> UUID | None:
        """Get the team leader of an agent, if any."""
        from apps.core.models import TeamMembership

        return (
            TeamMembership.objects
            .filter(agent_id=agent_id, is_active=True)
            .values_list('team_leader_id', flat=True)
            .first()
        )

    @staticmethod
    def is_agent_under_team_leader(team_leader_id: UUID, agent_id: UUID) -> bool:
        """Check if an agent is on a team leader's active team."""
        from apps.core.models import TeamMembership

        return TeamMembership.objects.filter(
            team_leader_id=team_leader_id,
            agent_id=agent_id,
            is_active=True,
        ).exists()
