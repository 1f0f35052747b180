"""
Visibility QuerySet Mixin for hierarchy filtering.

A non-privileged user sees the rows they own (created, are assigned to, are
the agent of...). A team leader also sees the rows owned by the agents on
their team. Privileged roles see everything.
"""
from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID

from django.db.models import Q

from apps.core.roles import TEAM_LEADER, RoleCapabilities

if TYPE_CHECKING:
    from apps.core.authentication import AuthenticatedUser


class VisibilityQuerySetMixin:
    """
    Mixin providing role-based visibility filtering.

    Subclasses declare:
    - owner_fields: fields compared against the user's id
    - team_fields: fields compared against the team agent ids of a team leader
    """

    owner_fields: tuple[str, ...] = ()
    team_fields: tuple[str, ...] = ()

    def sees_everything(self, capabilities: RoleCapabilities) -> bool:
        return capabilities.can_view_all

    def ownership_q(self, user: 'AuthenticatedUser') -> Q:
        condition = Q()
        for field in self.owner_fields:
            condition |= Q(**{field: user.id})
        return condition

    def team_q(self, team_agent_ids: list[UUID]) -> Q:
        condition = Q()
        for field in self.team_fields:
            condition |= Q(**{f'{field}__in': team_agent_ids})
        return condition

    def visible_to(self, user: 'AuthenticatedUser', team_agent_ids: Iterable[UUID] | None = None):
        """
        Filter to rows the user may see.

        Args:
            user: The authenticated user
            team_agent_ids: Active agents on the user's team (team leaders only)

        Returns:
            Filtered queryset
        """
        capabilities = RoleCapabilities.for_role(user.role)
        if self.sees_everything(capabilities):
            return self.all()

        condition = self.ownership_q(user)
        team_ids = list(team_agent_ids or [])
        if capabilities.role == TEAM_LEADER and team_ids:
            condition |= self.team_q(team_ids)

        return self.filter(condition).distinct()
