"""
Role Hierarchy Resolver

Canonical role names, the authority-level table and the capability sets
derived from a role. The level table comes from settings.ROLE_HIERARCHY so the
role set can change through configuration; it is read-only once loaded.

Authority levels are a reference table only. Edit/delete decisions use the
ownership rule in apps.core.permissions, never a level comparison.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from django.conf import settings

ADMIN = 'admin'
OPERATIONS_MANAGER = 'operations manager'
OPERATIONS = 'operations'
AGENT_MANAGER = 'agent manager'
TEAM_LEADER = 'team leader'
AGENT = 'agent'
ACCOUNTANT = 'accountant'

ROLE_CHOICES = [
    (ADMIN, 'Admin'),
    (OPERATIONS_MANAGER, 'Operations Manager'),
    (OPERATIONS, 'Operations'),
    (AGENT_MANAGER, 'Agent Manager'),
    (TEAM_LEADER, 'Team Leader'),
    (AGENT, 'Agent'),
    (ACCOUNTANT, 'Accountant'),
]

DEFAULT_ROLE_HIERARCHY = {
    ADMIN: 6,
    OPERATIONS_MANAGER: 5,
    OPERATIONS: 4,
    AGENT_MANAGER: 3,
    TEAM_LEADER: 2,
    AGENT: 1,
    ACCOUNTANT: 1,
}

VIEW_ALL_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER, OPERATIONS, AGENT_MANAGER})
FINANCIAL_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER})
AGENT_PERFORMANCE_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER, AGENT_MANAGER})
PROPERTY_MANAGER_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER, OPERATIONS, AGENT_MANAGER})
USER_MANAGER_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER})
REPORT_MANAGER_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER, OPERATIONS})
LEAD_MANAGER_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER, OPERATIONS, AGENT_MANAGER})


def normalize_role(role: str | None) -> str:
    """
    Canonical form of a role name.

    Lowercases, turns underscores into spaces and collapses whitespace, so
    'team_leader', 'Team Leader' and ' team  leader ' are the same role.
    """
    if not role:
        return ''
    return ' '.join(str(role).lower().replace('_', ' ').split())


def get_role_hierarchy() -> Mapping[str, int]:
    """Return the configured role → authority level table as a read-only mapping."""
    configured = getattr(settings, 'ROLE_HIERARCHY', None) or DEFAULT_ROLE_HIERARCHY
    return MappingProxyType({normalize_role(role): int(level) for role, level in configured.items()})


def authority_level(role: str | None) -> int:
    """Authority level for a role; unknown roles resolve to 0."""
    return get_role_hierarchy().get(normalize_role(role), 0)


def is_admin(role: str | None) -> bool:
    return normalize_role(role) == ADMIN


@dataclass(frozen=True)
class RoleCapabilities:
    """What a role may see and manage, independent of ownership."""
    role: str
    can_view_all: bool
    can_view_financial: bool
    can_view_agent_performance: bool
    can_manage_properties: bool
    can_manage_users: bool
    can_manage_reports: bool
    can_manage_leads: bool

    @classmethod
    def for_role(cls, role: str | None) -> 'RoleCapabilities':
        canonical = normalize_role(role)
        return cls(
            role=canonical,
            can_view_all=canonical in VIEW_ALL_ROLES,
            can_view_financial=canonical in FINANCIAL_ROLES,
            can_view_agent_performance=canonical in AGENT_PERFORMANCE_ROLES,
            can_manage_properties=canonical in PROPERTY_MANAGER_ROLES,
            can_manage_users=canonical in USER_MANAGER_ROLES,
            can_manage_reports=canonical in REPORT_MANAGER_ROLES,
            can_manage_leads=canonical in LEAD_MANAGER_ROLES,
        )
