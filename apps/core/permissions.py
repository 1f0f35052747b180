"""
Permission Classes for EstateHub Backend

Role-capability permission classes for DRF views, and the ownership rule
that decides who may edit or delete a calendar event.
"""
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from rest_framework import permissions

from .authentication import AuthenticatedUser
from .roles import RoleCapabilities, is_admin

logger = logging.getLogger(__name__)


class IsAuthenticated(permissions.BasePermission):
    """
    Allows access only to authenticated users.
    """
    message = 'Authentication required'

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        return isinstance(user, AuthenticatedUser)


class IsAdmin(permissions.BasePermission):
    """
    Allows access only to admin users.
    """
    message = 'Admin access required'

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        if not isinstance(user, AuthenticatedUser):
            return False
        return user.is_administrator


class RoleCapabilityPermission(permissions.BasePermission):
    """
    Base class for permissions backed by a RoleCapabilities flag.

    Subclasses set `capability` to the flag name. With `safe_methods_open`
    reads are allowed to any authenticated user and only writes need the flag.
    """
    capability = ''
    safe_methods_open = False

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        if not isinstance(user, AuthenticatedUser):
            return False
        if self.safe_methods_open and request.method in permissions.SAFE_METHODS:
            return True
        return getattr(RoleCapabilities.for_role(user.role), self.capability)


class CanViewAllData(RoleCapabilityPermission):
    message = 'Access denied. Insufficient permissions to view all data.'
    capability = 'can_view_all'


class CanViewAgentPerformance(RoleCapabilityPermission):
    message = 'Access denied. Insufficient permissions to view agent performance.'
    capability = 'can_view_agent_performance'


class CanManageProperties(RoleCapabilityPermission):
    message = 'Access denied. Insufficient permissions to manage properties.'
    capability = 'can_manage_properties'
    safe_methods_open = True


class CanManageReports(RoleCapabilityPermission):
    message = 'Access denied. Only admin, operations manager, or operations can manage reports.'
    capability = 'can_manage_reports'
    safe_methods_open = True


# =============================================================================
# Edit/Delete ownership rule
# =============================================================================

class EditReason(str, enum.Enum):
    OWN_RESOURCE = 'OWN_RESOURCE'
    ADMIN_OVERRIDE = 'ADMIN_OVERRIDE'
    NOT_OWNER = 'NOT_OWNER'
    CHECK_ERROR = 'CHECK_ERROR'


@dataclass(frozen=True)
class EditDecision:
    allowed: bool
    reason: EditReason


@dataclass(frozen=True)
class CheckError:
    """The permission lookup failed; never treated as a grant."""
    message: str


def evaluate_edit_permission(
    editor_id: UUID,
    editor_role: str,
    created_by_id: UUID | None,
    assigned_to_id: UUID | None,
) -> EditDecision:
    """
    Decide whether an editor may change or delete a resource.

    Ownership (creator or assignee) comes first, then the admin override.
    Authority levels play no part: a team leader cannot edit an agent's
    event unless they created it or are assigned to it.
    """
    editor = str(editor_id)
    if editor in (str(created_by_id), str(assigned_to_id)):
        return EditDecision(True, EditReason.OWN_RESOURCE)
    if is_admin(editor_role):
        return EditDecision(True, EditReason.ADMIN_OVERRIDE)
    return EditDecision(False, EditReason.NOT_OWNER)


def check_edit_permission(
    editor: AuthenticatedUser,
    resource_id: Any,
    loader: Callable[[Any], Any],
) -> EditDecision | CheckError:
    """
    Load the resource and evaluate the ownership rule.

    Args:
        editor: The user attempting the change
        resource_id: Id passed to loader
        loader: Returns an object with created_by_id/assigned_to_id, or None

    Returns:
        EditDecision, or CheckError when the lookup fails or finds nothing
    """
    try:
        resource = loader(resource_id)
    except Exception as e:
        logger.exception(f'Edit permission lookup failed for {resource_id}: {e}')
        return CheckError(str(e))

    if resource is None:
        return CheckError(f'Resource {resource_id} not found')

    return evaluate_edit_permission(
        editor.id,
        editor.role,
        getattr(resource, 'created_by_id', None),
        getattr(resource, 'assigned_to_id', None),
    )


def resolve_decision(result: EditDecision | CheckError) -> EditDecision:
    """Collapse a check result into a decision; lookup errors deny."""
    if isinstance(result, CheckError):
        return EditDecision(False, EditReason.CHECK_ERROR)
    return result
