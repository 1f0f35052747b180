"""
Viewing Services

Create, update and delete property viewings. Each viewing carries a linked
'showing' calendar event for the assigned agent; the event and the
notifications are follow-ups and never fail the viewing write.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.core.authentication import AuthenticatedUser
from apps.core.constants import VIEWING_STATUS_COLORS, VIEWING_STATUS_SCHEDULED, VIEWING_STATUSES
from apps.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from apps.core.models import CalendarEvent, EventAttendee, Lead, Property, User, Viewing
from apps.core.roles import (
    ADMIN,
    OPERATIONS,
    OPERATIONS_MANAGER,
    TEAM_LEADER,
    VIEW_ALL_ROLES,
    RoleCapabilities,
)
from services import notification_service
from services.hierarchy_service import HierarchyService

logger = logging.getLogger(__name__)

VIEWING_DELETE_ROLES = frozenset({ADMIN, OPERATIONS_MANAGER, OPERATIONS})

VIEWING_FIELDS = (
    'property_id', 'lead_id', 'agent_id', 'viewing_date', 'viewing_time',
    'status', 'is_serious', 'description', 'notes',
)


@dataclass
class ViewingInput:
    """Parsed viewing payload; `provided` names the fields sent."""
    property_id: UUID | None = None
    lead_id: UUID | None = None
    agent_id: UUID | None = None
    viewing_date: date | None = None
    viewing_time: time | None = None
    status: str | None = None
    is_serious: bool | None = None
    description: str | None = None
    notes: str | None = None
    provided: set[str] = field(default_factory=set)


def _require_viewing(viewing_id: UUID) -> Viewing:
    viewing = Viewing.objects.select_related('property', 'lead').filter(id=viewing_id).first()
    if viewing is None:
        raise NotFoundError('Viewing not found')
    return viewing


def _require_property(property_id: UUID) -> Property:
    prop = Property.objects.filter(id=property_id).first()
    if prop is None:
        raise NotFoundError('Property not found')
    return prop


def _require_lead(lead_id: UUID) -> Lead:
    lead = Lead.objects.filter(id=lead_id).first()
    if lead is None:
        raise NotFoundError('Lead not found')
    return lead


def _validate_status(status: str | None) -> None:
    if status is not None and status not in VIEWING_STATUSES:
        raise ValidationError(f'Status must be one of: {", ".join(VIEWING_STATUSES)}')


def _validate_agent(agent_id: UUID) -> None:
    if not User.objects.filter(id=agent_id).exists():
        raise ValidationError('Assigned agent not found')


def resolve_create_agent(user: AuthenticatedUser, prop: Property, requested_agent_id: UUID | None) -> UUID:
    """
    Who a new viewing is assigned to.

    Agents book viewings on their own properties, for themselves. Team
    leaders book on their own properties for themselves, or on a team
    agent's property for that agent. View-all roles name the agent.

    Raises:
        PermissionDeniedError, ValidationError
    """
    capabilities = RoleCapabilities.for_role(user.role)
    if capabilities.can_view_all:
        if not requested_agent_id:
            raise ValidationError('Agent assignment is required')
        return requested_agent_id

    if capabilities.role == TEAM_LEADER:
        target = requested_agent_id or user.id
        if prop.agent_id and str(prop.agent_id) == str(user.id):
            if str(target) != str(user.id):
                raise PermissionDeniedError('You can only add viewings to yourself on your own properties')
            return user.id
        if prop.agent_id and HierarchyService.is_agent_under_team_leader(user.id, prop.agent_id):
            if requested_agent_id and str(requested_agent_id) != str(prop.agent_id):
                raise PermissionDeniedError(
                    'You can only add viewings on this property for the agent it is assigned to'
                )
            return prop.agent_id
        raise PermissionDeniedError(
            'You can only add viewings on properties assigned to you or your team agents'
        )

    if not prop.agent_id or str(prop.agent_id) != str(user.id):
        logger.warning(f'User {user.id} tried to book a viewing on property {prop.id} assigned to {prop.agent_id}')
        raise PermissionDeniedError('You can only create viewings for properties assigned to you')
    if requested_agent_id and str(requested_agent_id) != str(user.id):
        raise PermissionDeniedError('You can only assign viewings to yourself')
    return user.id


def _can_edit_viewing(user: AuthenticatedUser, viewing: Viewing) -> bool:
    capabilities = RoleCapabilities.for_role(user.role)
    if capabilities.can_view_all or str(viewing.agent_id) == str(user.id):
        return True
    if capabilities.role == TEAM_LEADER:
        return HierarchyService.is_agent_under_team_leader(user.id, viewing.agent_id)
    return False


def _check_reassignment(user: AuthenticatedUser, agent_id: UUID | None) -> None:
    capabilities = RoleCapabilities.for_role(user.role)
    if capabilities.can_view_all or not agent_id or str(agent_id) == str(user.id):
        return
    if capabilities.role == TEAM_LEADER:
        if not HierarchyService.is_agent_under_team_leader(user.id, agent_id):
            raise PermissionDeniedError('You can only reassign viewings to yourself or agents under your team')
        return
    raise PermissionDeniedError('You cannot reassign viewings to other agents')


def create_viewing(user: AuthenticatedUser, data: ViewingInput) -> Viewing:
    """
    Book a viewing of a property with a lead.

    A lead and property pair holds at most one viewing.

    Raises:
        ValidationError: missing property/lead/date/time, bad status, no agent
        NotFoundError: property or lead missing
        PermissionDeniedError: the user may not book on this property or for this agent
        ConflictError: a viewing already exists for the lead and property
    """
    if not data.property_id or not data.lead_id:
        raise ValidationError('Property and Lead are required fields')
    if data.viewing_date is None or data.viewing_time is None:
        raise ValidationError('Viewing date and time are required')
    _validate_status(data.status)

    prop = _require_property(data.property_id)
    lead = _require_lead(data.lead_id)
    agent_id = resolve_create_agent(user, prop, data.agent_id)
    _validate_agent(agent_id)

    if Viewing.objects.filter(property_id=prop.id, lead_id=lead.id).exists():
        raise ConflictError('A viewing already exists for this lead and property')

    with transaction.atomic():
        viewing = Viewing.objects.create(
            property=prop,
            lead=lead,
            agent_id=agent_id,
            viewing_date=data.viewing_date,
            viewing_time=data.viewing_time,
            status=data.status or VIEWING_STATUS_SCHEDULED,
            is_serious=bool(data.is_serious),
            description=data.description,
            notes=data.notes,
        )

    logger.info(f'User {user.id} created viewing {viewing.id} for property {prop.id}')

    create_viewing_event(user, viewing)
    _notify_created(user, viewing)
    return viewing


def update_viewing(user: AuthenticatedUser, viewing_id: UUID, data: ViewingInput) -> Viewing:
    """
    Update provided viewing fields. Empty date or time values keep the
    stored ones.

    Raises:
        NotFoundError, PermissionDeniedError, ValidationError
    """
    viewing = _require_viewing(viewing_id)
    if not _can_edit_viewing(user, viewing):
        raise PermissionDeniedError('You can only update viewings assigned to you or your team')

    provided = set(data.provided)
    for name in ('viewing_date', 'viewing_time'):
        if name in provided and getattr(data, name) is None:
            provided.discard(name)

    if 'agent_id' in provided:
        if not data.agent_id:
            raise ValidationError('Agent assignment is required')
        if str(data.agent_id) != str(viewing.agent_id):
            _check_reassignment(user, data.agent_id)
            _validate_agent(data.agent_id)
    if 'status' in provided:
        if not data.status:
            raise ValidationError('Status is required')
        _validate_status(data.status)
    if 'property_id' in provided:
        if not data.property_id:
            raise ValidationError('Property and Lead are required fields')
        _require_property(data.property_id)
    if 'lead_id' in provided:
        if not data.lead_id:
            raise ValidationError('Property and Lead are required fields')
        _require_lead(data.lead_id)
    property_id = data.property_id if 'property_id' in provided else viewing.property_id
    lead_id = data.lead_id if 'lead_id' in provided else viewing.lead_id
    if (
        (str(property_id), str(lead_id)) != (str(viewing.property_id), str(viewing.lead_id))
        and Viewing.objects.filter(property_id=property_id, lead_id=lead_id).exclude(id=viewing.id).exists()
    ):
        raise ConflictError('A viewing already exists for this lead and property')

    previous_agent_id = viewing.agent_id
    with transaction.atomic():
        for name in VIEWING_FIELDS:
            if name in provided:
                value = getattr(data, name)
                setattr(viewing, name, bool(value) if name == 'is_serious' else value)
        viewing.save()

    logger.info(f'User {user.id} updated viewing {viewing.id}')

    sync_viewing_event(viewing)
    if str(viewing.agent_id) != str(previous_agent_id) and str(viewing.agent_id) != str(user.id):
        notification_service.notify(
            'viewing_assigned',
            {
                'message': f'You have been assigned a viewing on {viewing.viewing_date.isoformat()}.',
                'entity_type': 'viewing',
                'entity_id': viewing.id,
            },
            [viewing.agent_id],
        )
    return viewing


def delete_viewing(user: AuthenticatedUser, viewing_id: UUID) -> None:
    """
    Delete a viewing and its calendar event.

    Raises:
        NotFoundError, PermissionDeniedError
    """
    viewing = _require_viewing(viewing_id)
    if RoleCapabilities.for_role(user.role).role not in VIEWING_DELETE_ROLES:
        raise PermissionDeniedError('Only admins, operations managers, and operations can delete viewings')

    with transaction.atomic():
        event_id = viewing.calendar_event_id
        viewing.delete()
        if event_id:
            CalendarEvent.objects.filter(id=event_id).delete()

    logger.info(f'User {user.id} deleted viewing {viewing_id}')


# =============================================================================
# Follow-ups (fire-and-forget)
# =============================================================================

def viewing_window(viewing: Viewing) -> tuple[datetime, datetime]:
    """One-hour slot starting at the viewing's date and time."""
    start = datetime.combine(viewing.viewing_date, viewing.viewing_time or time.min)
    start = timezone.make_aware(start, timezone.get_current_timezone())
    return start, start + timedelta(hours=1)


def _event_fields(viewing: Viewing) -> dict:
    prop = viewing.property
    lead = viewing.lead
    start, end = viewing_window(viewing)
    reference = prop.reference_number if prop else 'N/A'
    location = prop.location if prop else ''
    lead_name = lead.customer_name if lead else 'N/A'
    return {
        'title': f'Property Viewing - {reference}',
        'description': f'Viewing with {lead_name} for property at {location or "N/A"}',
        'start_time': start,
        'end_time': end,
        'color': VIEWING_STATUS_COLORS.get(viewing.status, 'blue'),
        'location': location,
        'assigned_to_id': viewing.agent_id,
        'property_id': viewing.property_id,
        'lead_id': viewing.lead_id,
    }


def create_viewing_event(user: AuthenticatedUser, viewing: Viewing) -> CalendarEvent | None:
    """
    Put a one-hour 'showing' event on the agent's calendar and link it.

    Failures are logged; the viewing write has already succeeded.
    """
    try:
        event = CalendarEvent.objects.create(
            type='showing',
            all_day=False,
            notes=viewing.notes or f'Viewing ID: {viewing.id}',
            created_by_id=user.id,
            **_event_fields(viewing),
        )
        if viewing.lead:
            EventAttendee.objects.create(event=event, name=viewing.lead.customer_name, position=0)
        Viewing.objects.filter(id=viewing.id).update(calendar_event=event)
        viewing.calendar_event = event
        notification_service.schedule_reminders(event.id)
        return event
    except Exception as e:
        logger.exception(f'Failed to create calendar event for viewing {viewing.id}: {e}')
        return None


def sync_viewing_event(viewing: Viewing) -> None:
    """Carry date, time, agent, links and status colour over to the linked event."""
    if not viewing.calendar_event_id:
        return
    try:
        viewing = Viewing.objects.select_related('property', 'lead').get(id=viewing.id)
        CalendarEvent.objects.filter(id=viewing.calendar_event_id).update(
            updated_at=timezone.now(),
            **_event_fields(viewing),
        )
        notification_service.schedule_reminders(viewing.calendar_event_id)
    except Exception as e:
        logger.exception(f'Failed to update calendar event for viewing {viewing.id}: {e}')


def _notify_created(user: AuthenticatedUser, viewing: Viewing) -> None:
    prop = viewing.property
    details = prop.reference_number or prop.location if prop else 'a property'
    lead_details = f' with {viewing.lead.customer_name}' if viewing.lead else ''
    time_details = f' at {viewing.viewing_time.strftime("%H:%M")}' if viewing.viewing_time else ''
    message = (
        f'A new viewing has been scheduled for {details}{lead_details} '
        f'on {viewing.viewing_date.isoformat()}{time_details}.'
    )

    management_ids = (
        User.objects
        .filter(role__in=VIEW_ALL_ROLES, is_active=True)
        .exclude(id=user.id)
        .values_list('id', flat=True)
    )
    notification_service.notify(
        'viewing_created',
        {'message': message, 'entity_type': 'viewing', 'entity_id': viewing.id},
        list(management_ids),
    )

    if str(viewing.agent_id) != str(user.id):
        notification_service.notify(
            'viewing_assigned',
            {'message': message, 'entity_type': 'viewing', 'entity_id': viewing.id},
            [viewing.agent_id],
        )
