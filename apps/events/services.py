"""
Calendar Event Services

Create, update and delete calendar events. Edits and deletes follow the
ownership rule in apps.core.permissions; notifications and reminders are
dispatched after the write and never fail it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from django.db import transaction

from apps.core.authentication import AuthenticatedUser
from apps.core.constants import EVENT_DEFAULTS
from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.models import CalendarEvent, EventAttendee, Lead, Property, User
from apps.core.permissions import EditDecision, check_edit_permission, resolve_decision
from services import notification_service

logger = logging.getLogger(__name__)

EVENT_FIELDS = (
    'title', 'description', 'start_time', 'end_time', 'all_day', 'color',
    'type', 'location', 'notes', 'assigned_to_id', 'property_id', 'lead_id',
)


@dataclass
class EventInput:
    """
    Parsed event payload.

    `provided` names the fields present in the request, so updates only
    touch what was sent.
    """
    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    all_day: bool | None = None
    color: str | None = None
    type: str | None = None
    location: str | None = None
    notes: str | None = None
    attendees: list[str] | None = None
    assigned_to_id: UUID | None = None
    property_id: UUID | None = None
    lead_id: UUID | None = None
    provided: set[str] = field(default_factory=set)


def _validate_time_order(start_time: datetime, end_time: datetime) -> None:
    if start_time >= end_time:
        raise ValidationError('End time must be after start time')


def _validate_links(data: EventInput) -> None:
    if data.assigned_to_id and not User.objects.filter(id=data.assigned_to_id).exists():
        raise ValidationError('Assigned user not found')
    if data.property_id and not Property.objects.filter(id=data.property_id).exists():
        raise ValidationError('Property not found')
    if data.lead_id and not Lead.objects.filter(id=data.lead_id).exists():
        raise ValidationError('Lead not found')


def _set_attendees(event: CalendarEvent, names: list[str]) -> None:
    """
    Replace the attendee list.

    The user link is filled only when exactly one active user has the name.
    """
    event.attendee_refs.all().delete()
    refs = []
    for position, raw_name in enumerate(names):
        name = str(raw_name).strip()
        if not name:
            continue
        matches = list(User.objects.filter(name=name, is_active=True).values_list('id', flat=True)[:2])
        refs.append(EventAttendee(
            event=event,
            name=name,
            user_id=matches[0] if len(matches) == 1 else None,
            position=position,
        ))
    EventAttendee.objects.bulk_create(refs)


def _recipients(event: CalendarEvent, actor_id: UUID) -> list[UUID]:
    attendee_ids = list(event.attendee_refs.exclude(user_id=None).values_list('user_id', flat=True))
    ids = [event.assigned_to_id, event.created_by_id, *attendee_ids]
    return [user_id for user_id in ids if user_id and str(user_id) != str(actor_id)]


def _dispatch(kind: str, event: CalendarEvent, actor: AuthenticatedUser, message: str) -> None:
    notification_service.notify(
        kind,
        {
            'message': message,
            'entity_type': 'calendar_event',
            'entity_id': event.id,
        },
        _recipients(event, actor.id),
    )


def _load_for_permission(event_id):
    return CalendarEvent.objects.only('id', 'created_by_id', 'assigned_to_id').filter(id=event_id).first()


def get_edit_decision(user: AuthenticatedUser, event_id: UUID) -> EditDecision:
    """Edit/delete decision for an event; lookup failures deny with CHECK_ERROR."""
    return resolve_decision(check_edit_permission(user, event_id, _load_for_permission))


def _require_event(event_id: UUID) -> CalendarEvent:
    event = CalendarEvent.objects.filter(id=event_id).first()
    if event is None:
        raise NotFoundError('Event not found')
    return event


def _require_edit(user: AuthenticatedUser, event_id: UUID, action: str) -> None:
    decision = get_edit_decision(user, event_id)
    if not decision.allowed:
        raise PermissionDeniedError(
            f'Access denied. You can only {action} events you created or are assigned to.',
            reason=decision.reason.value,
        )


def create_event(user: AuthenticatedUser, data: EventInput) -> CalendarEvent:
    """
    Create a calendar event owned by the user.

    Raises:
        ValidationError: missing title/start/end, end not after start, bad links
    """
    if not data.title or not data.start_time or not data.end_time:
        raise ValidationError('Title, start time, and end time are required')
    _validate_time_order(data.start_time, data.end_time)
    _validate_links(data)

    with transaction.atomic():
        event = CalendarEvent.objects.create(
            title=data.title,
            description=data.description,
            start_time=data.start_time,
            end_time=data.end_time,
            all_day=data.all_day if data.all_day is not None else EVENT_DEFAULTS['all_day'],
            color=data.color or EVENT_DEFAULTS['color'],
            type=data.type or EVENT_DEFAULTS['type'],
            location=data.location,
            notes=data.notes,
            created_by_id=user.id,
            assigned_to_id=data.assigned_to_id or user.id,
            property_id=data.property_id,
            lead_id=data.lead_id,
        )
        _set_attendees(event, data.attendees or [])

    logger.info(f'User {user.id} created event {event.id}')

    _dispatch('event_created', event, user, f'{user.name} added you to "{event.title}"')
    notification_service.schedule_reminders(event.id)
    return event


def update_event(user: AuthenticatedUser, event_id: UUID, data: EventInput) -> CalendarEvent:
    """
    Update an event the user owns (or any event, for admins).

    Existence is checked before ownership, ownership before validation.

    Raises:
        NotFoundError, PermissionDeniedError, ValidationError
    """
    event = _require_event(event_id)
    _require_edit(user, event_id, 'edit')

    start_time = data.start_time if 'start_time' in data.provided else event.start_time
    end_time = data.end_time if 'end_time' in data.provided else event.end_time
    if 'title' in data.provided and not data.title:
        raise ValidationError('Title, start time, and end time are required')
    if start_time is None or end_time is None:
        raise ValidationError('Title, start time, and end time are required')
    _validate_time_order(start_time, end_time)
    _validate_links(data)

    with transaction.atomic():
        for name in EVENT_FIELDS:
            if name in data.provided:
                setattr(event, name, getattr(data, name))
        if 'color' in data.provided and not event.color:
            event.color = EVENT_DEFAULTS['color']
        if 'type' in data.provided and not event.type:
            event.type = EVENT_DEFAULTS['type']
        if 'all_day' in data.provided and event.all_day is None:
            event.all_day = EVENT_DEFAULTS['all_day']
        event.save()
        if 'attendees' in data.provided:
            _set_attendees(event, data.attendees or [])

    logger.info(f'User {user.id} updated event {event.id}')

    _dispatch('event_updated', event, user, f'"{event.title}" was updated by {user.name}')
    notification_service.schedule_reminders(event.id)
    return event


def delete_event(user: AuthenticatedUser, event_id: UUID) -> None:
    """
    Delete an event under the same ownership rule as edits.

    Raises:
        NotFoundError, PermissionDeniedError
    """
    event = _require_event(event_id)
    _require_edit(user, event_id, 'delete')

    recipients = _recipients(event, user.id)
    title = event.title
    event.delete()
    logger.info(f'User {user.id} deleted event {event_id}')

    notification_service.notify(
        'event_deleted',
        {
            'message': f'"{title}" was cancelled by {user.name}',
            'entity_type': 'calendar_event',
            'entity_id': event_id,
        },
        recipients,
    )
