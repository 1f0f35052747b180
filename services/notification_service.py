"""
Notification Service

Fire-and-forget dispatch used after successful mutations: in-app
notifications and calendar event reminders. A failure here is logged and
swallowed; the mutation that triggered it has already succeeded.
"""
import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from apps.core.constants import (
    NOTIFICATION_KINDS,
    REMINDER_ONE_DAY,
    REMINDER_ONE_HOUR,
    REMINDER_SAME_DAY,
)

logger = logging.getLogger(__name__)


def _unique_ids(recipients: Iterable) -> list[UUID]:
    seen = set()
    result = []
    for recipient in recipients:
        if not recipient:
            continue
        key = str(recipient)
        if key in seen:
            continue
        seen.add(key)
        result.append(recipient)
    return result


def notify(event_kind: str, payload: dict, recipients: Iterable) -> int:
    """
    Create an in-app notification for each recipient.

    Args:
        event_kind: Key of NOTIFICATION_KINDS (e.g. 'property_assigned')
        payload: message, and optionally title, type, entity_type, entity_id
        recipients: User IDs; empty and duplicate entries are ignored

    Returns:
        Number of notifications created (0 if dispatch failed)
    """
    try:
        from apps.core.models import Notification

        user_ids = _unique_ids(recipients)
        if not user_ids:
            return 0

        title = payload.get('title') or NOTIFICATION_KINDS.get(event_kind, event_kind)
        entity_id = payload.get('entity_id')
        notifications = [
            Notification(
                user_id=user_id,
                title=title,
                message=payload.get('message', ''),
                type=payload.get('type', 'info'),
                entity_type=payload.get('entity_type'),
                entity_id=str(entity_id) if entity_id else None,
            )
            for user_id in user_ids
        ]
        Notification.objects.bulk_create(notifications)
        logger.info(f'Sent {len(notifications)} {event_kind} notification(s)')
        return len(notifications)
    except Exception as e:
        logger.exception(f'Failed to send {event_kind} notifications: {e}')
        return 0


def reminder_times(start_time: datetime, now: datetime | None = None) -> dict[str, datetime]:
    """
    Reminder send times for an event starting at start_time.

    - 1_day: 24 hours before
    - same_day: REMINDER_SAME_DAY_HOUR (UTC) on the start day, if before the start
    - 1_hour: 1 hour before

    Times already in the past are dropped.
    """
    now = now or timezone.now()
    same_day_hour = int(getattr(settings, 'REMINDER_SAME_DAY_HOUR', 9))

    candidates = {
        REMINDER_ONE_DAY: start_time - timedelta(days=1),
        REMINDER_ONE_HOUR: start_time - timedelta(hours=1),
    }
    morning = start_time.replace(hour=same_day_hour, minute=0, second=0, microsecond=0)
    if morning < start_time:
        candidates[REMINDER_SAME_DAY] = morning

    return {kind: when for kind, when in candidates.items() if when > now}


def schedule_reminders(event_id: UUID, payload: dict | None = None) -> int:
    """
    (Re)schedule reminders for everyone on a calendar event.

    Unsent reminders of the event are replaced. Recipients are the assignee,
    the creator and attendees whose name resolved to a user.

    Args:
        event_id: The calendar event
        payload: Optional extra recipients under 'user_ids'

    Returns:
        Number of reminders scheduled (0 if scheduling failed)
    """
    try:
        from apps.core.models import CalendarEvent, EventReminder

        event = CalendarEvent.objects.filter(id=event_id).first()
        if event is None:
            logger.warning(f'Cannot schedule reminders, event {event_id} not found')
            return 0

        EventReminder.objects.filter(event=event, sent=False).delete()

        attendee_user_ids = event.attendee_refs.exclude(user_id=None).values_list('user_id', flat=True)
        extra = (payload or {}).get('user_ids', [])
        user_ids = _unique_ids([event.assigned_to_id, event.created_by_id, *attendee_user_ids, *extra])

        times = reminder_times(event.start_time)
        already_sent = set(
            EventReminder.objects
            .filter(event=event, sent=True)
            .values_list('user_id', 'reminder_type')
        )
        reminders = [
            EventReminder(event=event, user_id=user_id, reminder_type=kind, scheduled_time=when)
            for user_id in user_ids
            for kind, when in times.items()
            if (user_id, kind) not in already_sent
        ]
        EventReminder.objects.bulk_create(reminders)
        logger.info(f'Scheduled {len(reminders)} reminder(s) for event {event_id}')
        return len(reminders)
    except Exception as e:
        logger.exception(f'Failed to schedule reminders for event {event_id}: {e}')
        return 0
