"""
Integration Tests for fire-and-forget dispatch (notifications, reminders).
"""
import uuid
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from django.db import DatabaseError

from apps.core.models import EventReminder, Notification
from services import notification_service
from tests.factories import CalendarEventFactory, EventAttendeeFactory, UserFactory


class TestReminderTimes:
    """Tests for reminder_times (no database)."""

    def test_all_three_reminders_for_afternoon_event(self):
        start = datetime(2025, 6, 10, 15, 0, tzinfo=dt_timezone.utc)
        now = datetime(2025, 6, 1, tzinfo=dt_timezone.utc)

        times = notification_service.reminder_times(start, now=now)

        assert times == {
            '1_day': datetime(2025, 6, 9, 15, 0, tzinfo=dt_timezone.utc),
            'same_day': datetime(2025, 6, 10, 9, 0, tzinfo=dt_timezone.utc),
            '1_hour': datetime(2025, 6, 10, 14, 0, tzinfo=dt_timezone.utc),
        }

    def test_no_same_day_reminder_for_early_event(self):
        start = datetime(2025, 6, 10, 8, 30, tzinfo=dt_timezone.utc)
        now = datetime(2025, 6, 1, tzinfo=dt_timezone.utc)

        times = notification_service.reminder_times(start, now=now)

        assert 'same_day' not in times

    def test_past_reminders_dropped(self):
        start = datetime(2025, 6, 10, 15, 0, tzinfo=dt_timezone.utc)
        now = datetime(2025, 6, 10, 13, 0, tzinfo=dt_timezone.utc)

        times = notification_service.reminder_times(start, now=now)

        assert list(times) == ['1_hour']


@pytest.mark.django_db
class TestNotify:
    """Tests for notify."""

    def test_creates_one_notification_per_unique_recipient(self):
        user = UserFactory()

        count = notification_service.notify(
            'property_assigned',
            {'message': 'You have a new property', 'entity_type': 'property', 'entity_id': 'abc'},
            [user.id, user.id, None],
        )

        assert count == 1
        notification = Notification.objects.get(user=user)
        assert notification.title == 'Property Assigned'
        assert notification.entity_id == 'abc'

    def test_no_recipients_is_a_no_op(self):
        assert notification_service.notify('event_created', {'message': 'x'}, []) == 0

    def test_failure_is_swallowed(self, mocker):
        user = UserFactory()
        mocker.patch.object(Notification.objects, 'bulk_create', side_effect=DatabaseError('down'))

        assert notification_service.notify('event_created', {'message': 'x'}, [user.id]) == 0


@pytest.mark.django_db
class TestScheduleReminders:
    """Tests for schedule_reminders."""

    def test_schedules_for_creator_assignee_and_attendee_users(self):
        creator = UserFactory()
        assignee = UserFactory()
        event = CalendarEventFactory(
            created_by=creator,
            assigned_to=assignee,
            start_time=datetime.now(dt_timezone.utc).replace(hour=15, minute=0, second=0, microsecond=0) + timedelta(days=3),
        )
        EventAttendeeFactory(event=event)

        count = notification_service.schedule_reminders(event.id)

        assert count == 9
        assert EventReminder.objects.filter(event=event, reminder_type='1_day').count() == 3

    def test_rescheduling_replaces_unsent_reminders(self):
        event = CalendarEventFactory(start_time=datetime.now(dt_timezone.utc) + timedelta(days=3))

        notification_service.schedule_reminders(event.id)
        notification_service.schedule_reminders(event.id)

        assert EventReminder.objects.filter(event=event, reminder_type='1_hour').count() == 1

    def test_sent_reminders_are_not_duplicated(self):
        event = CalendarEventFactory(start_time=datetime.now(dt_timezone.utc) + timedelta(days=3))
        notification_service.schedule_reminders(event.id)
        EventReminder.objects.filter(event=event, reminder_type='1_day').update(sent=True)

        notification_service.schedule_reminders(event.id)

        assert EventReminder.objects.filter(event=event, reminder_type='1_day').count() == 1

    def test_missing_event_returns_zero(self):
        assert notification_service.schedule_reminders(uuid.uuid4()) == 0

    def test_failure_is_swallowed(self, mocker):
        event = CalendarEventFactory()
        mocker.patch.object(EventReminder.objects, 'bulk_create', side_effect=DatabaseError('down'))

        assert notification_service.schedule_reminders(event.id) == 0
