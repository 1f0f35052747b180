"""
Calendar Event Selectors

Read queries for calendar events. Every range query (range, month, week,
day) goes through events_in_range with an inclusive-overlap filter.
"""
import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from uuid import UUID

from apps.core.authentication import AuthenticatedUser
from apps.core.models import CalendarEvent, Lead, Property, User
from services.hierarchy_service import HierarchyService

logger = logging.getLogger(__name__)


@dataclass
class EventFilters:
    """Admin-only advanced filters for the event listing."""
    created_by: UUID | None = None
    attendee_id: UUID | None = None
    type: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None

    def has_any(self) -> bool:
        return any([
            self.created_by, self.attendee_id, self.type,
            self.date_from, self.date_to, self.search,
        ])


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[00:00, 23:59:59.999999] UTC of a day."""
    start = datetime.combine(day, time.min, tzinfo=dt_timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=dt_timezone.utc)
    return start, end


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    start, _ = day_bounds(date(year, month, 1))
    _, end = day_bounds(date(year, month, last_day))
    return start, end


def week_bounds(start_of_week: date) -> tuple[datetime, datetime]:
    """Seven days starting at start_of_week."""
    start, _ = day_bounds(start_of_week)
    _, end = day_bounds(start_of_week + timedelta(days=6))
    return start, end


def visible_events(user: AuthenticatedUser):
    """Events the user may see, before any range or filter."""
    return (
        CalendarEvent.objects
        .with_relations()
        .visible_to(user, HierarchyService.team_agent_ids_for(user))
    )


def list_events(user: AuthenticatedUser, filters: EventFilters | None = None):
    """
    Event listing.

    Admins get every event, narrowed by the advanced filters when any is
    given. Other users get their hierarchy-filtered events; the advanced
    filters do not apply to them.
    """
    qs = visible_events(user)
    if not (user.is_administrator and filters and filters.has_any()):
        return qs.order_by('start_time')

    if filters.created_by:
        qs = qs.created_by(filters.created_by)
    if filters.attendee_id:
        attendee_name = User.objects.filter(id=filters.attendee_id).values_list('name', flat=True).first()
        if attendee_name is None:
            return qs.none()
        qs = qs.attended_by(attendee_name)
    if filters.type:
        qs = qs.of_type(filters.type)
    if filters.date_from or filters.date_to:
        qs = qs.starting_between(filters.date_from, filters.date_to)
    if filters.search:
        qs = qs.search(filters.search)
    return qs.order_by('start_time')


def events_in_range(user: AuthenticatedUser, start: datetime, end: datetime):
    """Visible events overlapping [start, end]."""
    return visible_events(user).overlapping(start, end).order_by('start_time')


def search_events(user: AuthenticatedUser, term: str):
    return visible_events(user).search(term).order_by('-start_time')


def get_event(event_id: UUID) -> CalendarEvent | None:
    return CalendarEvent.objects.with_relations().filter(id=event_id).first()


def can_view_event(user: AuthenticatedUser, event: CalendarEvent) -> bool:
    return visible_events(user).filter(id=event.id).exists()


def get_property_options(user: AuthenticatedUser) -> list[dict]:
    """Properties the user can link an event to."""
    qs = (
        Property.objects
        .visible_to(user, HierarchyService.team_agent_ids_for(user))
        .order_by('reference_number')
    )
    return [
        {'id': str(row['id']), 'reference_number': row['reference_number'], 'location': row['location']}
        for row in qs.values('id', 'reference_number', 'location')
    ]


def get_lead_options(user: AuthenticatedUser) -> list[dict]:
    """Leads the user can link an event to."""
    qs = (
        Lead.objects
        .visible_to(user, HierarchyService.team_agent_ids_for(user))
        .order_by('customer_name')
    )
    return [
        {'id': str(row['id']), 'customer_name': row['customer_name'], 'phone_number': row['phone_number']}
        for row in qs.values('id', 'customer_name', 'phone_number')
    ]
