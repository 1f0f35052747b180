"""
Calendar Events API Views

Endpoints:
- GET /api/calendar/events - List events (admins may pass advanced filters)
- POST /api/calendar/events - Create an event
- GET /api/calendar/events/range - Events overlapping [start, end]
- GET /api/calendar/events/month - Events in a month
- GET /api/calendar/events/week - Events in the week starting startOfWeek
- GET /api/calendar/events/day - Events on a day
- GET /api/calendar/events/search - Free-text search
- GET/PUT/DELETE /api/calendar/events/{id} - Event CRUD
- GET /api/calendar/events/{id}/permissions - Can the user edit/delete it
- GET /api/calendar/properties - Property dropdown
- GET /api/calendar/leads - Lead dropdown
- GET /api/calendar/event-types - Event type dropdown
"""
import logging

from rest_framework import status
from rest_framework.views import APIView

from apps.core.constants import EVENT_TYPES
from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.mixins import AuthenticatedAPIView
from apps.core.permissions import IsAuthenticated
from apps.core.serializers import CalendarEventSerializer

from .selectors import (
    EventFilters,
    can_view_event,
    day_bounds,
    events_in_range,
    get_event,
    get_lead_options,
    get_property_options,
    list_events,
    month_bounds,
    search_events,
    week_bounds,
)
from .services import EventInput, create_event, delete_event, get_edit_decision, update_event

logger = logging.getLogger(__name__)

# request key -> EventInput attribute
TEXT_FIELDS = {
    'title': 'title',
    'description': 'description',
    'color': 'color',
    'type': 'type',
    'location': 'location',
    'notes': 'notes',
}
LINK_FIELDS = {
    'assignedTo': 'assigned_to_id',
    'propertyId': 'property_id',
    'leadId': 'lead_id',
}


class EventInputMixin:
    """Turns a camelCase request body into an EventInput."""

    def build_event_input(self, data) -> EventInput:
        event_input = EventInput()

        for key, attr in TEXT_FIELDS.items():
            if key in data:
                value = data.get(key)
                setattr(event_input, attr, str(value).strip() if value is not None else None)
                event_input.provided.add(attr)

        for key, attr in (('start', 'start_time'), ('end', 'end_time')):
            if key in data:
                value = data.get(key)
                setattr(event_input, attr, self.require_datetime(value) if value else None)
                event_input.provided.add(attr)

        if 'allDay' in data:
            event_input.all_day = bool(data.get('allDay'))
            event_input.provided.add('all_day')

        if 'attendees' in data:
            attendees = data.get('attendees') or []
            if not isinstance(attendees, list):
                raise ValidationError('attendees must be a list of names')
            event_input.attendees = [str(name) for name in attendees]
            event_input.provided.add('attendees')

        for key, attr in LINK_FIELDS.items():
            if key in data:
                value = data.get(key)
                setattr(event_input, attr, self.parse_uuid(value, key) if value else None)
                event_input.provided.add(attr)

        return event_input


def _serialize(events) -> list[dict]:
    return CalendarEventSerializer(events, many=True).data


class EventListCreateView(EventInputMixin, AuthenticatedAPIView, APIView):
    """GET/POST /api/calendar/events"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        params = request.query_params

        filters = None
        if user.is_administrator:
            filters = EventFilters(
                created_by=self.parse_uuid(params['createdBy'], 'createdBy') if params.get('createdBy') else None,
                attendee_id=self.parse_uuid(params['attendee'], 'attendee') if params.get('attendee') else None,
                type=params.get('type') or None,
                date_from=self.require_date(params['dateFrom'], 'dateFrom') if params.get('dateFrom') else None,
                date_to=self.require_date(params['dateTo'], 'dateTo') if params.get('dateTo') else None,
                search=(params.get('search') or '').strip() or None,
            )

        events = _serialize(list_events(user, filters))
        return self.success_response({'events': events, 'count': len(events)})

    def post(self, request):
        user = self.get_user(request)
        data = request.data

        if not data.get('title') or not data.get('start') or not data.get('end'):
            raise ValidationError('Title, start time, and end time are required')

        event = create_event(user, self.build_event_input(data))
        return self.success_response(
            {'event': CalendarEventSerializer(get_event(event.id)).data},
            message='Event created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class EventRangeView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/events/range?start=&end="""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        start = request.query_params.get('start')
        end = request.query_params.get('end')
        if not start or not end:
            raise ValidationError('Start and end dates are required')

        events = _serialize(events_in_range(user, self.require_datetime(start), self.require_datetime(end)))
        return self.success_response({'events': events, 'count': len(events)})


class EventMonthView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/events/month?year=&month="""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        try:
            year = int(request.query_params.get('year', ''))
            month = int(request.query_params.get('month', ''))
        except ValueError as err:
            raise ValidationError('Valid year and month are required') from err
        if not 1 <= month <= 12 or not 1 <= year <= 9999:
            raise ValidationError('Valid year and month are required')

        start, end = month_bounds(year, month)
        events = _serialize(events_in_range(user, start, end))
        return self.success_response({'events': events, 'count': len(events)})


class EventWeekView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/events/week?startOfWeek="""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        start_of_week = self.require_date(request.query_params.get('startOfWeek'), 'startOfWeek')

        start, end = week_bounds(start_of_week)
        events = _serialize(events_in_range(user, start, end))
        return self.success_response({'events': events, 'count': len(events)})


class EventDayView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/events/day?date="""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        day = self.require_date(request.query_params.get('date'), 'date')

        start, end = day_bounds(day)
        events = _serialize(events_in_range(user, start, end))
        return self.success_response({'events': events, 'count': len(events)})


class EventSearchView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/events/search?q="""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        term = (request.query_params.get('q') or '').strip()
        if not term:
            raise ValidationError('Search query is required')

        events = _serialize(search_events(user, term))
        return self.success_response({'events': events, 'count': len(events)})


class EventDetailView(EventInputMixin, AuthenticatedAPIView, APIView):
    """GET/PUT/DELETE /api/calendar/events/{id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        user = self.get_user(request)
        event = get_event(self.parse_uuid(event_id, 'event_id'))
        if event is None:
            raise NotFoundError('Event not found')
        if not can_view_event(user, event):
            raise PermissionDeniedError('Access denied')
        return self.success_response({'event': CalendarEventSerializer(event).data})

    def put(self, request, event_id):
        user = self.get_user(request)
        event_uuid = self.parse_uuid(event_id, 'event_id')
        if get_event(event_uuid) is None:
            raise NotFoundError('Event not found')

        update_event(user, event_uuid, self.build_event_input(request.data))
        return self.success_response(
            {'event': CalendarEventSerializer(get_event(event_uuid)).data},
            message='Event updated successfully',
        )

    def delete(self, request, event_id):
        user = self.get_user(request)
        delete_event(user, self.parse_uuid(event_id, 'event_id'))
        return self.success_response(message='Event deleted successfully')


class EventPermissionView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/events/{id}/permissions"""

    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        user = self.get_user(request)
        event_uuid = self.parse_uuid_optional(event_id)
        if event_uuid is not None and get_event(event_uuid) is None:
            raise NotFoundError('Event not found')

        # Malformed ids reach the check and come back as CHECK_ERROR
        decision = get_edit_decision(user, event_uuid if event_uuid else event_id)
        return self.success_response({
            'canEdit': decision.allowed,
            'canDelete': decision.allowed,
            'reason': decision.reason.value,
        })


class EventPropertyOptionsView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/properties"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        return self.success_response({'properties': get_property_options(user)})


class EventLeadOptionsView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/leads"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        return self.success_response({'leads': get_lead_options(user)})


class EventTypeOptionsView(AuthenticatedAPIView, APIView):
    """GET /api/calendar/event-types"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        self.get_user(request)
        return self.success_response({'types': EVENT_TYPES})
