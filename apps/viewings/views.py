"""
Viewings API Views

Endpoints:
- GET /api/viewings - List visible viewings (filters: status, agent_id,
  property_id, lead_id, date_from, date_to, search)
- POST /api/viewings - Book a viewing
- GET /api/viewings/stats - Per-status counts of visible viewings
- GET /api/viewings/agent/{agent_id} - An agent's viewings
- GET/PUT/DELETE /api/viewings/{id} - Viewing CRUD
"""
import logging

from rest_framework import status
from rest_framework.views import APIView

from apps.core.constants import VIEWING_STATUSES
from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.mixins import AuthenticatedAPIView
from apps.core.permissions import IsAuthenticated
from apps.core.serializers import ViewingSerializer

from .selectors import (
    ViewingFilters,
    can_view_agent_viewings,
    can_view_viewing,
    get_viewing,
    get_viewing_stats,
    list_viewings,
    viewings_by_agent,
)
from .services import ViewingInput, create_viewing, delete_viewing, update_viewing

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('status', 'description', 'notes')


class ViewingInputMixin:
    """Turns a request body into a ViewingInput."""

    def build_viewing_input(self, data) -> ViewingInput:
        viewing_input = ViewingInput()

        for name in TEXT_FIELDS:
            if name in data:
                value = data.get(name)
                setattr(viewing_input, name, str(value).strip() if value not in (None, '') else None)
                viewing_input.provided.add(name)

        for name in ('property_id', 'lead_id', 'agent_id'):
            if name in data:
                value = data.get(name)
                setattr(viewing_input, name, self.parse_uuid(value, name) if value else None)
                viewing_input.provided.add(name)

        if 'viewing_date' in data:
            value = data.get('viewing_date')
            viewing_input.viewing_date = self.require_date(value, 'viewing_date') if value else None
            viewing_input.provided.add('viewing_date')

        if 'viewing_time' in data:
            viewing_input.viewing_time = self.parse_time_optional(data.get('viewing_time'), 'viewing_time')
            viewing_input.provided.add('viewing_time')

        if 'is_serious' in data:
            value = data.get('is_serious')
            if not isinstance(value, bool):
                raise ValidationError('is_serious must be a boolean')
            viewing_input.is_serious = value
            viewing_input.provided.add('is_serious')

        return viewing_input


class ViewingListCreateView(ViewingInputMixin, AuthenticatedAPIView, APIView):
    """GET/POST /api/viewings"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        params = request.query_params

        status_filter = (params.get('status') or '').strip()
        if status_filter.lower() == 'all':
            status_filter = ''
        if status_filter and status_filter not in VIEWING_STATUSES:
            raise ValidationError(f'Status must be one of: {", ".join(VIEWING_STATUSES)}')

        filters = ViewingFilters(
            status=status_filter or None,
            agent_id=self.parse_uuid(params['agent_id'], 'agent_id') if params.get('agent_id') else None,
            property_id=self.parse_uuid(params['property_id'], 'property_id') if params.get('property_id') else None,
            lead_id=self.parse_uuid(params['lead_id'], 'lead_id') if params.get('lead_id') else None,
            date_from=self.parse_date(params.get('date_from')),
            date_to=self.parse_date(params.get('date_to')),
            search=(params.get('search') or '').strip() or None,
        )
        limit = self.parse_limit(params.get('limit'))

        qs = list_viewings(user, filters)
        total = qs.count()
        viewings = ViewingSerializer(qs[:limit], many=True).data
        return self.success_response({'viewings': viewings, 'count': len(viewings), 'total': total})

    def post(self, request):
        user = self.get_user(request)
        viewing = create_viewing(user, self.build_viewing_input(request.data))
        return self.success_response(
            {'viewing': ViewingSerializer(get_viewing(viewing.id)).data},
            message='Viewing created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class ViewingStatsView(AuthenticatedAPIView, APIView):
    """GET /api/viewings/stats"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        return self.success_response({'stats': get_viewing_stats(user)})


class ViewingsByAgentView(AuthenticatedAPIView, APIView):
    """GET /api/viewings/agent/{agent_id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request, agent_id):
        user = self.get_user(request)
        agent_uuid = self.parse_uuid(agent_id, 'agent_id')
        if not can_view_agent_viewings(user, agent_uuid):
            raise PermissionDeniedError('You can only view viewings for yourself or agents under your team')
        viewings = ViewingSerializer(viewings_by_agent(agent_uuid), many=True).data
        return self.success_response({'viewings': viewings, 'count': len(viewings)})


class ViewingDetailView(ViewingInputMixin, AuthenticatedAPIView, APIView):
    """GET/PUT/DELETE /api/viewings/{id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request, viewing_id):
        user = self.get_user(request)
        viewing = get_viewing(self.parse_uuid(viewing_id, 'viewing_id'))
        if viewing is None:
            raise NotFoundError('Viewing not found')
        if not can_view_viewing(user, viewing):
            raise PermissionDeniedError('You do not have permission to view this viewing')
        return self.success_response({'viewing': ViewingSerializer(viewing).data})

    def put(self, request, viewing_id):
        user = self.get_user(request)
        viewing = update_viewing(
            user,
            self.parse_uuid(viewing_id, 'viewing_id'),
            self.build_viewing_input(request.data),
        )
        return self.success_response(
            {'viewing': ViewingSerializer(get_viewing(viewing.id)).data},
            message='Viewing updated successfully',
        )

    def delete(self, request, viewing_id):
        user = self.get_user(request)
        delete_viewing(user, self.parse_uuid(viewing_id, 'viewing_id'))
        return self.success_response(message='Viewing deleted successfully')
