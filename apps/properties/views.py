"""
Properties API Views

Endpoints:
- GET /api/properties - List visible properties (filters: status_id,
  property_type, price_min, price_max, search)
- POST /api/properties - Create a property with its referrals
- GET /api/properties/stats/overview - Totals by status and type
- GET /api/properties/agent/{agent_id} - Properties assigned to an agent
- GET/PUT/DELETE /api/properties/{id} - Property CRUD
- GET /api/properties/{id}/referrals - Referral chain of a property
"""
import logging

from rest_framework import status
from rest_framework.views import APIView

from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.mixins import AuthenticatedAPIView
from apps.core.permissions import CanManageProperties, CanViewAgentPerformance, CanViewAllData, IsAuthenticated
from apps.core.serializers import PropertySerializer, ReferralSerializer

from .selectors import (
    PropertyFilters,
    can_view_property,
    get_property,
    get_property_stats,
    list_properties,
    owner_detail_checker,
    properties_by_agent,
)
from .services import PropertyInput, ReferralInput, create_property, delete_property, update_property

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    'property_type', 'location', 'category', 'building_name', 'owner_name',
    'phone_number', 'notes', 'property_url',
)


class PropertyInputMixin:
    """Turns a request body into a PropertyInput."""

    def build_property_input(self, data) -> PropertyInput:
        property_input = PropertyInput()

        for name in TEXT_FIELDS:
            if name in data:
                value = data.get(name)
                setattr(property_input, name, str(value).strip() if value not in (None, '') else None)
                property_input.provided.add(name)

        for name in ('status_id', 'owner_id', 'agent_id'):
            if name in data:
                value = data.get(name)
                setattr(property_input, name, self.parse_uuid(value, name) if value else None)
                property_input.provided.add(name)

        for name in ('price', 'surface'):
            if name in data:
                setattr(property_input, name, self.parse_decimal_optional(data.get(name), name))
                property_input.provided.add(name)

        if 'closed_date' in data:
            value = data.get('closed_date')
            property_input.closed_date = self.require_date(value, 'closed_date') if value else None
            property_input.provided.add('closed_date')

        if 'referrals' in data:
            property_input.referrals = self.build_referrals(data.get('referrals'))

        return property_input

    def build_referrals(self, raw) -> list[ReferralInput]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ValidationError('referrals must be a list')

        referrals = []
        for item in raw:
            if not isinstance(item, dict):
                raise ValidationError('Each referral must be an object')
            referrals.append(ReferralInput(
                name=(str(item.get('name') or '').strip() or None),
                type=item.get('type') or 'employee',
                employee_id=self.parse_uuid(item['employee_id'], 'employee_id') if item.get('employee_id') else None,
                date=self.parse_date(item.get('date')),
            ))
        return referrals


def _serialize(properties, user, many=False):
    return PropertySerializer(
        properties,
        many=many,
        context={'reveal_owner': owner_detail_checker(user)},
    ).data


class PropertyListCreateView(PropertyInputMixin, AuthenticatedAPIView, APIView):
    """GET/POST /api/properties"""

    permission_classes = [CanManageProperties]

    def get(self, request):
        user = self.get_user(request)
        params = request.query_params

        filters = PropertyFilters(
            status_id=self.parse_uuid(params['status_id'], 'status_id') if params.get('status_id') else None,
            property_type=params.get('property_type') or None,
            price_min=self.parse_decimal_optional(params.get('price_min'), 'price_min'),
            price_max=self.parse_decimal_optional(params.get('price_max'), 'price_max'),
            search=(params.get('search') or '').strip() or None,
        )
        limit = self.parse_limit(params.get('limit'))

        qs = list_properties(user, filters)
        total = qs.count()
        properties = _serialize(qs[:limit], user, many=True)
        return self.success_response({'properties': properties, 'count': len(properties), 'total': total})

    def post(self, request):
        user = self.get_user(request)
        prop = create_property(user, self.build_property_input(request.data))
        return self.success_response(
            {'property': _serialize(get_property(prop.id), user)},
            message='Property created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class PropertyStatsView(AuthenticatedAPIView, APIView):
    """GET /api/properties/stats/overview"""

    permission_classes = [CanViewAllData]

    def get(self, request):
        self.get_user(request)
        return self.success_response({'data': get_property_stats()})


class PropertiesByAgentView(AuthenticatedAPIView, APIView):
    """GET /api/properties/agent/{agent_id}"""

    permission_classes = [CanViewAgentPerformance]

    def get(self, request, agent_id):
        user = self.get_user(request)
        agent_uuid = self.parse_uuid(agent_id, 'agent_id')
        properties = _serialize(properties_by_agent(agent_uuid), user, many=True)
        return self.success_response({'properties': properties, 'count': len(properties)})


class PropertyDetailView(PropertyInputMixin, AuthenticatedAPIView, APIView):
    """GET/PUT/DELETE /api/properties/{id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request, property_id):
        user = self.get_user(request)
        prop = get_property(self.parse_uuid(property_id, 'property_id'))
        if prop is None:
            raise NotFoundError('Property not found')
        if not can_view_property(user, prop):
            raise PermissionDeniedError('Access denied')
        return self.success_response({'property': _serialize(prop, user)})

    def put(self, request, property_id):
        user = self.get_user(request)
        property_uuid = self.parse_uuid(property_id, 'property_id')
        if get_property(property_uuid) is None:
            raise NotFoundError('Property not found')

        update_property(user, property_uuid, self.build_property_input(request.data))
        return self.success_response(
            {'property': _serialize(get_property(property_uuid), user)},
            message='Property updated successfully',
        )

    def delete(self, request, property_id):
        user = self.get_user(request)
        delete_property(user, self.parse_uuid(property_id, 'property_id'))
        return self.success_response(message='Property deleted successfully')


class PropertyReferralsView(AuthenticatedAPIView, APIView):
    """GET /api/properties/{id}/referrals"""

    permission_classes = [IsAuthenticated]

    def get(self, request, property_id):
        user = self.get_user(request)
        prop = get_property(self.parse_uuid(property_id, 'property_id'))
        if prop is None:
            raise NotFoundError('Property not found')
        if not can_view_property(user, prop):
            raise PermissionDeniedError('Access denied')
        referrals = ReferralSerializer(prop.referrals.select_related('employee').order_by('date', 'created_at'), many=True).data
        return self.success_response({'referrals': referrals})
