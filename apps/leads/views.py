"""
Leads API Views

Endpoints:
- GET /api/leads - List visible leads (filters: status_id, agent_id,
  date_from, date_to, search)
- POST /api/leads - Create a lead, optionally with referrals
- GET /api/leads/statuses - Active lead statuses
- GET/PUT/DELETE /api/leads/{id} - Lead CRUD
- GET/POST /api/leads/{id}/referrals - Referral chain of a lead
- DELETE /api/leads/{id}/referrals/{referral_id} - Remove a referral
"""
import logging

from rest_framework import status
from rest_framework.views import APIView

from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.mixins import AuthenticatedAPIView
from apps.core.permissions import IsAuthenticated
from apps.core.serializers import LeadReferralSerializer, LeadSerializer, LeadStatusSerializer

from .selectors import LeadFilters, can_view_lead, get_lead, get_lead_statuses, list_leads
from .services import (
    LeadInput,
    LeadReferralInput,
    add_lead_referral,
    create_lead,
    delete_lead,
    delete_lead_referral,
    update_lead,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('customer_name', 'phone_number', 'reference_source', 'notes')


class LeadInputMixin:
    """Turns a request body into a LeadInput."""

    def build_lead_input(self, data) -> LeadInput:
        lead_input = LeadInput()

        for name in TEXT_FIELDS:
            if name in data:
                value = data.get(name)
                setattr(lead_input, name, str(value).strip() if value not in (None, '') else None)
                lead_input.provided.add(name)

        for name in ('agent_id', 'status_id'):
            if name in data:
                value = data.get(name)
                setattr(lead_input, name, self.parse_uuid(value, name) if value else None)
                lead_input.provided.add(name)

        if 'date' in data:
            value = data.get('date')
            lead_input.date = self.require_date(value, 'date') if value else None
            lead_input.provided.add('date')

        if 'referrals' in data:
            raw = data.get('referrals') or []
            if not isinstance(raw, list):
                raise ValidationError('referrals must be a list')
            lead_input.referrals = [self.build_referral_input(item) for item in raw]

        return lead_input

    def build_referral_input(self, item) -> LeadReferralInput:
        if not isinstance(item, dict):
            raise ValidationError('Each referral must be an object')
        employee_id = item.get('employee_id') or item.get('agent_id')
        return LeadReferralInput(
            name=(str(item.get('name') or '').strip() or None),
            type=item.get('type'),
            agent_id=self.parse_uuid(employee_id, 'employee_id') if employee_id else None,
            referral_date=self.parse_date(item.get('date')),
        )


class LeadListCreateView(LeadInputMixin, AuthenticatedAPIView, APIView):
    """GET/POST /api/leads"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        params = request.query_params

        filters = LeadFilters(
            status_id=self.parse_uuid(params['status_id'], 'status_id') if params.get('status_id') else None,
            agent_id=self.parse_uuid(params['agent_id'], 'agent_id') if params.get('agent_id') else None,
            date_from=self.parse_date(params.get('date_from')),
            date_to=self.parse_date(params.get('date_to')),
            search=(params.get('search') or '').strip() or None,
        )
        limit = self.parse_limit(params.get('limit'))

        qs = list_leads(user, filters)
        total = qs.count()
        leads = LeadSerializer(qs[:limit], many=True).data
        return self.success_response({'leads': leads, 'count': len(leads), 'total': total})

    def post(self, request):
        user = self.get_user(request)
        lead = create_lead(user, self.build_lead_input(request.data))
        return self.success_response(
            {'lead': LeadSerializer(get_lead(lead.id)).data},
            message='Lead created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class LeadStatusListView(AuthenticatedAPIView, APIView):
    """GET /api/leads/statuses"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        self.get_user(request)
        return self.success_response({'statuses': LeadStatusSerializer(get_lead_statuses(), many=True).data})


class LeadDetailView(LeadInputMixin, AuthenticatedAPIView, APIView):
    """GET/PUT/DELETE /api/leads/{id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request, lead_id):
        user = self.get_user(request)
        lead = get_lead(self.parse_uuid(lead_id, 'lead_id'))
        if lead is None:
            raise NotFoundError('Lead not found')
        if not can_view_lead(user, lead):
            raise PermissionDeniedError('You do not have permission to view this lead')
        return self.success_response({'lead': LeadSerializer(lead).data})

    def put(self, request, lead_id):
        user = self.get_user(request)
        lead = update_lead(user, self.parse_uuid(lead_id, 'lead_id'), self.build_lead_input(request.data))
        return self.success_response(
            {'lead': LeadSerializer(get_lead(lead.id)).data},
            message='Lead updated successfully',
        )

    def delete(self, request, lead_id):
        user = self.get_user(request)
        delete_lead(user, self.parse_uuid(lead_id, 'lead_id'))
        return self.success_response(message='Lead deleted successfully')


class LeadReferralsView(LeadInputMixin, AuthenticatedAPIView, APIView):
    """GET/POST /api/leads/{id}/referrals"""

    permission_classes = [IsAuthenticated]

    def get(self, request, lead_id):
        user = self.get_user(request)
        lead = get_lead(self.parse_uuid(lead_id, 'lead_id'))
        if lead is None:
            raise NotFoundError('Lead not found')
        if not can_view_lead(user, lead):
            raise PermissionDeniedError('You do not have permission to view this lead')
        referrals = lead.referrals.select_related('agent').order_by('referral_date', 'created_at')
        return self.success_response({'referrals': LeadReferralSerializer(referrals, many=True).data})

    def post(self, request, lead_id):
        user = self.get_user(request)
        referral = add_lead_referral(
            user,
            self.parse_uuid(lead_id, 'lead_id'),
            self.build_referral_input(request.data),
        )
        return self.success_response(
            {'referral': LeadReferralSerializer(referral).data},
            message='Referral added successfully',
            status_code=status.HTTP_201_CREATED,
        )


class LeadReferralDetailView(AuthenticatedAPIView, APIView):
    """DELETE /api/leads/{id}/referrals/{referral_id}"""

    permission_classes = [IsAuthenticated]

    def delete(self, request, lead_id, referral_id):
        user = self.get_user(request)
        delete_lead_referral(
            user,
            self.parse_uuid(lead_id, 'lead_id'),
            self.parse_uuid(referral_id, 'referral_id'),
        )
        return self.success_response(message='Referral deleted successfully')
