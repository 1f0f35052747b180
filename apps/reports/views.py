"""
Reports API Views

Endpoints:
- GET /api/reports/monthly - List reports visible to the user
- POST /api/reports/monthly - Create a report (agent_id, start_date, end_date)
- GET/PUT/DELETE /api/reports/monthly/{id} - Report detail, boosts/overrides, delete
- POST /api/reports/monthly/{id}/recalculate - Recompute buckets, keep boosts
- GET /api/reports/commission-preview - Compute without saving
- GET /api/reports/lead-sources - Distinct lead reference sources
"""
import logging

from rest_framework import status
from rest_framework.views import APIView

from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.mixins import AuthenticatedAPIView
from apps.core.permissions import CanManageReports, IsAuthenticated
from apps.core.serializers import AgentReportSerializer

from .selectors import ReportFilters, get_lead_sources, get_report, list_reports, report_access_error
from .services import (
    OVERRIDABLE_FIELDS,
    ReportUpdate,
    create_report,
    delete_report,
    preview_commission,
    recalculate_report,
    update_report,
)

logger = logging.getLogger(__name__)


class ReportListCreateView(AuthenticatedAPIView, APIView):
    """GET/POST /api/reports/monthly"""

    permission_classes = [CanManageReports]

    def get(self, request):
        user = self.get_user(request)
        params = request.query_params

        filters = ReportFilters(
            agent_id=self.parse_uuid(params['agent_id'], 'agent_id') if params.get('agent_id') else None,
            start_date=self.parse_date(params.get('start_date')),
            end_date=self.parse_date(params.get('end_date')),
        )
        reports = AgentReportSerializer(list_reports(user, filters), many=True).data
        return self.success_response({'reports': reports, 'count': len(reports)})

    def post(self, request):
        user = self.get_user(request)
        data = request.data

        if not data.get('agent_id') or not data.get('start_date') or not data.get('end_date'):
            raise ValidationError('Agent ID, start date, and end date are required')

        report = create_report(
            user,
            self.parse_uuid(data.get('agent_id'), 'agent_id'),
            self.require_date(data.get('start_date'), 'start_date'),
            self.require_date(data.get('end_date'), 'end_date'),
        )
        return self.success_response(
            {'report': AgentReportSerializer(get_report(report.id)).data},
            message='Monthly report created successfully',
            status_code=status.HTTP_201_CREATED,
        )


class ReportDetailView(AuthenticatedAPIView, APIView):
    """GET/PUT/DELETE /api/reports/monthly/{id}"""

    permission_classes = [IsAuthenticated]

    def get(self, request, report_id):
        user = self.get_user(request)
        report = get_report(self.parse_uuid(report_id, 'report_id'))
        if report is None:
            raise NotFoundError('Report not found')
        denied = report_access_error(user, report)
        if denied:
            raise PermissionDeniedError(denied)
        return self.success_response({'report': AgentReportSerializer(report).data})

    def put(self, request, report_id):
        user = self.get_user(request)
        data = request.data

        update = ReportUpdate(boosts=self.parse_decimal_optional(data.get('boosts'), 'boosts'))
        for name in OVERRIDABLE_FIELDS:
            if name in data:
                value = self.parse_decimal_optional(data.get(name), name)
                if value is None:
                    raise ValidationError(f'{name} must be a number')
                update.overrides[name] = value

        report = update_report(user, self.parse_uuid(report_id, 'report_id'), update)
        return self.success_response(
            {'report': AgentReportSerializer(get_report(report.id)).data},
            message='Report updated successfully',
        )

    def delete(self, request, report_id):
        user = self.get_user(request)
        delete_report(user, self.parse_uuid(report_id, 'report_id'))
        return self.success_response(message='Report deleted successfully')


class ReportRecalculateView(AuthenticatedAPIView, APIView):
    """POST /api/reports/monthly/{id}/recalculate"""

    permission_classes = [IsAuthenticated]

    def post(self, request, report_id):
        user = self.get_user(request)
        report = recalculate_report(user, self.parse_uuid(report_id, 'report_id'))
        return self.success_response(
            {'report': AgentReportSerializer(get_report(report.id)).data},
            message='Report recalculated successfully',
        )


class CommissionPreviewView(AuthenticatedAPIView, APIView):
    """GET /api/reports/commission-preview?agent_id&start_date&end_date"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = self.get_user(request)
        params = request.query_params

        breakdown = preview_commission(
            user,
            self.parse_uuid(params.get('agent_id'), 'agent_id'),
            self.require_date(params.get('start_date'), 'start_date'),
            self.require_date(params.get('end_date'), 'end_date'),
        )
        data = breakdown.as_dict()
        for name, value in data.items():
            if not isinstance(value, (int, dict)):
                data[name] = str(value)
        return self.success_response({'data': data})


class LeadSourcesView(AuthenticatedAPIView, APIView):
    """GET /api/reports/lead-sources"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        self.get_user(request)
        return self.success_response({'data': get_lead_sources()})
