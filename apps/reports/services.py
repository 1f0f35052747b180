"""
Report Services

Create, update, recalculate and delete agent commission reports. Bucket
values come from services.commission_service; `boosts` is entered by hand
and is never touched by recalculation.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from django.db import transaction

from apps.core.authentication import AuthenticatedUser
from apps.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from apps.core.models import AgentReport, User
from apps.core.roles import RoleCapabilities
from apps.core.utils import quantize_money
from services.commission_service import CommissionBreakdown, CommissionService

from .selectors import overlapping_reports

logger = logging.getLogger(__name__)

MIN_REPORT_YEAR = 2000

# Buckets that may be overridden by hand on update
OVERRIDABLE_FIELDS = (
    'listings_count', 'viewings_count', 'sales_count', 'sales_amount',
    'agent_commission', 'finders_commission', 'team_leader_commission',
    'administration_commission', 'referral_received_count',
    'referral_received_commission', 'referrals_on_properties_count',
    'referrals_on_properties_commission',
)
TOTAL_PARTS = (
    'agent_commission', 'finders_commission', 'team_leader_commission',
    'administration_commission', 'referrals_on_properties_commission',
)


class ReportAlreadyExistsError(ConflictError):
    """An existing report of the agent overlaps the requested range."""

    def __init__(self, details: dict | None = None):
        super().__init__('A report already exists for this agent and date range', details=details)


@dataclass
class ReportUpdate:
    boosts: Decimal | None = None
    overrides: dict = field(default_factory=dict)


def validate_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError('End date cannot be before start date')
    if start_date.year < MIN_REPORT_YEAR:
        raise ValidationError(
            f'Year must be {MIN_REPORT_YEAR} or later. '
            f'Please select a date range starting from {MIN_REPORT_YEAR} or later.'
        )


def _require_report_manager(user: AuthenticatedUser, action: str) -> None:
    if not RoleCapabilities.for_role(user.role).can_manage_reports:
        raise PermissionDeniedError(f'You do not have permission to {action} reports')


def _require_report(report_id: UUID) -> AgentReport:
    report = AgentReport.objects.select_related('agent').filter(id=report_id).first()
    if report is None:
        raise NotFoundError('Report not found')
    return report


def _apply_breakdown(report: AgentReport, breakdown: CommissionBreakdown) -> None:
    for name, value in breakdown.as_dict().items():
        setattr(report, name, value)


def preview_commission(user: AuthenticatedUser, agent_id: UUID, start_date: date, end_date: date) -> CommissionBreakdown:
    """Compute a breakdown without saving anything."""
    _require_report_manager(user, 'preview')
    validate_range(start_date, end_date)
    if not User.objects.filter(id=agent_id).exists():
        raise NotFoundError('Agent not found')
    return CommissionService.calculate(agent_id, start_date, end_date)


def create_report(user: AuthenticatedUser, agent_id: UUID, start_date: date, end_date: date) -> AgentReport:
    """
    Compute and store a report for an agent and range.

    Raises:
        PermissionDeniedError: role cannot manage reports
        ValidationError: bad range
        NotFoundError: agent missing
        ReportAlreadyExistsError: an overlapping report exists
    """
    _require_report_manager(user, 'create')
    validate_range(start_date, end_date)
    if not User.objects.filter(id=agent_id).exists():
        raise NotFoundError('Agent not found')

    breakdown = CommissionService.calculate(agent_id, start_date, end_date)

    with transaction.atomic():
        existing = overlapping_reports(agent_id, start_date, end_date).select_for_update().first()
        if existing is not None:
            raise ReportAlreadyExistsError(details={
                'existing_report_id': str(existing.id),
                'start_date': existing.start_date.isoformat(),
                'end_date': existing.end_date.isoformat(),
            })
        report = AgentReport(
            agent_id=agent_id,
            start_date=start_date,
            end_date=end_date,
            created_by_id=user.id,
        )
        _apply_breakdown(report, breakdown)
        report.save()

    logger.info(f'User {user.id} created report {report.id} for agent {agent_id} ({start_date}..{end_date})')
    return report


def update_report(user: AuthenticatedUser, report_id: UUID, data: ReportUpdate) -> AgentReport:
    """
    Change boosts and optionally override bucket values by hand.

    The total is re-derived from the commission buckets when any of them
    is overridden.
    """
    report = _require_report(report_id)
    _require_report_manager(user, 'update')

    if data.boosts is not None and data.boosts < 0:
        raise ValidationError('boosts must be a non-negative number')
    for name, value in data.overrides.items():
        if name not in OVERRIDABLE_FIELDS:
            raise ValidationError(f'{name} cannot be updated')
        if value is None or value < 0:
            raise ValidationError(f'{name} must be a non-negative number')

    if data.boosts is not None:
        report.boosts = quantize_money(data.boosts)
    for name, value in data.overrides.items():
        if name.endswith('_count'):
            setattr(report, name, int(value))
        else:
            setattr(report, name, quantize_money(value))
    if any(name in TOTAL_PARTS for name in data.overrides):
        report.total_commission = quantize_money(sum(Decimal(getattr(report, name)) for name in TOTAL_PARTS))

    report.save()
    logger.info(f'User {user.id} updated report {report.id}')
    return report


def recalculate_report(user: AuthenticatedUser, report_id: UUID) -> AgentReport:
    """Recompute every bucket from current data; boosts are kept."""
    report = _require_report(report_id)
    _require_report_manager(user, 'recalculate')

    breakdown = CommissionService.calculate(report.agent_id, report.start_date, report.end_date)
    with transaction.atomic():
        _apply_breakdown(report, breakdown)
        report.save()

    logger.info(f'User {user.id} recalculated report {report.id}')
    return report


def delete_report(user: AuthenticatedUser, report_id: UUID) -> None:
    report = _require_report(report_id)
    _require_report_manager(user, 'delete')
    report.delete()
    logger.info(f'User {user.id} deleted report {report_id}')
