"""
Lead Services

Lead CRUD and the lead referral chain. Every referral write reclassifies the
whole chain against the lead's assigned agent inside one transaction.
"""
import logging
from dataclasses import dataclass, field
import datetime
from datetime import date
from uuid import UUID

from django.db import transaction

from apps.core.authentication import AuthenticatedUser
from apps.core.constants import REFERRAL_TYPE_EMPLOYEE, REFERRAL_TYPES
from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.models import Lead, LeadReferral, LeadStatus, User
from apps.core.roles import AGENT, TEAM_LEADER, RoleCapabilities
from services import notification_service
from services.hierarchy_service import HierarchyService
from services.referral_classifier import apply_classification

logger = logging.getLogger(__name__)

LEAD_FIELDS = (
    'customer_name', 'phone_number', 'agent_id', 'status_id',
    'reference_source', 'date', 'notes',
)


@dataclass
class LeadReferralInput:
    name: str | None = None
    type: str | None = None
    agent_id: UUID | None = None
    referral_date: date | None = None


@dataclass
class LeadInput:
    """Parsed lead payload; `provided` names the fields sent."""
    customer_name: str | None = None
    phone_number: str | None = None
    agent_id: UUID | None = None
    status_id: UUID | None = None
    reference_source: str | None = None
    date: datetime.date | None = None
    notes: str | None = None
    referrals: list[LeadReferralInput] | None = None
    provided: set[str] = field(default_factory=set)


def validate_lead_referral(referral: LeadReferralInput) -> None:
    if not referral.name or not referral.type or referral.referral_date is None:
        raise ValidationError('Name, type, and date are required')
    if referral.type not in REFERRAL_TYPES:
        raise ValidationError('Type must be either "employee" or "custom"')
    if referral.type == REFERRAL_TYPE_EMPLOYEE:
        if not referral.agent_id:
            raise ValidationError('employee_id is required for employee referrals')
        if not User.objects.filter(id=referral.agent_id).exists():
            raise ValidationError('Referral employee not found')


def ensure_can_be_referred(status: LeadStatus | None) -> None:
    """Leads whose status is not referable reject new referrals."""
    if status is not None and not status.can_be_referred:
        raise ValidationError(f'Leads with status "{status.name}" cannot be referred.')


def _require_lead(lead_id: UUID) -> Lead:
    lead = Lead.objects.select_related('status', 'agent').filter(id=lead_id).first()
    if lead is None:
        raise NotFoundError('Lead not found')
    return lead


def _can_edit_lead(user: AuthenticatedUser, lead: Lead) -> bool:
    capabilities = RoleCapabilities.for_role(user.role)
    if capabilities.can_manage_leads:
        return True
    if lead.agent_id and str(lead.agent_id) == str(user.id):
        return True
    if capabilities.role == TEAM_LEADER and lead.agent_id:
        return HierarchyService.is_agent_under_team_leader(user.id, lead.agent_id)
    return False


def _require_lead_manager(user: AuthenticatedUser, message: str) -> None:
    if not RoleCapabilities.for_role(user.role).can_manage_leads:
        raise PermissionDeniedError(message)


def _validate_status(status_id: UUID | None) -> None:
    if status_id and not LeadStatus.objects.filter(id=status_id).exists():
        raise ValidationError('Invalid status_id')


def _validate_agent(agent_id: UUID | None) -> None:
    if agent_id and not User.objects.filter(id=agent_id).exists():
        raise ValidationError('Assigned agent not found')


def reclassify_lead_referrals(lead: Lead) -> list[LeadReferral]:
    """Recompute and persist `external` across the lead's referral chain."""
    rows = list(lead.referrals.all())
    changed = apply_classification(rows, lead.agent_id, 'agent_id', 'referral_date')
    if changed:
        LeadReferral.objects.bulk_update(changed, ['external'])
    return rows


def _build_referral(lead: Lead, referral: LeadReferralInput) -> LeadReferral:
    return LeadReferral(
        lead=lead,
        agent_id=referral.agent_id if referral.type == REFERRAL_TYPE_EMPLOYEE else None,
        name=referral.name,
        type=referral.type,
        referral_date=referral.referral_date,
    )


def create_lead(user: AuthenticatedUser, data: LeadInput) -> Lead:
    """
    Create a lead, optionally with referrals.

    Agents creating a lead without an agent_id are assigned to it.

    Raises:
        ValidationError
    """
    if not data.customer_name:
        raise ValidationError('customer_name is required')
    if data.date is None:
        raise ValidationError('date is required')
    _validate_status(data.status_id)
    _validate_agent(data.agent_id)
    for referral in data.referrals or []:
        validate_lead_referral(referral)

    agent_id = data.agent_id
    if agent_id is None and RoleCapabilities.for_role(user.role).role == AGENT:
        agent_id = user.id

    with transaction.atomic():
        lead = Lead.objects.create(
            customer_name=data.customer_name,
            phone_number=data.phone_number,
            agent_id=agent_id,
            added_by_id=user.id,
            status_id=data.status_id,
            reference_source=data.reference_source,
            date=data.date,
            notes=data.notes,
        )
        if data.referrals:
            rows = [_build_referral(lead, referral) for referral in data.referrals]
            apply_classification(rows, lead.agent_id, 'agent_id', 'referral_date')
            LeadReferral.objects.bulk_create(rows)

    logger.info(f'User {user.id} created lead {lead.id}')

    if lead.agent_id and str(lead.agent_id) != str(user.id):
        notification_service.notify(
            'lead_assigned',
            {
                'message': f'You have been assigned the lead "{lead.customer_name}".',
                'entity_type': 'lead',
                'entity_id': lead.id,
            },
            [lead.agent_id],
        )
    return lead


def update_lead(user: AuthenticatedUser, lead_id: UUID, data: LeadInput) -> Lead:
    """
    Update provided lead fields. A sent `referrals` list replaces the chain;
    the chain is reclassified when it is replaced or the assigned agent changes.

    Raises:
        NotFoundError, PermissionDeniedError, ValidationError
    """
    lead = _require_lead(lead_id)
    if not _can_edit_lead(user, lead):
        raise PermissionDeniedError('You do not have permission to update this lead')

    if 'customer_name' in data.provided and not data.customer_name:
        raise ValidationError('customer_name is required')
    if 'date' in data.provided and data.date is None:
        raise ValidationError('date is required')
    if 'status_id' in data.provided:
        _validate_status(data.status_id)
    if 'agent_id' in data.provided:
        _validate_agent(data.agent_id)
    if data.referrals:
        status = lead.status
        if 'status_id' in data.provided:
            status = LeadStatus.objects.filter(id=data.status_id).first()
        ensure_can_be_referred(status)
        for referral in data.referrals:
            validate_lead_referral(referral)

    previous_agent_id = lead.agent_id
    with transaction.atomic():
        for name in LEAD_FIELDS:
            if name in data.provided:
                setattr(lead, name, getattr(data, name))
        lead.save()
        if data.referrals is not None:
            lead.referrals.all().delete()
            LeadReferral.objects.bulk_create([_build_referral(lead, referral) for referral in data.referrals])
            reclassify_lead_referrals(lead)
        elif str(previous_agent_id) != str(lead.agent_id):
            reclassify_lead_referrals(lead)

    logger.info(f'User {user.id} updated lead {lead.id}')

    if lead.agent_id and str(lead.agent_id) != str(previous_agent_id) and str(lead.agent_id) != str(user.id):
        notification_service.notify(
            'lead_assigned',
            {
                'message': f'You have been assigned the lead "{lead.customer_name}".',
                'entity_type': 'lead',
                'entity_id': lead.id,
            },
            [lead.agent_id],
        )
    return lead


def delete_lead(user: AuthenticatedUser, lead_id: UUID) -> None:
    lead = _require_lead(lead_id)
    _require_lead_manager(user, 'You do not have permission to delete leads')

    name = lead.customer_name
    agent_id = lead.agent_id
    with transaction.atomic():
        lead.delete()
    logger.info(f'User {user.id} deleted lead {lead_id}')

    notification_service.notify(
        'lead_deleted',
        {
            'message': f'Lead "{name}" was deleted by {user.name}.',
            'entity_type': 'lead',
            'entity_id': lead_id,
        },
        [agent_id] if agent_id and str(agent_id) != str(user.id) else [],
    )


def add_lead_referral(user: AuthenticatedUser, lead_id: UUID, data: LeadReferralInput) -> LeadReferral:
    """
    Add a referral to a lead and reclassify the chain.

    Raises:
        NotFoundError: lead missing
        PermissionDeniedError: role cannot manage leads
        ValidationError: incomplete referral, or lead status not referable
    """
    lead = _require_lead(lead_id)
    _require_lead_manager(user, 'You do not have permission to add referrals')
    ensure_can_be_referred(lead.status)
    validate_lead_referral(data)

    with transaction.atomic():
        referral = _build_referral(lead, data)
        referral.save()
        reclassify_lead_referrals(lead)
        referral.refresh_from_db()

    logger.info(f'User {user.id} added referral {referral.id} to lead {lead.id}')

    if referral.agent_id and str(referral.agent_id) != str(user.id):
        notification_service.notify(
            'lead_referral',
            {
                'message': f'You were recorded as a referrer on lead "{lead.customer_name}".',
                'entity_type': 'lead',
                'entity_id': lead.id,
            },
            [referral.agent_id],
        )
    return referral


def delete_lead_referral(user: AuthenticatedUser, lead_id: UUID, referral_id: UUID) -> None:
    lead = _require_lead(lead_id)
    _require_lead_manager(user, 'You do not have permission to delete referrals')

    with transaction.atomic():
        deleted, _ = LeadReferral.objects.filter(id=referral_id, lead=lead).delete()
        if not deleted:
            raise NotFoundError('Referral not found')
        reclassify_lead_referrals(lead)

    logger.info(f'User {user.id} deleted referral {referral_id} from lead {lead.id}')
