"""
Property Services

Business logic for creating, updating and deleting properties together with
their referral chain. Every write that touches referrals reclassifies the
whole chain and runs in one transaction; validation happens first, so a
rejected request never opens one.
"""
import logging
import uuid
from dataclasses import dataclass, field
import datetime
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.core.authentication import AuthenticatedUser
from apps.core.constants import PROPERTY_TYPES, REFERRAL_TYPE_EMPLOYEE, REFERRAL_TYPES
from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.models import CalendarEvent, Lead, Property, PropertyStatus, Referral, User
from apps.core.roles import AGENT, AGENT_MANAGER, RoleCapabilities, normalize_role
from services import notification_service
from services.referral_classifier import apply_classification

logger = logging.getLogger(__name__)

PROPERTY_FIELDS = (
    'status_id', 'property_type', 'location', 'category', 'building_name',
    'owner_id', 'owner_name', 'phone_number', 'surface', 'price', 'agent_id',
    'notes', 'property_url', 'closed_date',
)


@dataclass
class ReferralInput:
    """One referral in a property payload."""
    name: str | None = None
    type: str | None = None
    employee_id: UUID | None = None
    date: datetime.date | None = None


@dataclass
class PropertyInput:
    """
    Parsed property payload.

    `provided` names the fields present in the request; on update only
    those change. `referrals` is None when the request did not send any.
    """
    status_id: UUID | None = None
    property_type: str | None = None
    location: str | None = None
    category: str | None = None
    building_name: str | None = None
    owner_id: UUID | None = None
    owner_name: str | None = None
    phone_number: str | None = None
    surface: Decimal | None = None
    price: Decimal | None = None
    agent_id: UUID | None = None
    notes: str | None = None
    property_url: str | None = None
    closed_date: date | None = None
    referrals: list[ReferralInput] | None = None
    provided: set[str] = field(default_factory=set)


# =============================================================================
# Validation
# =============================================================================

def validate_referrals(referrals: list[ReferralInput] | None) -> None:
    """
    A referral list must be non-empty and every entry complete.

    Raises:
        ValidationError
    """
    if not referrals:
        raise ValidationError('At least one referral is required')

    for index, referral in enumerate(referrals, start=1):
        if not referral.name:
            raise ValidationError(f'Referral {index}: name is required')
        if referral.type not in REFERRAL_TYPES:
            raise ValidationError(f'Referral {index}: type must be employee or custom')
        if referral.date is None:
            raise ValidationError(f'Referral {index}: a valid date is required')
        if referral.type == REFERRAL_TYPE_EMPLOYEE and not referral.employee_id:
            raise ValidationError(f'Referral {index}: employee_id is required for employee referrals')

    employee_ids = {r.employee_id for r in referrals if r.employee_id}
    found = set(User.objects.filter(id__in=employee_ids).values_list('id', flat=True))
    if employee_ids - found:
        raise ValidationError('Referral employee not found')


def _require_status(status_id: UUID | None) -> PropertyStatus:
    if not status_id:
        raise ValidationError('status_id is required')
    status = PropertyStatus.objects.filter(id=status_id).first()
    if status is None:
        raise ValidationError('Invalid status_id')
    return status


def _validate_closed_date(status: PropertyStatus, closed_date: date | None) -> None:
    if status.is_closed and closed_date is None:
        raise ValidationError(
            f'closed_date is required when status is {status.code}',
            details={'field': 'closed_date'},
        )


def _validate_price(price: Decimal | None) -> None:
    if price is not None and price < 0:
        raise ValidationError('price must be a non-negative number')


def _validate_agent(user: AuthenticatedUser, agent_id: UUID | None) -> User | None:
    """
    The assigned agent must exist; agent managers may only assign agents.
    """
    if not agent_id:
        return None
    agent = User.objects.filter(id=agent_id).first()
    if agent is None:
        raise ValidationError('Assigned agent not found')
    if normalize_role(user.role) == AGENT_MANAGER and normalize_role(agent.role) != AGENT:
        raise ValidationError('Agent manager can only assign properties to agents')
    return agent


def _validate_owner(owner_id: UUID | None) -> None:
    if owner_id and not Lead.objects.filter(id=owner_id).exists():
        raise ValidationError('Owner lead not found')


def _require_manager(user: AuthenticatedUser) -> None:
    if not RoleCapabilities.for_role(user.role).can_manage_properties:
        raise PermissionDeniedError('Access denied. Insufficient permissions to manage properties.')


def _require_agent_manager_scope(user: AuthenticatedUser, prop: Property) -> None:
    """Agent managers may only change properties assigned to agents."""
    if normalize_role(user.role) != AGENT_MANAGER:
        return
    if prop.agent is None or normalize_role(prop.agent.role) != AGENT:
        raise PermissionDeniedError('Access denied. Agent managers can only manage properties assigned to agents.')


# =============================================================================
# Writes
# =============================================================================

def generate_reference_number() -> str:
    year = timezone.now().year
    while True:
        candidate = f'PR-{year}-{uuid.uuid4().hex[:6].upper()}'
        if not Property.objects.filter(reference_number=candidate).exists():
            return candidate


def _write_referrals(prop: Property, referrals: list[ReferralInput]) -> list[Referral]:
    """Replace the referral chain, classify it and refresh the count."""
    prop.referrals.all().delete()
    rows = [
        Referral(
            property=prop,
            name=referral.name,
            type=referral.type,
            employee_id=referral.employee_id if referral.type == REFERRAL_TYPE_EMPLOYEE else None,
            date=referral.date,
        )
        for referral in referrals
    ]
    apply_classification(rows, prop.agent_id, 'employee_id', 'date')
    Referral.objects.bulk_create(rows)

    prop.referrals_count = len(rows)
    prop.save(update_fields=['referrals_count', 'updated_at'])
    return rows


def _reclassify_existing(prop: Property) -> None:
    """Re-derive external flags after the assigned agent changed."""
    rows = list(prop.referrals.all())
    changed = apply_classification(rows, prop.agent_id, 'employee_id', 'date')
    if changed:
        Referral.objects.bulk_update(changed, ['external'])


def create_property(user: AuthenticatedUser, data: PropertyInput) -> Property:
    """
    Create a property and its referral chain atomically.

    Raises:
        PermissionDeniedError: role cannot manage properties
        ValidationError: missing/invalid fields, empty referrals,
            closed status without closed_date
    """
    _require_manager(user)

    status = _require_status(data.status_id)
    if data.property_type not in PROPERTY_TYPES:
        raise ValidationError('property_type must be sale or rent')
    if not data.location:
        raise ValidationError('location is required')
    if data.price is None:
        raise ValidationError('price is required')
    _validate_price(data.price)
    _validate_closed_date(status, data.closed_date)
    validate_referrals(data.referrals)
    _validate_agent(user, data.agent_id)
    _validate_owner(data.owner_id)

    with transaction.atomic():
        prop = Property.objects.create(
            reference_number=generate_reference_number(),
            status=status,
            property_type=data.property_type,
            location=data.location,
            category=data.category,
            building_name=data.building_name,
            owner_id=data.owner_id,
            owner_name=data.owner_name,
            phone_number=data.phone_number,
            surface=data.surface,
            price=data.price,
            agent_id=data.agent_id,
            created_by_id=user.id,
            notes=data.notes,
            property_url=data.property_url,
            closed_date=data.closed_date if status.is_closed else None,
        )
        _write_referrals(prop, data.referrals)

    logger.info(f'User {user.id} created property {prop.reference_number}')

    _after_write(user, prop, 'property_created', previous_agent_id=None, referrals=data.referrals)
    return prop


def update_property(user: AuthenticatedUser, property_id: UUID, data: PropertyInput) -> Property:
    """
    Update a property; referrals are replaced when sent.

    Existence is checked before permissions, permissions before validation.

    Raises:
        NotFoundError, PermissionDeniedError, ValidationError
    """
    prop = Property.objects.select_related('status', 'agent').filter(id=property_id).first()
    if prop is None:
        raise NotFoundError('Property not found')
    _require_manager(user)
    _require_agent_manager_scope(user, prop)

    status = _require_status(data.status_id) if 'status_id' in data.provided else prop.status
    closed_date = data.closed_date if 'closed_date' in data.provided else prop.closed_date
    if not status.is_closed:
        closed_date = None
    _validate_closed_date(status, closed_date)

    if 'property_type' in data.provided and data.property_type not in PROPERTY_TYPES:
        raise ValidationError('property_type must be sale or rent')
    if 'location' in data.provided and not data.location:
        raise ValidationError('location is required')
    if 'price' in data.provided:
        if data.price is None:
            raise ValidationError('price is required')
        _validate_price(data.price)
    if data.referrals is not None:
        validate_referrals(data.referrals)
    if 'agent_id' in data.provided:
        _validate_agent(user, data.agent_id)
    if 'owner_id' in data.provided:
        _validate_owner(data.owner_id)

    previous_agent_id = prop.agent_id

    with transaction.atomic():
        for name in PROPERTY_FIELDS:
            if name in data.provided:
                setattr(prop, name, getattr(data, name))
        prop.status = status
        prop.closed_date = closed_date
        prop.save()

        if data.referrals is not None:
            _write_referrals(prop, data.referrals)
        elif str(previous_agent_id) != str(prop.agent_id):
            _reclassify_existing(prop)

    logger.info(f'User {user.id} updated property {prop.reference_number}')

    _after_write(user, prop, 'property_updated', previous_agent_id=previous_agent_id, referrals=data.referrals)
    return prop


def delete_property(user: AuthenticatedUser, property_id: UUID) -> None:
    """
    Delete a property and its referrals.

    Raises:
        NotFoundError, PermissionDeniedError
    """
    prop = Property.objects.select_related('agent').filter(id=property_id).first()
    if prop is None:
        raise NotFoundError('Property not found')
    _require_manager(user)
    _require_agent_manager_scope(user, prop)

    reference = prop.reference_number
    agent_id = prop.agent_id
    with transaction.atomic():
        prop.delete()
    logger.info(f'User {user.id} deleted property {reference}')

    notification_service.notify(
        'property_deleted',
        {
            'message': f'Property {reference} was deleted by {user.name}.',
            'entity_type': 'property',
            'entity_id': property_id,
        },
        [agent_id] if agent_id and str(agent_id) != str(user.id) else [],
    )


# =============================================================================
# Follow-ups (fire-and-forget)
# =============================================================================

def _after_write(
    user: AuthenticatedUser,
    prop: Property,
    kind: str,
    previous_agent_id: UUID | None,
    referrals: list[ReferralInput] | None,
) -> None:
    label = prop.building_name or prop.location
    newly_assigned = prop.agent_id and str(prop.agent_id) != str(previous_agent_id)

    notification_service.notify(
        kind,
        {
            'message': f'Property {prop.reference_number} ({label}) was saved by {user.name}.',
            'entity_type': 'property',
            'entity_id': prop.id,
        },
        [prop.agent_id] if prop.agent_id and str(prop.agent_id) != str(user.id) and not newly_assigned else [],
    )

    if newly_assigned and str(prop.agent_id) != str(user.id):
        notification_service.notify(
            'property_assigned',
            {
                'message': f'You have been assigned to the property "{label}".',
                'entity_type': 'property',
                'entity_id': prop.id,
            },
            [prop.agent_id],
        )
        create_assignment_event(user, prop)

    if referrals:
        referrer_ids = [
            referral.employee_id for referral in referrals
            if referral.employee_id and str(referral.employee_id) != str(user.id)
        ]
        notification_service.notify(
            'property_referral',
            {
                'message': f'You were recorded as a referrer on property {prop.reference_number} ({label}).',
                'entity_type': 'property',
                'entity_id': prop.id,
            },
            referrer_ids,
        )


def create_assignment_event(user: AuthenticatedUser, prop: Property) -> CalendarEvent | None:
    """
    Put a 24-hour 'property_assignment' event on the new agent's calendar.

    Failures are logged; the property write has already succeeded.
    """
    try:
        label = prop.building_name or prop.location
        now = timezone.now()
        event = CalendarEvent.objects.create(
            title=f'Property Assignment: {label}',
            description=f'You have been assigned to manage this property. Reference: {prop.reference_number}',
            start_time=now,
            end_time=now + timedelta(days=1),
            all_day=False,
            color='blue',
            type='property_assignment',
            location=prop.location,
            notes=f'Property Reference: {prop.reference_number}\nProperty Type: {prop.property_type}\nPrice: {prop.price}',
            created_by_id=user.id,
            assigned_to_id=prop.agent_id,
            property_id=prop.id,
        )
        notification_service.schedule_reminders(event.id)
        return event
    except Exception as e:
        logger.exception(f'Failed to create assignment event for property {prop.id}: {e}')
        return None
