"""
Commission Service

Aggregates an agent's activity and commission buckets over a date range.

calculate_agent_commission is pure: it takes the rows and the percentage
table and always produces the same breakdown for the same input, which is
what makes report recalculation idempotent. CommissionService loads those
rows from the database.
"""
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from django.conf import settings
from django.db.models import Count, Q

from apps.core.constants import COMMISSION_SETTING_KEYS
from apps.core.utils import parse_decimal, quantize_money

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')
ZERO = Decimal('0.00')

DEFAULT_COMMISSION_PERCENTAGES = {
    'agent': '2',
    'finders': '1',
    'referral': '0.5',
    'team_leader': '1',
    'administration': '4',
}

SOURCE_PROPERTY = 'property'
SOURCE_LEAD = 'lead'


@dataclass(frozen=True)
class CommissionRates:
    """Commission percentages (2 means 2%)."""
    agent: Decimal
    finders: Decimal
    team_leader: Decimal
    administration: Decimal
    referral: Decimal

    @classmethod
    def from_mapping(cls, values: dict) -> 'CommissionRates':
        defaults = getattr(settings, 'COMMISSION_DEFAULTS', None) or DEFAULT_COMMISSION_PERCENTAGES
        resolved = {}
        for name in ('agent', 'finders', 'team_leader', 'administration', 'referral'):
            parsed = parse_decimal(values.get(name))
            if parsed is None or parsed < 0:
                parsed = Decimal(str(defaults[name]))
            resolved[name] = parsed
        return cls(**resolved)

    @classmethod
    def defaults(cls) -> 'CommissionRates':
        return cls.from_mapping({})


@dataclass(frozen=True)
class ClosedSale:
    property_id: UUID
    agent_id: UUID | None
    price: Decimal
    closed_date: date


@dataclass(frozen=True)
class ReferralCredit:
    """
    A referral credit on a closed property.

    Credits for other agents' properties come from properties closed in the
    range. Credits on the agent's own properties come from referrals dated in
    the range; custom referrals have no referrer_id.
    """
    property_id: UUID
    property_agent_id: UUID | None
    referrer_id: UUID | None
    price: Decimal
    external: bool
    source: str = SOURCE_PROPERTY
    referral_date: date | None = None


@dataclass(frozen=True)
class CommissionInputs:
    sales: tuple[ClosedSale, ...] = ()
    referral_credits: tuple[ReferralCredit, ...] = ()
    listings_count: int = 0
    viewings_count: int = 0
    lead_sources: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CommissionBreakdown:
    listings_count: int
    lead_sources: dict
    viewings_count: int
    sales_count: int
    sales_amount: Decimal
    agent_commission: Decimal
    finders_commission: Decimal
    team_leader_commission: Decimal
    administration_commission: Decimal
    referral_received_count: int
    referral_received_commission: Decimal
    referrals_on_properties_count: int
    referrals_on_properties_commission: Decimal
    total_commission: Decimal

    def as_dict(self) -> dict:
        return asdict(self)


def _percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    return quantize_money(amount * percentage / HUNDRED)


def calculate_agent_commission(
    agent_id: UUID,
    inputs: CommissionInputs,
    rates: CommissionRates,
) -> CommissionBreakdown:
    """
    Compute the commission buckets for one agent.

    Args:
        agent_id: The agent being reported on
        inputs: Closed sales and referral credits for the reporting range
        rates: Percentage table

    Returns:
        CommissionBreakdown with every amount rounded half-up to cents
    """
    agent = str(agent_id)

    own_sales = [sale for sale in inputs.sales if str(sale.agent_id) == agent]
    sales_amount = quantize_money(sum((sale.price for sale in own_sales), ZERO))

    agent_commission = _percent_of(sales_amount, rates.agent)
    finders_commission = _percent_of(sales_amount, rates.finders)
    team_leader_commission = _percent_of(sales_amount, rates.team_leader)
    administration_commission = _percent_of(sales_amount, rates.administration)

    # Properties of other agents this agent referred internally, counted once each
    received: dict[str, Decimal] = {}
    for credit in inputs.referral_credits:
        if credit.external or str(credit.referrer_id) != agent:
            continue
        if str(credit.property_agent_id) == agent:
            continue
        received.setdefault(str(credit.property_id), credit.price)
    received_amount = quantize_money(sum(received.values(), ZERO))

    on_own = [
        credit for credit in inputs.referral_credits
        if credit.source == SOURCE_PROPERTY
        and not credit.external
        and str(credit.property_agent_id) == agent
    ]
    on_own_amount = quantize_money(sum((credit.price for credit in on_own), ZERO))
    referrals_on_properties_commission = _percent_of(on_own_amount, rates.referral)

    total_commission = quantize_money(
        agent_commission
        + finders_commission
        + team_leader_commission
        + administration_commission
        + referrals_on_properties_commission
    )

    return CommissionBreakdown(
        listings_count=inputs.listings_count,
        lead_sources=dict(sorted(inputs.lead_sources.items())),
        viewings_count=inputs.viewings_count,
        sales_count=len(own_sales),
        sales_amount=sales_amount,
        agent_commission=agent_commission,
        finders_commission=finders_commission,
        team_leader_commission=team_leader_commission,
        administration_commission=administration_commission,
        referral_received_count=len(received),
        referral_received_commission=_percent_of(received_amount, rates.referral),
        referrals_on_properties_count=len(on_own),
        referrals_on_properties_commission=referrals_on_properties_commission,
        total_commission=total_commission,
    )


class CommissionService:
    """
    Loads commission inputs from the database and runs the calculation.
    """

    @staticmethod
    def load_rates() -> CommissionRates:
        """Read the percentage table from system settings, falling back to defaults."""
        from apps.core.models import CommissionSetting

        key_to_name = {key: name for name, key in COMMISSION_SETTING_KEYS.items()}
        rows = CommissionSetting.objects.filter(setting_key__in=key_to_name.keys())

        values = {}
        for row in rows:
            name = key_to_name[row.setting_key]
            if parse_decimal(row.setting_value) is None:
                logger.warning(f'Ignoring non-numeric commission setting {row.setting_key}={row.setting_value!r}')
                continue
            values[name] = row.setting_value
        return CommissionRates.from_mapping(values)

    @staticmethod
    def load_inputs(agent_id: UUID, start_date: date, end_date: date) -> CommissionInputs:
        """
        Collect the rows the calculation needs.

        Args:
            agent_id: The agent being reported on
            start_date: First day of the range (inclusive)
            end_date: Last day of the range (inclusive)
        """
        from apps.core.managers import closed_status_q
        from apps.core.models import Lead, Property, Referral, Viewing

        closed = (
            Property.objects
            .closed_between(start_date, end_date)
            .filter(
                Q(agent_id=agent_id)
                | Q(referrals__employee_id=agent_id)
                | Q(owner__referrals__agent_id=agent_id)
            )
            .distinct()
            .prefetch_related('referrals', 'owner__referrals')
            .order_by('closed_date', 'id')
        )

        sales = []
        credits = []
        for prop in closed:
            price = prop.price or ZERO
            sales.append(ClosedSale(
                property_id=prop.id,
                agent_id=prop.agent_id,
                price=price,
                closed_date=prop.closed_date,
            ))
            for referral in prop.referrals.all():
                # Own listings are credited by referral date below
                if not referral.employee_id or str(prop.agent_id) == str(agent_id):
                    continue
                credits.append(ReferralCredit(
                    property_id=prop.id,
                    property_agent_id=prop.agent_id,
                    referrer_id=referral.employee_id,
                    price=price,
                    external=referral.external,
                    source=SOURCE_PROPERTY,
                ))
            if prop.owner_id:
                for referral in prop.owner.referrals.all():
                    if not referral.agent_id:
                        continue
                    credits.append(ReferralCredit(
                        property_id=prop.id,
                        property_agent_id=prop.agent_id,
                        referrer_id=referral.agent_id,
                        price=price,
                        external=referral.external,
                        source=SOURCE_LEAD,
                    ))

        own_referrals = (
            Referral.objects
            .filter(closed_status_q('property__status__'))
            .filter(property__agent_id=agent_id, date__gte=start_date, date__lte=end_date)
            .select_related('property')
            .order_by('date', 'id')
        )
        for referral in own_referrals:
            credits.append(ReferralCredit(
                property_id=referral.property_id,
                property_agent_id=agent_id,
                referrer_id=referral.employee_id,
                price=referral.property.price or ZERO,
                external=referral.external,
                source=SOURCE_PROPERTY,
                referral_date=referral.date,
            ))

        listings_count = (
            Property.objects
            .for_agent(agent_id)
            .created_between(start_date, end_date)
            .count()
        )
        viewings_count = Viewing.objects.filter(
            agent_id=agent_id,
            viewing_date__gte=start_date,
            viewing_date__lte=end_date,
        ).count()
        lead_sources = {
            (row['reference_source'] or 'Unknown'): row['count']
            for row in (
                Lead.objects
                .filter(agent_id=agent_id)
                .dated_between(start_date, end_date)
                .values('reference_source')
                .annotate(count=Count('id'))
                .order_by('reference_source')
            )
        }

        return CommissionInputs(
            sales=tuple(sales),
            referral_credits=tuple(credits),
            listings_count=listings_count,
            viewings_count=viewings_count,
            lead_sources=lead_sources,
        )

    @staticmethod
    def calculate(
        agent_id: UUID,
        start_date: date,
        end_date: date,
        rates: CommissionRates | None = None,
    ) -> CommissionBreakdown:
        """Load rows for the range and compute the breakdown."""
        if rates is None:
            rates = CommissionService.load_rates()
        inputs = CommissionService.load_inputs(agent_id, start_date, end_date)
        return calculate_agent_commission(agent_id, inputs, rates)
