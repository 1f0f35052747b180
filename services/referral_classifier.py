"""
Referral Classifier

Decides whether each referral on a property or lead is internal or
external. External referrals are left out of the internal commission pools.

Rules, over referrals ordered by date (ties keep their given order):
- a referral by the resource's assigned agent is external (self-referral)
- the first referral is internal
- a later referral is external when its agent already referred the same
  resource, or when it comes at least REFERRAL_EXTERNAL_GAP_DAYS after the
  referral immediately before it
- custom referrals have no agent, so only the gap rule can apply to them
"""
import enum
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from django.conf import settings

DEFAULT_GAP_DAYS = 30


class ClassificationReason(str, enum.Enum):
    FIRST = 'first'
    INTERNAL = 'internal'
    SAME_AGENT = 'same_agent'
    GAP = 'gap'
    SELF_REFERRAL = 'self_referral'


@dataclass(frozen=True)
class ReferralEntry:
    """One referral as seen by the classifier. `key` is the caller's handle."""
    agent_id: UUID | None
    date: date
    key: Any = None


@dataclass(frozen=True)
class ReferralClassification:
    entry: ReferralEntry
    external: bool
    reason: ClassificationReason


def get_gap_days() -> int:
    return int(getattr(settings, 'REFERRAL_EXTERNAL_GAP_DAYS', DEFAULT_GAP_DAYS))


def classify_referrals(
    entries: Iterable[ReferralEntry],
    assigned_agent_id: UUID | None = None,
    gap_days: int | None = None,
) -> list[ReferralClassification]:
    """
    Classify a referral sequence.

    Args:
        entries: Referrals in any order
        assigned_agent_id: The agent currently assigned to the resource
        gap_days: Minimum gap that makes a referral external

    Returns:
        Classifications in date order
    """
    if gap_days is None:
        gap_days = get_gap_days()

    ordered = sorted(entries, key=lambda entry: entry.date)
    assigned = str(assigned_agent_id) if assigned_agent_id else None

    results: list[ReferralClassification] = []
    seen_agents: set[str] = set()
    previous: ReferralEntry | None = None

    for entry in ordered:
        agent = str(entry.agent_id) if entry.agent_id else None

        if agent and assigned and agent == assigned:
            reason = ClassificationReason.SELF_REFERRAL
        elif previous is None:
            reason = ClassificationReason.FIRST
        elif agent and agent in seen_agents:
            reason = ClassificationReason.SAME_AGENT
        elif (entry.date - previous.date).days >= gap_days:
            reason = ClassificationReason.GAP
        else:
            reason = ClassificationReason.INTERNAL

        external = reason in (
            ClassificationReason.SELF_REFERRAL,
            ClassificationReason.SAME_AGENT,
            ClassificationReason.GAP,
        )
        results.append(ReferralClassification(entry=entry, external=external, reason=reason))

        if agent:
            seen_agents.add(agent)
        previous = entry

    return results


def apply_classification(
    referrals: Iterable,
    assigned_agent_id: UUID | None,
    agent_attr: str,
    date_attr: str,
) -> list:
    """
    Set `external` on referral objects (saved or not).

    Args:
        referrals: Objects carrying an agent id and a date
        assigned_agent_id: The agent currently assigned to the resource
        agent_attr: Attribute holding the referring agent id
        date_attr: Attribute holding the referral date

    Returns:
        The objects whose flag changed
    """
    entries = [
        ReferralEntry(agent_id=getattr(obj, agent_attr), date=getattr(obj, date_attr), key=obj)
        for obj in referrals
    ]
    changed = []
    for result in classify_referrals(entries, assigned_agent_id):
        obj = result.entry.key
        if obj.external != result.external:
            changed.append(obj)
        obj.external = result.external
    return changed
