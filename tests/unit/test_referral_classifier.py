"""
Unit Tests for the referral external/internal classifier.
"""
import uuid
from datetime import date, timedelta
from types import SimpleNamespace

from services.referral_classifier import (
    ClassificationReason,
    ReferralEntry,
    apply_classification,
    classify_referrals,
)

DAY_0 = date(2025, 1, 1)


def on_day(agent_id, days):
    return ReferralEntry(agent_id=agent_id, date=DAY_0 + timedelta(days=days))


class TestClassifyReferrals:
    """Tests for classify_referrals."""

    def setup_method(self):
        self.agent_a = uuid.uuid4()
        self.agent_b = uuid.uuid4()
        self.agent_c = uuid.uuid4()

    def test_first_referral_is_internal(self):
        [result] = classify_referrals([on_day(self.agent_a, 0)])

        assert result.external is False
        assert result.reason == ClassificationReason.FIRST

    def test_same_agent_again_is_external(self):
        results = classify_referrals([on_day(self.agent_a, 0), on_day(self.agent_a, 5)])

        assert [r.external for r in results] == [False, True]
        assert results[1].reason == ClassificationReason.SAME_AGENT

    def test_gap_of_thirty_days_or_more_is_external(self):
        results = classify_referrals([on_day(self.agent_a, 0), on_day(self.agent_b, 40)])

        assert [r.external for r in results] == [False, True]
        assert results[1].reason == ClassificationReason.GAP

    def test_gap_boundary_is_inclusive(self):
        results = classify_referrals([on_day(self.agent_a, 0), on_day(self.agent_b, 30)], gap_days=30)

        assert results[1].external is True

    def test_different_agent_within_gap_is_internal(self):
        results = classify_referrals([on_day(self.agent_a, 0), on_day(self.agent_b, 10)])

        assert [r.external for r in results] == [False, False]
        assert results[1].reason == ClassificationReason.INTERNAL

    def test_gap_is_measured_from_previous_referral(self):
        results = classify_referrals([
            on_day(self.agent_a, 0),
            on_day(self.agent_b, 20),
            on_day(self.agent_c, 40),
        ])

        assert [r.external for r in results] == [False, False, False]

    def test_input_order_does_not_matter(self):
        results = classify_referrals([on_day(self.agent_b, 40), on_day(self.agent_a, 0)])

        assert [r.entry.agent_id for r in results] == [self.agent_a, self.agent_b]
        assert [r.external for r in results] == [False, True]

    def test_self_referral_is_external_even_when_first(self):
        results = classify_referrals(
            [on_day(self.agent_a, 0), on_day(self.agent_b, 3)],
            assigned_agent_id=self.agent_a,
        )

        assert results[0].external is True
        assert results[0].reason == ClassificationReason.SELF_REFERRAL
        assert results[1].external is False

    def test_custom_referrals_only_follow_gap_rule(self):
        results = classify_referrals([
            on_day(None, 0),
            on_day(None, 2),
            on_day(None, 50),
        ])

        assert [r.external for r in results] == [False, False, True]

    def test_configured_gap_is_used(self, settings):
        settings.REFERRAL_EXTERNAL_GAP_DAYS = 7

        results = classify_referrals([on_day(self.agent_a, 0), on_day(self.agent_b, 10)])

        assert results[1].external is True

    def test_empty_input(self):
        assert classify_referrals([]) == []


class TestApplyClassification:
    """Tests for apply_classification on referral-like objects."""

    def test_sets_flags_and_returns_changed_objects(self):
        agent_a, agent_b = uuid.uuid4(), uuid.uuid4()
        first = SimpleNamespace(employee_id=agent_a, date=DAY_0, external=True)
        second = SimpleNamespace(employee_id=agent_a, date=DAY_0 + timedelta(days=5), external=True)
        third = SimpleNamespace(employee_id=agent_b, date=DAY_0 + timedelta(days=6), external=False)

        changed = apply_classification([first, second, third], None, 'employee_id', 'date')

        assert (first.external, second.external, third.external) == (False, True, False)
        assert changed == [first]
