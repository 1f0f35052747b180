"""
Integration Tests for the Reports API

Covers:
1. Report creation from closed sales
2. Overlap conflict
3. Boosts, overrides and recalculation
4. Role-based visibility
5. Commission preview and lead sources
"""
import uuid
from datetime import date

import pytest

from apps.core.models import AgentReport
from services.commission_service import CommissionService
from tests.conftest import client_for
from tests.factories import (
    AgentReportFactory,
    CommissionSettingFactory,
    LeadFactory,
    PropertyFactory,
    ReferralFactory,
    TeamMembershipFactory,
    UserFactory,
    ViewingFactory,
)

MARCH = {'start_date': '2025-03-01', 'end_date': '2025-03-31'}


@pytest.mark.django_db
class TestCreateReport:
    """POST /api/reports/monthly"""

    def setup_method(self):
        self.client = client_for(UserFactory(operations_manager=True))
        self.agent = UserFactory()
        PropertyFactory(sold=True, agent=self.agent, closed_date=date(2025, 3, 15))
        LeadFactory(agent=self.agent, reference_source='Website', date=date(2025, 3, 2))

    def _create(self, **dates):
        return self.client.post('/api/reports/monthly', {'agent_id': str(self.agent.id), **(dates or MARCH)}, format='json')

    def test_create_report(self):
        response = self._create()

        assert response.status_code == 201
        assert response.json()['message'] == 'Monthly report created successfully'
        report = response.json()['report']
        assert report['sales_count'] == 1
        assert report['sales_amount'] == '100000.00'
        assert report['agent_commission'] == '2000.00'
        assert report['administration_commission'] == '4000.00'
        assert report['total_commission'] == '8000.00'
        assert report['lead_sources'] == {'Website': 1}
        assert report['boosts'] == '0.00'

    def test_overlapping_range_conflicts(self):
        self._create()

        response = self._create(start_date='2025-03-31', end_date='2025-04-30')

        assert response.status_code == 409
        assert 'already exists' in response.json()['message']
        assert AgentReport.objects.count() == 1

    def test_adjacent_range_allowed(self):
        self._create()

        response = self._create(start_date='2025-04-01', end_date='2025-04-30')

        assert response.status_code == 201
        assert response.json()['report']['sales_count'] == 0

    def test_invalid_ranges(self):
        reversed_range = self._create(start_date='2025-03-31', end_date='2025-03-01')
        too_old = self._create(start_date='1999-12-01', end_date='1999-12-31')

        assert reversed_range.json()['message'] == 'End date cannot be before start date'
        assert too_old.status_code == 400
        assert 'Year must be 2000 or later' in too_old.json()['message']

    def test_required_fields(self):
        response = self.client.post('/api/reports/monthly', {'agent_id': str(self.agent.id)}, format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'Agent ID, start date, and end date are required'

    def test_unknown_agent(self):
        response = self.client.post('/api/reports/monthly', {'agent_id': str(uuid.uuid4()), **MARCH}, format='json')

        assert response.status_code == 404

    def test_agent_manager_cannot_create(self):
        response = client_for(UserFactory(agent_manager=True)).post(
            '/api/reports/monthly', {'agent_id': str(self.agent.id), **MARCH}, format='json',
        )

        assert response.status_code == 403


@pytest.mark.django_db
class TestUpdateAndRecalculate:
    """PUT and recalculate on an existing report."""

    def setup_method(self):
        self.client = client_for(UserFactory(admin=True))
        self.agent = UserFactory()
        PropertyFactory(sold=True, agent=self.agent, closed_date=date(2025, 3, 15))
        response = self.client.post(
            '/api/reports/monthly', {'agent_id': str(self.agent.id), **MARCH}, format='json',
        )
        self.report_id = response.json()['report']['id']

    def test_boosts_survive_recalculation(self):
        self.client.put(f'/api/reports/monthly/{self.report_id}', {'boosts': '500'}, format='json')
        PropertyFactory(sold=True, agent=self.agent, closed_date=date(2025, 3, 20))

        first = self.client.post(f'/api/reports/monthly/{self.report_id}/recalculate').json()['report']
        second = self.client.post(f'/api/reports/monthly/{self.report_id}/recalculate').json()['report']

        assert first['boosts'] == '500.00'
        assert first['sales_count'] == 2
        assert first['total_commission'] == '16000.00'
        first.pop('updated_at')
        second.pop('updated_at')
        assert first == second

    def test_override_recomputes_total(self):
        response = self.client.put(
            f'/api/reports/monthly/{self.report_id}', {'agent_commission': '3000'}, format='json',
        )

        report = response.json()['report']
        assert report['agent_commission'] == '3000.00'
        assert report['total_commission'] == '9000.00'

    def test_negative_boosts_rejected(self):
        response = self.client.put(f'/api/reports/monthly/{self.report_id}', {'boosts': '-1'}, format='json')

        assert response.status_code == 400

    def test_delete(self):
        response = self.client.delete(f'/api/reports/monthly/{self.report_id}')

        assert response.status_code == 200
        assert not AgentReport.objects.exists()

    def test_missing_report(self):
        response = self.client.post(f'/api/reports/monthly/{uuid.uuid4()}/recalculate')

        assert response.status_code == 404


@pytest.mark.django_db
class TestReportVisibility:
    """Who sees which reports."""

    def setup_method(self):
        self.membership = TeamMembershipFactory()
        self.team_agent_report = AgentReportFactory(agent=self.membership.agent)
        self.leader_report = AgentReportFactory(agent=self.membership.team_leader)
        self.other_report = AgentReportFactory()

    def _ids(self, user):
        response = client_for(user).get('/api/reports/monthly')
        assert response.status_code == 200
        return {report['id'] for report in response.json()['reports']}

    def test_agent_sees_own(self):
        assert self._ids(self.membership.agent) == {str(self.team_agent_report.id)}

    def test_team_leader_sees_team_only(self):
        assert self._ids(self.membership.team_leader) == {str(self.team_agent_report.id)}

    def test_agent_manager_sees_agent_reports(self):
        assert self._ids(UserFactory(agent_manager=True)) == {
            str(self.team_agent_report.id), str(self.other_report.id),
        }

    def test_admin_sees_all(self):
        assert len(self._ids(UserFactory(admin=True))) == 3

    def test_detail_access(self):
        agent = client_for(self.membership.agent)

        own = agent.get(f'/api/reports/monthly/{self.team_agent_report.id}')
        other = agent.get(f'/api/reports/monthly/{self.other_report.id}')
        missing = agent.get(f'/api/reports/monthly/{uuid.uuid4()}')

        assert own.status_code == 200
        assert other.status_code == 403
        assert other.json()['message'] == 'You can only view your own reports'
        assert missing.status_code == 404


@pytest.mark.django_db
class TestPreviewAndSources:
    """Commission preview and lead sources."""

    def test_preview_does_not_save(self):
        agent = UserFactory()
        PropertyFactory(sold=True, agent=agent, closed_date=date(2025, 3, 15))

        response = client_for(UserFactory(operations=True)).get('/api/reports/commission-preview', {
            'agent_id': str(agent.id), **MARCH,
        })

        assert response.status_code == 200
        assert response.json()['data']['total_commission'] == '8000.00'
        assert not AgentReport.objects.exists()

    def test_preview_denied_to_agents(self):
        agent = UserFactory()

        response = client_for(agent).get('/api/reports/commission-preview', {'agent_id': str(agent.id), **MARCH})

        assert response.status_code == 403

    def test_lead_sources(self):
        LeadFactory(reference_source='Website')
        LeadFactory(reference_source='Facebook')
        LeadFactory(reference_source='Website')
        LeadFactory(reference_source='')

        response = client_for(UserFactory()).get('/api/reports/lead-sources')

        assert response.json()['data'] == ['Facebook', 'Website']


@pytest.mark.django_db
class TestCommissionServiceLoading:
    """CommissionService reading settings and activity from the database."""

    def test_rates_from_settings(self):
        CommissionSettingFactory(setting_key='commission_agent_percentage', setting_value='3')
        CommissionSettingFactory(setting_key='commission_finders_percentage', setting_value='not-a-number')

        rates = CommissionService.load_rates()

        assert str(rates.agent) == '3'
        assert str(rates.finders) == '1'

    def test_configured_rate_applies_to_report(self):
        CommissionSettingFactory(setting_key='commission_agent_percentage', setting_value='3')
        agent = UserFactory()
        PropertyFactory(sold=True, agent=agent, closed_date=date(2025, 3, 15))

        breakdown = CommissionService.calculate(agent.id, date(2025, 3, 1), date(2025, 3, 31))

        assert str(breakdown.agent_commission) == '3000.00'

    def test_viewings_counted_within_range(self):
        agent = UserFactory()
        ViewingFactory(agent=agent, viewing_date=date(2025, 3, 1))
        ViewingFactory(agent=agent, viewing_date=date(2025, 3, 31))
        ViewingFactory(agent=agent, viewing_date=date(2025, 4, 1))

        breakdown = CommissionService.calculate(agent.id, date(2025, 3, 1), date(2025, 3, 31))

        assert breakdown.viewings_count == 2

    def test_custom_referral_on_own_property_is_credited(self):
        agent = UserFactory()
        prop = PropertyFactory(sold=True, agent=agent, closed_date=date(2025, 3, 20))
        ReferralFactory(property=prop, employee=None, name='Walk-in', type='custom', date=date(2025, 3, 5))

        breakdown = CommissionService.calculate(agent.id, date(2025, 3, 1), date(2025, 3, 31))

        assert breakdown.referrals_on_properties_count == 1
        assert str(breakdown.referrals_on_properties_commission) == '500.00'

    def test_own_property_referral_counted_in_referral_month(self):
        agent = UserFactory()
        prop = PropertyFactory(sold=True, agent=agent, closed_date=date(2025, 4, 10))
        ReferralFactory(property=prop, employee=None, name='Portal', type='custom', date=date(2025, 3, 12))

        march = CommissionService.calculate(agent.id, date(2025, 3, 1), date(2025, 3, 31))
        april = CommissionService.calculate(agent.id, date(2025, 4, 1), date(2025, 4, 30))

        assert march.referrals_on_properties_count == 1
        assert march.sales_count == 0
        assert april.referrals_on_properties_count == 0
        assert april.sales_count == 1

    def test_own_property_referral_outside_range_not_counted(self):
        agent = UserFactory()
        prop = PropertyFactory(sold=True, agent=agent, closed_date=date(2025, 3, 15))
        ReferralFactory(property=prop, employee=UserFactory(), date=date(2025, 2, 20))

        breakdown = CommissionService.calculate(agent.id, date(2025, 3, 1), date(2025, 3, 31))

        assert breakdown.referrals_on_properties_count == 0
        assert breakdown.sales_count == 1

    def test_own_property_referral_needs_closed_status(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        ReferralFactory(property=prop, employee=None, name='Walk-in', type='custom', date=date(2025, 3, 5))

        breakdown = CommissionService.calculate(agent.id, date(2025, 3, 1), date(2025, 3, 31))

        assert breakdown.referrals_on_properties_count == 0

    def test_external_referral_on_own_property_not_credited(self):
        agent = UserFactory()
        prop = PropertyFactory(sold=True, agent=agent, closed_date=date(2025, 3, 15))
        ReferralFactory(property=prop, employee=None, type='custom', date=date(2025, 3, 1), external=True)

        breakdown = CommissionService.calculate(agent.id, date(2025, 3, 1), date(2025, 3, 31))

        assert breakdown.referrals_on_properties_count == 0
