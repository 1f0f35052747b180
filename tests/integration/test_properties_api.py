"""
Integration Tests for the Properties API

Covers:
1. Creation with the referral chain and closed-status rules
2. Owner-detail redaction
3. Agent manager scope
4. Referral classification on create and on agent change
5. Stats and per-agent listing permissions
"""
import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.db import DatabaseError

from apps.core.models import CalendarEvent, Notification, Property, Referral
from apps.properties.services import PropertyInput, ReferralInput, create_property
from tests.conftest import as_auth_user, client_for
from tests.factories import (
    PropertyFactory,
    PropertyStatusFactory,
    ReferralFactory,
    TeamMembershipFactory,
    UserFactory,
)


def property_payload(status, agent=None, referrals=None, **overrides):
    payload = {
        'status_id': str(status.id),
        'property_type': 'sale',
        'location': 'Marina',
        'building_name': 'Harbour Tower',
        'owner_name': 'Olive Owner',
        'phone_number': '+971500000000',
        'price': '250000.00',
        'referrals': referrals if referrals is not None else [
            {'name': 'Walk-in', 'type': 'custom', 'date': '2025-01-10'},
        ],
    }
    if agent is not None:
        payload['agent_id'] = str(agent.id)
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestCreateProperty:
    """POST /api/properties/"""

    def setup_method(self):
        self.admin = UserFactory(admin=True)
        self.client = client_for(self.admin)
        self.active = PropertyStatusFactory()
        self.sold = PropertyStatusFactory(sold=True)

    def test_create_with_referrals(self):
        agent = UserFactory()

        response = self.client.post('/api/properties/', property_payload(self.active, agent), format='json')

        assert response.status_code == 201
        body = response.json()['property']
        assert body['reference_number'].startswith('PR-')
        assert body['agent_id'] == str(agent.id)
        assert body['referrals_count'] == 1
        assert body['price'] == '250000.00'
        assert Property.objects.count() == 1

    def test_failed_referral_write_rolls_back_property(self, mocker):
        mocker.patch.object(Referral.objects, 'bulk_create', side_effect=DatabaseError('insert failed'))
        data = PropertyInput(
            status_id=self.active.id,
            property_type='sale',
            location='Marina',
            price=Decimal('250000.00'),
            referrals=[ReferralInput(name='Walk-in', type='custom', date=date(2025, 1, 10))],
        )

        with pytest.raises(DatabaseError):
            create_property(as_auth_user(self.admin), data)

        assert Property.objects.count() == 0
        assert not CalendarEvent.objects.exists()

    def test_closed_status_requires_closed_date(self):
        response = self.client.post('/api/properties/', property_payload(self.sold), format='json')

        assert response.status_code == 400
        assert 'closed_date' in response.json()['message']
        assert not Property.objects.exists()

    def test_closed_status_with_closed_date(self):
        response = self.client.post(
            '/api/properties/',
            property_payload(self.sold, closed_date='2025-02-01'),
            format='json',
        )

        assert response.status_code == 201
        assert response.json()['property']['closed_date'] == '2025-02-01'

    def test_empty_referrals_rejected(self):
        response = self.client.post('/api/properties/', property_payload(self.active, referrals=[]), format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'At least one referral is required'

    def test_missing_referrals_rejected(self):
        payload = property_payload(self.active)
        del payload['referrals']

        response = self.client.post('/api/properties/', payload, format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'At least one referral is required'

    def test_employee_referral_needs_employee(self):
        response = self.client.post('/api/properties/', property_payload(
            self.active, referrals=[{'name': 'Someone', 'type': 'employee', 'date': '2025-01-10'}],
        ), format='json')

        assert response.status_code == 400
        assert 'employee_id' in response.json()['message']

    def test_agent_cannot_create(self):
        response = client_for(UserFactory()).post('/api/properties/', property_payload(self.active), format='json')

        assert response.status_code == 403

    def test_assignment_notifies_and_schedules_event(self):
        agent = UserFactory()

        self.client.post('/api/properties/', property_payload(self.active, agent), format='json')

        assert Notification.objects.filter(user=agent, title='Property Assigned').count() == 1
        event = CalendarEvent.objects.get(type='property_assignment')
        assert event.assigned_to_id == agent.id
        assert event.end_time - event.start_time == timedelta(days=1)


@pytest.mark.django_db
class TestReferralClassification:
    """Stored external flags on the referral chain."""

    def setup_method(self):
        self.client = client_for(UserFactory(admin=True))
        self.status = PropertyStatusFactory()
        self.agent = UserFactory()
        self.colleague = UserFactory()

    def _flags(self, property_id):
        return list(
            Referral.objects.filter(property_id=property_id).order_by('date').values_list('external', flat=True)
        )

    def test_chain_is_classified_on_create(self):
        response = self.client.post('/api/properties/', property_payload(self.status, self.agent, referrals=[
            {'name': self.colleague.name, 'type': 'employee', 'employee_id': str(self.colleague.id), 'date': '2025-01-01'},
            {'name': 'Walk-in', 'type': 'custom', 'date': '2025-01-10'},
            {'name': 'Portal', 'type': 'custom', 'date': '2025-03-01'},
        ]), format='json')

        assert response.status_code == 201
        assert self._flags(response.json()['property']['id']) == [False, False, True]

    def test_self_referral_is_external(self):
        response = self.client.post('/api/properties/', property_payload(self.status, self.agent, referrals=[
            {'name': self.agent.name, 'type': 'employee', 'employee_id': str(self.agent.id), 'date': '2025-01-01'},
        ]), format='json')

        assert self._flags(response.json()['property']['id']) == [True]

    def test_agent_change_reclassifies(self):
        prop = PropertyFactory(agent=self.agent)
        ReferralFactory(property=prop, employee=self.colleague, date=date(2025, 1, 1), external=False)

        response = self.client.put(f'/api/properties/{prop.id}', {'agent_id': str(self.colleague.id)}, format='json')

        assert response.status_code == 200
        assert self._flags(prop.id) == [True]


@pytest.mark.django_db
class TestOwnerRedaction:
    """Owner name and phone are hidden from viewers without rights."""

    def test_referrer_sees_hidden_owner(self):
        referrer = UserFactory()
        prop = PropertyFactory(owner_name='Olive Owner', phone_number='+971500000000')
        ReferralFactory(property=prop, employee=referrer)

        body = client_for(referrer).get(f'/api/properties/{prop.id}').json()['property']

        assert body['owner_name'] == 'Hidden'
        assert body['phone_number'] == 'Hidden'

    def test_assigned_agent_sees_owner(self):
        prop = PropertyFactory(owner_name='Olive Owner')

        body = client_for(prop.agent).get(f'/api/properties/{prop.id}').json()['property']

        assert body['owner_name'] == 'Olive Owner'

    def test_team_leader_sees_team_agent_owner(self):
        membership = TeamMembershipFactory()
        PropertyFactory(agent=membership.agent, owner_name='Olive Owner')

        response = client_for(membership.team_leader).get('/api/properties/')

        assert response.status_code == 200
        assert [p['owner_name'] for p in response.json()['properties']] == ['Olive Owner']

    def test_outsider_cannot_view(self):
        prop = PropertyFactory()

        assert client_for(UserFactory()).get(f'/api/properties/{prop.id}').status_code == 403
        assert client_for(UserFactory()).get(f'/api/properties/{uuid.uuid4()}').status_code == 404


@pytest.mark.django_db
class TestAgentManagerScope:
    """Agent managers only manage properties of agent-role users."""

    def setup_method(self):
        self.manager = client_for(UserFactory(agent_manager=True))
        self.status = PropertyStatusFactory()

    def test_cannot_assign_non_agent(self):
        leader = UserFactory(team_leader=True)

        response = self.manager.post('/api/properties/', property_payload(self.status, leader), format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'Agent manager can only assign properties to agents'

    def test_cannot_update_property_of_non_agent(self):
        prop = PropertyFactory(agent=UserFactory(team_leader=True))

        response = self.manager.put(f'/api/properties/{prop.id}', {'notes': 'x'}, format='json')

        assert response.status_code == 403

    def test_updates_agent_property(self):
        prop = PropertyFactory()

        response = self.manager.put(f'/api/properties/{prop.id}', {'notes': 'Repainted'}, format='json')

        assert response.status_code == 200
        assert response.json()['property']['notes'] == 'Repainted'

    def test_missing_property_is_404(self):
        response = self.manager.delete(f'/api/properties/{uuid.uuid4()}')

        assert response.status_code == 404


@pytest.mark.django_db
class TestStatsAndByAgent:
    """Stats overview and per-agent listing."""

    def test_stats_for_view_all_roles(self):
        PropertyFactory()
        PropertyFactory(sold=True)

        response = client_for(UserFactory(operations=True)).get('/api/properties/stats/overview')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['total'] == 2
        assert data['closed'] == 1
        assert data['total_value'] == '200000.00'
        assert {row['total_value'] for row in data['by_status']} == {'100000.00'}

    def test_stats_denied_to_agents(self):
        assert client_for(UserFactory()).get('/api/properties/stats/overview').status_code == 403

    def test_by_agent_permissions(self):
        prop = PropertyFactory()
        url = f'/api/properties/agent/{prop.agent_id}'

        assert client_for(UserFactory(operations=True)).get(url).status_code == 403
        response = client_for(UserFactory(agent_manager=True)).get(url)
        assert response.status_code == 200
        assert response.json()['count'] == 1

    def test_list_limit_is_clamped(self):
        admin = UserFactory(admin=True)
        PropertyFactory.create_batch(3)

        body = client_for(admin).get('/api/properties/', {'limit': 2}).json()

        assert body['count'] == 2
        assert body['total'] == 3
