"""
Integration Tests for the Viewings API

Covers:
1. Booking rules per role (own property, team property, named agent)
2. One viewing per lead and property
3. Role-based visibility, stats and the by-agent listing
4. Updates, reassignment and the linked calendar event
5. Delete restricted to operations roles
"""
import uuid
from datetime import date, datetime, time, timezone

import pytest

from apps.core.models import CalendarEvent, Notification, Viewing
from tests.conftest import client_for
from tests.factories import (
    LeadFactory,
    PropertyFactory,
    TeamMembershipFactory,
    UserFactory,
    ViewingFactory,
)


def booking(prop, lead, **extra):
    payload = {
        'property_id': str(prop.id),
        'lead_id': str(lead.id),
        'viewing_date': '2025-05-10',
        'viewing_time': '14:30',
    }
    payload.update(extra)
    return payload


@pytest.mark.django_db
class TestCreateViewing:
    """Who may book a viewing, and for whom."""

    def test_agent_books_on_own_property(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        lead = LeadFactory()

        response = client_for(agent).post('/api/viewings/', booking(prop, lead), format='json')

        assert response.status_code == 201
        body = response.json()['viewing']
        assert body['agent_id'] == str(agent.id)
        assert body['status'] == 'scheduled'
        assert body['viewing_time'] == '14:30:00'
        assert body['property_reference'] == prop.reference_number
        assert body['lead_name'] == lead.customer_name

    def test_agent_cannot_book_on_someone_elses_property(self):
        agent = UserFactory()
        prop = PropertyFactory()

        response = client_for(agent).post('/api/viewings/', booking(prop, LeadFactory()), format='json')

        assert response.status_code == 403
        assert response.json()['message'] == 'You can only create viewings for properties assigned to you'
        assert Viewing.objects.count() == 0

    def test_agent_cannot_assign_to_another_agent(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)

        response = client_for(agent).post(
            '/api/viewings/',
            booking(prop, LeadFactory(), agent_id=str(UserFactory().id)),
            format='json',
        )

        assert response.status_code == 403
        assert response.json()['message'] == 'You can only assign viewings to yourself'

    def test_team_leader_books_for_the_property_agent(self):
        leader = UserFactory(team_leader=True)
        member = UserFactory()
        TeamMembershipFactory(team_leader=leader, agent=member)
        prop = PropertyFactory(agent=member)

        response = client_for(leader).post('/api/viewings/', booking(prop, LeadFactory()), format='json')

        assert response.status_code == 201
        assert response.json()['viewing']['agent_id'] == str(member.id)

    def test_team_leader_cannot_book_for_another_agent_on_team_property(self):
        leader = UserFactory(team_leader=True)
        member = UserFactory()
        other_member = UserFactory()
        TeamMembershipFactory(team_leader=leader, agent=member)
        TeamMembershipFactory(team_leader=leader, agent=other_member)
        prop = PropertyFactory(agent=member)

        response = client_for(leader).post(
            '/api/viewings/',
            booking(prop, LeadFactory(), agent_id=str(other_member.id)),
            format='json',
        )

        assert response.status_code == 403

    def test_team_leader_cannot_book_outside_team(self):
        leader = UserFactory(team_leader=True)
        prop = PropertyFactory()

        response = client_for(leader).post('/api/viewings/', booking(prop, LeadFactory()), format='json')

        assert response.status_code == 403
        assert response.json()['message'] == (
            'You can only add viewings on properties assigned to you or your team agents'
        )

    def test_view_all_role_must_name_the_agent(self):
        client = client_for(UserFactory(operations=True))
        prop = PropertyFactory()
        lead = LeadFactory()

        missing = client.post('/api/viewings/', booking(prop, lead), format='json')
        named = client.post('/api/viewings/', booking(prop, lead, agent_id=str(prop.agent_id)), format='json')

        assert missing.status_code == 400
        assert missing.json()['message'] == 'Agent assignment is required'
        assert named.status_code == 201

    def test_required_fields(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        client = client_for(agent)

        no_lead = client.post('/api/viewings/', {'property_id': str(prop.id)}, format='json')
        no_time = client.post('/api/viewings/', booking(prop, LeadFactory(), viewing_time=''), format='json')
        bad_time = client.post('/api/viewings/', booking(prop, LeadFactory(), viewing_time='25:99'), format='json')

        assert no_lead.json()['message'] == 'Property and Lead are required fields'
        assert no_time.json()['message'] == 'Viewing date and time are required'
        assert bad_time.status_code == 400
        assert bad_time.json()['message'] == 'Invalid viewing_time format'

    def test_unknown_property_is_404(self):
        agent = UserFactory()
        payload = {
            'property_id': str(uuid.uuid4()),
            'lead_id': str(LeadFactory().id),
            'viewing_date': '2025-05-10',
            'viewing_time': '14:30',
        }

        response = client_for(agent).post('/api/viewings/', payload, format='json')

        assert response.status_code == 404
        assert response.json()['message'] == 'Property not found'

    def test_unknown_status_rejected(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)

        response = client_for(agent).post(
            '/api/viewings/', booking(prop, LeadFactory(), status='Maybe'), format='json'
        )

        assert response.status_code == 400

    def test_second_viewing_for_same_lead_and_property_conflicts(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        lead = LeadFactory()
        client = client_for(agent)

        first = client.post('/api/viewings/', booking(prop, lead), format='json')
        second = client.post('/api/viewings/', booking(prop, lead, viewing_date='2025-05-11'), format='json')

        assert first.status_code == 201
        assert second.status_code == 409
        assert Viewing.objects.count() == 1

    def test_booking_creates_linked_showing_event(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        lead = LeadFactory()

        response = client_for(agent).post('/api/viewings/', booking(prop, lead), format='json')

        viewing = Viewing.objects.get(id=response.json()['viewing']['id'])
        event = CalendarEvent.objects.get(id=viewing.calendar_event_id)
        assert event.type == 'showing'
        assert event.assigned_to_id == agent.id
        assert event.property_id == prop.id
        assert event.lead_id == lead.id
        assert event.start_time == datetime(2025, 5, 10, 14, 30, tzinfo=timezone.utc)
        assert event.end_time == datetime(2025, 5, 10, 15, 30, tzinfo=timezone.utc)
        assert event.get_attendee_names() == [lead.customer_name]

    def test_booking_notifies_management_but_not_the_booker(self):
        agent = UserFactory()
        manager = UserFactory(agent_manager=True)
        accountant = UserFactory(accountant=True)
        prop = PropertyFactory(agent=agent)

        client_for(agent).post('/api/viewings/', booking(prop, LeadFactory()), format='json')

        assert Notification.objects.filter(user=manager, title='New Viewing Scheduled').count() == 1
        assert not Notification.objects.filter(user=accountant).exists()
        assert not Notification.objects.filter(user=agent, title='New Viewing Scheduled').exists()

    def test_calendar_failure_does_not_fail_booking(self, mocker):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        mocker.patch.object(CalendarEvent.objects, 'create', side_effect=RuntimeError('calendar down'))

        response = client_for(agent).post('/api/viewings/', booking(prop, LeadFactory()), format='json')

        assert response.status_code == 201
        assert response.json()['viewing']['calendar_event_id'] is None


@pytest.mark.django_db
class TestViewingVisibility:
    """List, detail, stats and by-agent scoping."""

    def test_agent_sees_only_own_viewings(self):
        agent = UserFactory()
        own = ViewingFactory(agent=agent)
        ViewingFactory()

        body = client_for(agent).get('/api/viewings/').json()

        assert [v['id'] for v in body['viewings']] == [str(own.id)]
        assert body['total'] == 1

    def test_team_leader_sees_team_viewings(self):
        leader = UserFactory(team_leader=True)
        member = UserFactory()
        TeamMembershipFactory(team_leader=leader, agent=member)
        own = ViewingFactory(agent=leader)
        team = ViewingFactory(agent=member)
        ViewingFactory()

        body = client_for(leader).get('/api/viewings/').json()

        assert {v['id'] for v in body['viewings']} == {str(own.id), str(team.id)}

    def test_view_all_role_sees_everything(self):
        ViewingFactory.create_batch(3)

        body = client_for(UserFactory(agent_manager=True)).get('/api/viewings/').json()

        assert body['total'] == 3

    def test_serious_viewings_listed_first(self):
        agent = UserFactory()
        recent = ViewingFactory(agent=agent, viewing_date=date(2025, 5, 20))
        serious = ViewingFactory(agent=agent, viewing_date=date(2025, 5, 1), is_serious=True)

        body = client_for(agent).get('/api/viewings/').json()

        assert [v['id'] for v in body['viewings']] == [str(serious.id), str(recent.id)]

    def test_filters(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent, location='Marina Gate')
        match = ViewingFactory(agent=agent, property=prop, status='scheduled', viewing_date=date(2025, 5, 10))
        ViewingFactory(agent=agent, property=prop, status='completed', viewing_date=date(2025, 5, 10))
        ViewingFactory(agent=agent, status='scheduled', viewing_date=date(2025, 6, 10))
        client = client_for(agent)

        by_status = client.get('/api/viewings/', {
            'status': 'scheduled', 'date_from': '2025-05-01', 'date_to': '2025-05-31',
        }).json()
        by_search = client.get('/api/viewings/', {'search': 'marina', 'status': 'All'}).json()
        bad_status = client.get('/api/viewings/', {'status': 'Maybe'})

        assert [v['id'] for v in by_status['viewings']] == [str(match.id)]
        assert by_search['total'] == 2
        assert bad_status.status_code == 400

    def test_detail_404_before_403(self):
        agent = UserFactory()
        other = ViewingFactory()
        client = client_for(agent)

        missing = client.get(f'/api/viewings/{uuid.uuid4()}')
        hidden = client.get(f'/api/viewings/{other.id}')

        assert missing.status_code == 404
        assert hidden.status_code == 403

    def test_stats_count_visible_viewings_by_status(self):
        agent = UserFactory()
        ViewingFactory(agent=agent, status='scheduled')
        ViewingFactory(agent=agent, status='completed')
        ViewingFactory(agent=agent, status='completed')
        ViewingFactory(status='cancelled')

        stats = client_for(agent).get('/api/viewings/stats').json()['stats']

        assert stats['total_viewings'] == 3
        assert stats['scheduled'] == 1
        assert stats['completed'] == 2
        assert stats['cancelled'] == 0
        assert stats['no_show'] == 0

    def test_by_agent_permissions(self):
        leader = UserFactory(team_leader=True)
        member = UserFactory()
        outsider = UserFactory()
        TeamMembershipFactory(team_leader=leader, agent=member)
        ViewingFactory(agent=member)
        ViewingFactory(agent=outsider)

        team = client_for(leader).get(f'/api/viewings/agent/{member.id}')
        foreign = client_for(leader).get(f'/api/viewings/agent/{outsider.id}')
        by_agent = client_for(member).get(f'/api/viewings/agent/{outsider.id}')
        by_manager = client_for(UserFactory(operations_manager=True)).get(f'/api/viewings/agent/{outsider.id}')

        assert team.status_code == 200
        assert team.json()['count'] == 1
        assert foreign.status_code == 403
        assert by_agent.status_code == 403
        assert by_manager.json()['count'] == 1


@pytest.mark.django_db
class TestUpdateViewing:
    """Edits, reassignment and calendar sync."""

    def test_agent_updates_own_viewing(self):
        agent = UserFactory()
        viewing = ViewingFactory(agent=agent, status='scheduled')

        response = client_for(agent).put(f'/api/viewings/{viewing.id}', {
            'status': 'completed',
            'is_serious': True,
            'notes': 'Client wants a second visit',
        }, format='json')

        assert response.status_code == 200
        body = response.json()['viewing']
        assert body['status'] == 'completed'
        assert body['is_serious'] is True
        assert body['notes'] == 'Client wants a second visit'

    def test_empty_date_keeps_stored_value(self):
        agent = UserFactory()
        viewing = ViewingFactory(agent=agent, viewing_date=date(2025, 5, 10))

        response = client_for(agent).put(
            f'/api/viewings/{viewing.id}', {'viewing_date': '', 'viewing_time': None}, format='json'
        )

        assert response.status_code == 200
        viewing.refresh_from_db()
        assert viewing.viewing_date == date(2025, 5, 10)
        assert viewing.viewing_time == time(10, 0)

    def test_agent_cannot_update_others_viewing(self):
        response = client_for(UserFactory()).put(
            f'/api/viewings/{ViewingFactory().id}', {'status': 'completed'}, format='json'
        )

        assert response.status_code == 403

    def test_agent_cannot_reassign(self):
        agent = UserFactory()
        viewing = ViewingFactory(agent=agent)

        response = client_for(agent).put(
            f'/api/viewings/{viewing.id}', {'agent_id': str(UserFactory().id)}, format='json'
        )

        assert response.status_code == 403
        assert response.json()['message'] == 'You cannot reassign viewings to other agents'

    def test_team_leader_reassigns_within_team_only(self):
        leader = UserFactory(team_leader=True)
        member = UserFactory()
        TeamMembershipFactory(team_leader=leader, agent=member)
        viewing = ViewingFactory(agent=leader)
        client = client_for(leader)

        outside = client.put(f'/api/viewings/{viewing.id}', {'agent_id': str(UserFactory().id)}, format='json')
        inside = client.put(f'/api/viewings/{viewing.id}', {'agent_id': str(member.id)}, format='json')

        assert outside.status_code == 403
        assert inside.status_code == 200
        assert Notification.objects.filter(user=member, title='Viewing Assigned').count() == 1

    def test_update_moves_linked_event(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        client = client_for(agent)
        created = client.post('/api/viewings/', booking(prop, LeadFactory()), format='json').json()['viewing']

        client.put(f'/api/viewings/{created["id"]}', {
            'viewing_date': '2025-05-12',
            'viewing_time': '09:00',
            'status': 'rescheduled',
        }, format='json')

        event = CalendarEvent.objects.get(id=created['calendar_event_id'])
        assert event.start_time == datetime(2025, 5, 12, 9, 0, tzinfo=timezone.utc)
        assert event.end_time == datetime(2025, 5, 12, 10, 0, tzinfo=timezone.utc)
        assert event.color == 'yellow'

    def test_moving_onto_an_existing_pair_conflicts(self):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        lead = LeadFactory()
        ViewingFactory(agent=agent, property=prop, lead=lead)
        other = ViewingFactory(agent=agent, property=prop, lead=LeadFactory())

        response = client_for(agent).put(f'/api/viewings/{other.id}', {'lead_id': str(lead.id)}, format='json')

        assert response.status_code == 409


@pytest.mark.django_db
class TestDeleteViewing:

    @pytest.mark.parametrize('trait', ['admin', 'operations_manager', 'operations'])
    def test_operations_roles_delete(self, trait):
        agent = UserFactory()
        prop = PropertyFactory(agent=agent)
        created = client_for(agent).post(
            '/api/viewings/', booking(prop, LeadFactory()), format='json'
        ).json()['viewing']

        response = client_for(UserFactory(**{trait: True})).delete(f'/api/viewings/{created["id"]}')

        assert response.status_code == 200
        assert not Viewing.objects.filter(id=created['id']).exists()
        assert not CalendarEvent.objects.filter(id=created['calendar_event_id']).exists()

    @pytest.mark.parametrize('trait', ['agent_manager', 'team_leader', 'accountant'])
    def test_other_roles_cannot_delete(self, trait):
        viewing = ViewingFactory()

        response = client_for(UserFactory(**{trait: True})).delete(f'/api/viewings/{viewing.id}')

        assert response.status_code == 403
        assert Viewing.objects.filter(id=viewing.id).exists()

    def test_owner_agent_cannot_delete(self):
        agent = UserFactory()
        viewing = ViewingFactory(agent=agent)

        assert client_for(agent).delete(f'/api/viewings/{viewing.id}').status_code == 403

    def test_missing_viewing_is_404(self):
        response = client_for(UserFactory(admin=True)).delete(f'/api/viewings/{uuid.uuid4()}')

        assert response.status_code == 404
