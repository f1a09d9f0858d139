"""
Tests for calendar events and the project timeline feed
"""
from datetime import datetime
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.calendar.models import CalendarEvent
from archub.calendar.services import timeline_service
from archub.context.store import UserContextStore


def local(year, month, day, hour=12):
    return timezone.make_aware(datetime(year, month, day, hour))


class TimelineServiceTests(TestCase):

    def setUp(self):
        cache.clear()
        self.project = TestDataFactory.create_project()
        self.concepts = TestDataFactory.create_movement_concepts()

    def test_merged_oldest_first(self):
        TestDataFactory.create_site_log(project=self.project, log_date='2024-05-02', comments='Replanteo')
        TestDataFactory.create_movement(
            self.project, self.concepts['Pago de Cliente'], amount=Decimal('1500.00'),
            currency='USD', created_at_local=local(2024, 5, 2),
        )
        TestDataFactory.create_movement(
            self.project, self.concepts['Materiales de Construcción'], created_at_local=local(2024, 5, 1),
        )

        events = timeline_service.get_events(self.project.id)

        self.assertEqual(
            [(e['date'], e['type']) for e in events],
            [('2024-05-01', 'movement'), ('2024-05-02', 'sitelog'), ('2024-05-02', 'movement')],
        )
        self.assertEqual(events[1]['title'], 'Bitácora de Obra')
        self.assertEqual(events[1]['description'], 'Replanteo')
        self.assertIsNone(events[1]['amount'])
        self.assertEqual(events[2]['title'], 'Pago de Cliente')
        self.assertEqual(events[2]['amount'], '1500.00')
        self.assertEqual(events[2]['currency'], 'USD')
        self.assertTrue(events[0]['id'].startswith('movement-'))

    def test_other_projects_excluded(self):
        other = TestDataFactory.create_project(organization=self.project.organization)
        TestDataFactory.create_site_log(project=other)
        self.assertEqual(timeline_service.get_events(self.project.id), [])


class CalendarEventAPITests(TestCase):
    """Calendar and timeline endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)
        UserContextStore(user=self.user).set_user_context(
            organization_id=self.organization.id, project_id=self.project.id
        )
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _event(self, **values):
        defaults = {
            'organization': self.organization,
            'title': 'Visita de obra',
            'date': '2024-06-10',
            'time': '09:00',
            'duration': 60,
        }
        defaults.update(values)
        return CalendarEvent.objects.create(**defaults)

    def test_create_in_current_organization(self):
        data = {
            'title': 'Reunión con el cliente',
            'date': '2024-06-12',
            'time': '10:30',
            'duration': 45,
            'type': 'meeting',
            'priority': 'high',
        }
        response = self.client.post('/api/v1/calendar-events/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['organization'], self.organization.id)
        self.assertEqual(response.data['created_by'], self.user.id)

    def test_list_ordered_and_refetched_after_create(self):
        self._event(date='2024-06-20')
        self.assertEqual(len(self.client.get('/api/v1/calendar-events/').data), 1)
        self.client.post(
            '/api/v1/calendar-events/',
            {'title': 'Entrega de materiales', 'date': '2024-06-05', 'time': '08:00', 'duration': 30},
            format='json',
        )
        response = self.client.get('/api/v1/calendar-events/')
        self.assertEqual([row['date'] for row in response.data], ['2024-06-05', '2024-06-20'])

    def test_same_day_ordered_by_time(self):
        self._event(title='Tarde', time='16:00')
        self._event(title='Mañana', time='08:00')
        response = self.client.get('/api/v1/calendar-events/')
        self.assertEqual([row['title'] for row in response.data], ['Mañana', 'Tarde'])

    def test_month_window_and_type_filters(self):
        self._event(date='2024-05-31')
        self._event(date='2024-06-15', type='reminder')
        self._event(date='2024-07-01')
        response = self.client.get('/api/v1/calendar-events/', {'date_from': '2024-06-01', 'date_to': '2024-06-30'})
        self.assertEqual([row['date'] for row in response.data], ['2024-06-15'])
        response = self.client.get('/api/v1/calendar-events/', {'type': 'reminder'})
        self.assertEqual(len(response.data), 1)

    def test_invalid_filters_are_400(self):
        response = self.client.get('/api/v1/calendar-events/', {'type': 'party'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('type', response.data)
        response = self.client.get('/api/v1/calendar-events/', {'date_from': 'mañana'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_title_rejected(self):
        response = self.client.post(
            '/api/v1/calendar-events/', {'date': '2024-06-12', 'time': '10:30', 'duration': 45}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(CalendarEvent.objects.exists())

    def test_list_disabled_without_organization(self):
        self._event()
        UserContextStore(user=self.user).set_user_context(organization_id=None, project_id=None)
        self.assertEqual(self.client.get('/api/v1/calendar-events/').data, [])

    def test_reschedule_and_delete(self):
        event = self._event()
        response = self.client.patch(f'/api/v1/calendar-events/{event.id}/', {'date': '2024-06-11'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['date'], '2024-06-11')

        response = self.client.delete(f'/api/v1/calendar-events/{event.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CalendarEvent.objects.filter(pk=event.id).exists())

    def test_foreign_event_is_404(self):
        foreign = self._event(organization=TestDataFactory.create_organization(name='Constructora Ajena'))
        self.assertEqual(
            self.client.get(f'/api/v1/calendar-events/{foreign.id}/').status_code, status.HTTP_404_NOT_FOUND
        )
        self.assertEqual(
            self.client.delete(f'/api/v1/calendar-events/{foreign.id}/').status_code, status.HTTP_404_NOT_FOUND
        )
        self.assertTrue(CalendarEvent.objects.filter(pk=foreign.id).exists())

    def test_timeline_refetched_after_movement_create(self):
        concepts = TestDataFactory.create_movement_concepts()
        TestDataFactory.create_site_log(project=self.project, log_date='2024-06-01')
        self.assertEqual(len(self.client.get('/api/v1/timeline-events/').data), 1)

        response = self.client.post('/api/v1/movements/', {
            'concept': str(concepts['Pago de Cliente'].id),
            'amount': '800.00',
            'currency': 'ARS',
            'created_at_local': '2024-06-03',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/v1/timeline-events/')
        self.assertEqual([row['type'] for row in response.data], ['sitelog', 'movement'])

    def test_timeline_disabled_without_project(self):
        TestDataFactory.create_site_log(project=self.project)
        UserContextStore(user=self.user).set_user_context(project_id=None)
        self.assertEqual(self.client.get('/api/v1/timeline-events/').data, [])
