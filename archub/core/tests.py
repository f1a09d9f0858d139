"""
Test suite for the core app
Tests: query cache, mutations, service façade round-trip, auth and user endpoints
"""
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.db import DatabaseError
from django.test import TestCase, override_settings
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.core.models import Plan, Activity
from archub.core.query_cache import (
    CacheKey, Entity, Mutation, Notification, QueryClient, QueryOptions
)
from archub.core.services import ServiceError, NotFound, plans_service
from archub.core.utils import create_activity, is_admin_user
from archub.projects.services import projects_service


class CacheKeyTests(TestCase):

    def test_scope_ids_normalised(self):
        self.assertEqual(CacheKey('movements', 5), CacheKey(Entity.MOVEMENTS, '5'))
        self.assertEqual(CacheKey('movements', 5).parts, ('movements', '5'))

    def test_unknown_entity_rejected(self):
        with self.assertRaises(ValueError):
            CacheKey('spaceships')

    def test_startswith(self):
        key = CacheKey('contacts', 3, 'type', 'abc')
        self.assertTrue(key.startswith(('contacts',)))
        self.assertTrue(key.startswith(('contacts', '3')))
        self.assertFalse(key.startswith(('contacts', '4')))


class QueryClientTests(TestCase):
    """Fetch-or-serve, invalidation and disabled queries"""

    def setUp(self):
        cache.clear()
        self.client_ = QueryClient()
        self.fetcher = mock.Mock(return_value=[{'id': 1}])

    def test_disabled_query_does_not_fetch(self):
        result = self.client_.query(CacheKey('movements', ''), self.fetcher, QueryOptions(enabled=False))
        self.fetcher.assert_not_called()
        self.assertEqual(result.data, [])
        self.assertFalse(result.is_loading)
        self.assertIsNone(result.error)

    def test_second_read_is_served_from_cache(self):
        key = CacheKey('movements', 5)
        self.client_.query(key, self.fetcher)
        result = self.client_.query(key, self.fetcher)
        self.assertEqual(self.fetcher.call_count, 1)
        self.assertEqual(result.data, [{'id': 1}])
        self.assertEqual(self.client_.get_query_data(key), [{'id': 1}])

    def test_invalidation_causes_refetch(self):
        key = CacheKey('movements', 5)
        self.client_.query(key, self.fetcher)
        self.client_.invalidate('movements')
        self.assertIsNone(self.client_.get_query_data(key))
        self.client_.query(key, self.fetcher)
        self.assertEqual(self.fetcher.call_count, 2)

    def test_invalidation_is_prefix_scoped(self):
        five, six = CacheKey('movements', 5), CacheKey('movements', 6)
        self.client_.query(five, self.fetcher)
        self.client_.query(six, self.fetcher)
        self.client_.invalidate('movements', 5)
        self.client_.query(five, self.fetcher)
        self.client_.query(six, self.fetcher)
        self.assertEqual(self.fetcher.call_count, 3)

    def test_other_entities_untouched(self):
        key = CacheKey('contacts', 1)
        self.client_.query(key, self.fetcher)
        self.client_.invalidate('movements')
        self.client_.query(key, self.fetcher)
        self.assertEqual(self.fetcher.call_count, 1)

    def test_stale_entry_refetched(self):
        key = CacheKey('units')
        self.client_.query(key, self.fetcher, QueryOptions(stale_time=0))
        self.client_.query(key, self.fetcher, QueryOptions(stale_time=0))
        self.assertEqual(self.fetcher.call_count, 2)

    def test_failed_fetch_retried_then_reported(self):
        failing = mock.Mock(side_effect=ServiceError('Error al obtener', original='boom'))
        result = self.client_.query(CacheKey('units'), failing, QueryOptions(retry=1))
        self.assertEqual(failing.call_count, 2)
        self.assertTrue(result.is_error)
        self.assertEqual(result.data, [])

    def test_window_focus_refetches_observed_queries(self):
        key = CacheKey('projects', 1)
        self.client_.query(key, self.fetcher)
        self.assertEqual(self.client_.on_window_focus(), 1)
        self.client_.query(key, self.fetcher)
        self.assertEqual(self.fetcher.call_count, 2)

    def test_window_focus_limited_to_scopes(self):
        self.client_.query(CacheKey('projects', 1), self.fetcher)
        self.client_.query(CacheKey('movements', 7, 'currency=USD'), self.fetcher)
        self.client_.query(CacheKey('contacts', 2), self.fetcher)
        self.assertEqual(self.client_.on_window_focus(scopes=[1, 7, None]), 2)
        self.assertIsNotNone(self.client_.get_query_data(CacheKey('contacts', 2)))
        self.assertIsNone(self.client_.get_query_data(CacheKey('projects', 1)))

    def test_queries_without_focus_refetch_not_observed(self):
        self.client_.query(CacheKey('units'), self.fetcher, QueryOptions(refetch_on_window_focus=False))
        self.assertEqual(self.client_.observed_keys(), [])

    @override_settings(ARCHUB_QUERY={'MAX_OBSERVERS': 50})
    def test_observed_keys_are_bounded(self):
        for i in range(1000):
            self.client_.query(CacheKey('movements', i), self.fetcher)
        observed = self.client_.observed_keys()
        self.assertEqual(len(observed), 50)
        self.assertEqual(observed[-1], CacheKey('movements', 999))

    def test_observed_keys_expire_with_their_entries(self):
        with mock.patch('archub.core.query_cache.time.time', return_value=1000.0):
            self.client_.query(CacheKey('movements', 1), self.fetcher, QueryOptions(gc_time=10))
        with mock.patch('archub.core.query_cache.time.time', return_value=1011.0):
            self.assertEqual(self.client_.observed_keys(), [])
            self.assertEqual(self.client_.on_window_focus(), 0)

    def test_invalidate_all(self):
        self.client_.query(CacheKey('units'), self.fetcher)
        self.client_.query(CacheKey('tasks'), self.fetcher)
        self.client_.invalidate_all()
        self.assertIsNone(self.client_.get_query_data(CacheKey('units')))
        self.assertIsNone(self.client_.get_query_data(CacheKey('tasks')))


class MutationTests(TestCase):
    """Invalidate-then-notify ordering and duplicate submits"""

    def setUp(self):
        cache.clear()
        self.query_client = QueryClient()

    def test_invalidation_precedes_success_callback(self):
        events = []
        self.query_client.invalidate = mock.Mock(side_effect=lambda *key: events.append(('invalidate', key)))
        mutation = Mutation(
            lambda value: value,
            invalidates=[('contacts',), ('contact-types',)],
            success_message='Guardado',
            on_success=lambda data: events.append(('success', data)),
            client=self.query_client,
        )
        result = mutation.mutate('ok')
        self.assertTrue(result.ok)
        self.assertEqual(result.notification, Notification('Guardado'))
        self.assertEqual(events, [
            ('invalidate', ('contacts',)),
            ('invalidate', ('contact-types',)),
            ('success', 'ok'),
        ])

    def test_pending_mutation_ignores_second_submit(self):
        fn = mock.Mock()
        mutation = Mutation(fn, client=self.query_client)

        def submit_twice(value):
            self.assertTrue(mutation.is_pending)
            self.assertIsNone(mutation.mutate(value))
            return value

        fn.side_effect = submit_twice
        result = mutation.mutate('first')
        self.assertEqual(fn.call_count, 1)
        self.assertEqual(result.data, 'first')
        self.assertFalse(mutation.is_pending)

    def test_shared_pending_key_blocks_concurrent_submit(self):
        first = Mutation(lambda: 'a', pending_key='form:1', client=self.query_client)
        cache.add('qc:pending:form:1', 1, 30)
        self.assertIsNone(first.mutate())
        cache.delete('qc:pending:form:1')
        self.assertEqual(first.mutate().data, 'a')

    def test_service_error_becomes_destructive_notification(self):
        on_error = mock.Mock()
        self.query_client.invalidate = mock.Mock()
        mutation = Mutation(
            mock.Mock(side_effect=ServiceError('Error al crear', original='duplicate key')),
            invalidates=[('units',)],
            error_message='No se pudo crear la unidad',
            on_error=on_error,
            client=self.query_client,
        )
        result = mutation.mutate()
        self.assertFalse(result.ok)
        self.assertEqual(result.notification.variant, 'destructive')
        self.assertEqual(result.notification.description, 'No se pudo crear la unidad')
        on_error.assert_called_once()
        self.query_client.invalidate.assert_not_called()
        self.assertFalse(mutation.is_pending)


class ModelServiceTests(TestCase):
    """Façade round-trip and error mapping"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)

    def test_create_get_update_delete_round_trip(self):
        created = projects_service.create(
            {'organization': self.organization.id, 'name': 'Casa Pérez', 'status': 'planning'},
            created_by=self.user,
        )
        fetched = projects_service.get(created['id'])
        self.assertEqual(fetched['name'], 'Casa Pérez')
        self.assertEqual(fetched['organization_name'], self.organization.name)
        self.assertEqual(fetched['created_by'], self.user.id)

        updated = projects_service.update(created['id'], {'progress': 40})
        self.assertEqual(updated['progress'], 40)
        self.assertEqual(updated['name'], 'Casa Pérez')

        listed = projects_service.get_all(organization_id=self.organization.id)
        self.assertEqual([p['id'] for p in listed], [created['id']])

        projects_service.delete(created['id'])
        with self.assertRaises(NotFound):
            projects_service.get(created['id'])

    def test_unknown_scope_values_ignored(self):
        TestDataFactory.create_project(organization=self.organization)
        self.assertEqual(len(projects_service.get_all(organization_id=None, colour='red')), 1)

    def test_database_error_becomes_service_error(self):
        with mock.patch.object(Plan, 'save', side_effect=DatabaseError('connection lost')):
            with self.assertRaises(ServiceError) as ctx:
                plans_service.create({'name': 'Pro', 'price': '20.00'})
        self.assertEqual(ctx.exception.original, 'connection lost')

    def test_plans_active_only_price_ascending(self):
        TestDataFactory.create_plan(name='Pro', price=Decimal('30.00'))
        TestDataFactory.create_plan(name='Free', price=Decimal('0.00'))
        TestDataFactory.create_plan(name='Legacy', price=Decimal('5.00'), is_active=False)
        self.assertEqual([p['name'] for p in plans_service.get_all()], ['Free', 'Pro'])

    def test_overview(self):
        TestDataFactory.create_project(organization=self.organization, budget=Decimal('1000.00'), progress=50)
        TestDataFactory.create_project(organization=self.organization, status='planning', progress=0)
        overview = projects_service.overview(organization_id=self.organization.id)
        self.assertEqual(overview['total_projects'], 2)
        self.assertEqual(overview['active_projects'], 1)
        self.assertEqual(Decimal(overview['total_budget']), Decimal('1000.00'))
        self.assertEqual(overview['average_progress'], 25.0)


class UtilsTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_is_admin_user(self):
        self.assertTrue(is_admin_user(TestDataFactory.create_admin()))
        self.assertTrue(is_admin_user(TestDataFactory.create_user(is_staff=True)))
        self.assertFalse(is_admin_user(TestDataFactory.create_user()))
        self.assertFalse(is_admin_user(None))

    def test_create_activity_defaults_organization_from_project(self):
        project = TestDataFactory.create_project()
        activity = create_activity('project_created', 'Proyecto creado', project=project)
        self.assertEqual(activity.organization, project.organization)

    def test_create_activity_skips_incomplete_entries(self):
        self.assertIsNone(create_activity('project_created', 'Sin organización'))
        self.assertEqual(Activity.objects.count(), 0)


class AuthAPITests(TestCase):
    """Registration, login and current user"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def test_register_never_grants_admin(self):
        data = {
            'username': 'maria',
            'email': 'maria@test.com',
            'password': 'Obra!Segura2024',
            'password_confirm': 'Obra!Segura2024',
            'role': 'admin',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'user')
        self.assertIn('access', response.data)

    def test_register_ignores_plan(self):
        premium = TestDataFactory.create_plan(name='Premium', price=Decimal('99.00'))
        data = {
            'username': 'jorge',
            'email': 'jorge@test.com',
            'password': 'Obra!Segura2024',
            'password_confirm': 'Obra!Segura2024',
            'plan': str(premium.id),
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['user']['plan'])

    def test_register_password_mismatch(self):
        data = {
            'username': 'maria',
            'email': 'maria@test.com',
            'password': 'Obra!Segura2024',
            'password_confirm': 'otra',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_and_me(self):
        user = TestDataFactory.create_user(username='juan', password='testpass123')
        organization = TestDataFactory.create_organization(owner=user)
        response = self.client.post(
            '/api/v1/auth/login/', {'username': 'juan', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_admin'])
        self.assertEqual(response.data['context']['organization_id'], organization.id)


class UserAPITests(TestCase):
    """User management is admin only"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_non_admin_cannot_list_users(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_lists_users(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_user_list_refreshes_after_create(self):
        self.client.authenticate_user(self.admin)
        self.client.get('/api/v1/users/')
        data = {
            'username': 'nuevo',
            'email': 'nuevo@test.com',
            'password': 'Obra!Segura2024',
            'password_confirm': 'Obra!Segura2024',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(len(response.data), 3)

    def test_user_can_read_self_but_not_others(self):
        self.client.authenticate_user(self.user)
        self.assertEqual(self.client.get(f'/api/v1/users/{self.user.id}/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(f'/api/v1/users/{self.admin.id}/').status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_user_is_404(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/users/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_changes_role(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/role/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'admin')

    def test_invalid_role_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/role/', {'role': 'owner'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_user_cannot_choose_own_plan(self):
        premium = TestDataFactory.create_plan(name='Premium', price=Decimal('99.00'))
        self.client.authenticate_user(self.user)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'plan': str(premium.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.user.refresh_from_db()
        self.assertIsNone(self.user.plan_id)

        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'first_name': 'Ana'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['first_name'], 'Ana')

    def test_admin_assigns_plan(self):
        premium = TestDataFactory.create_plan(name='Premium', price=Decimal('99.00'))
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'plan': str(premium.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['plan_name'], 'Premium')
        self.user.refresh_from_db()
        self.assertEqual(self.user.plan_id, premium.id)

    def test_inactive_plan_rejected(self):
        retired = TestDataFactory.create_plan(name='Legacy', is_active=False)
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'plan': str(retired.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DashboardAPITests(TestCase):
    """Stats and recent activity"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_recent_activities_empty_without_organization(self):
        response = self.client.get('/api/v1/activities/recent/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_recent_activities_scoped_to_organization(self):
        organization = TestDataFactory.create_organization(owner=self.user)
        project = TestDataFactory.create_project(organization=organization)
        create_activity('project_created', 'Proyecto creado', project=project, user=self.user)
        create_activity('project_created', 'Otra organización', project=TestDataFactory.create_project())
        response = self.client.get('/api/v1/activities/recent/')
        self.assertEqual([a['title'] for a in response.data], ['Proyecto creado'])

    def test_stats(self):
        organization = TestDataFactory.create_organization(owner=self.user)
        TestDataFactory.create_project(organization=organization, progress=20)
        response = self.client.get('/api/v1/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_projects'], 1)

    def test_plans(self):
        TestDataFactory.create_plan(name='Free', price=Decimal('0.00'))
        response = self.client.get('/api/v1/plans/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['name'], 'Free')
