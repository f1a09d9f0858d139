"""
Tests for projects: context-scoped listing, create flow and overview
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.core.models import Activity
from archub.context.models import UserPreferences
from archub.context.store import UserContextStore
from archub.projects.models import Project


class ProjectAPITests(TestCase):
    """Project endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_disabled_without_organization(self):
        UserContextStore(user=self.user).set_user_context(organization_id=None)
        TestDataFactory.create_project(organization=self.organization)
        response = self.client.get('/api/v1/projects/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_list_scoped_to_current_organization(self):
        mine = TestDataFactory.create_project(organization=self.organization)
        TestDataFactory.create_project()
        response = self.client.get('/api/v1/projects/')
        self.assertEqual([p['id'] for p in response.data], [mine.id])

    def test_list_filters_by_status(self):
        TestDataFactory.create_project(organization=self.organization, status='active')
        planning = TestDataFactory.create_project(organization=self.organization, status='planning')
        response = self.client.get('/api/v1/projects/', {'status': 'planning'})
        self.assertEqual([p['id'] for p in response.data], [planning.id])

    def test_create_defaults_organization_and_becomes_current(self):
        response = self.client.post('/api/v1/projects/', {'name': 'Casa Lago'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        project = Project.objects.get(name='Casa Lago')
        self.assertEqual(project.organization, self.organization)
        self.assertEqual(project.created_by, self.user)
        self.assertEqual(UserPreferences.objects.get(user=self.user).last_project_id, project.id)
        self.assertTrue(Activity.objects.filter(type='project_created', project=project).exists())

    def test_create_without_organization_rejected(self):
        UserContextStore(user=self.user).set_user_context(organization_id=None)
        response = self.client.post('/api/v1/projects/', {'name': 'Huérfano'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Project.objects.filter(name='Huérfano').exists())

    def test_end_before_start_rejected(self):
        data = {'name': 'Fechas', 'start_date': '2024-05-10', 'end_date': '2024-05-01'}
        response = self.client.post('/api/v1/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_new_project_visible_in_cached_list(self):
        self.assertEqual(self.client.get('/api/v1/projects/').data, [])
        self.client.post('/api/v1/projects/', {'name': 'Galpón'}, format='json')
        self.assertEqual([p['name'] for p in self.client.get('/api/v1/projects/').data], ['Galpón'])

    def test_update_logs_activity(self):
        project = TestDataFactory.create_project(organization=self.organization)
        response = self.client.patch(f'/api/v1/projects/{project.id}/', {'progress': 75}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['progress'], 75)
        self.assertTrue(Activity.objects.filter(type='project_updated', project=project).exists())

    def test_progress_out_of_range(self):
        project = TestDataFactory.create_project(organization=self.organization)
        response = self.client.patch(f'/api/v1/projects/{project.id}/', {'progress': 150}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_current_project_clears_context(self):
        project = TestDataFactory.create_project(organization=self.organization)
        UserContextStore(user=self.user).set_user_context(
            organization_id=self.organization.id, project_id=project.id
        )
        response = self.client.delete(f'/api/v1/projects/{project.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertIsNone(UserPreferences.objects.get(user=self.user).last_project_id)

    def test_missing_project_is_404(self):
        response = self.client.get('/api/v1/projects/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_overview(self):
        TestDataFactory.create_project(organization=self.organization, budget=Decimal('500.00'), progress=30)
        TestDataFactory.create_project(organization=self.organization, budget=Decimal('1500.00'), progress=70)
        response = self.client.get('/api/v1/projects/overview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_projects'], 2)
        self.assertEqual(response.data['active_projects'], 2)
        self.assertEqual(Decimal(response.data['total_budget']), Decimal('2000.00'))
        self.assertEqual(response.data['average_progress'], 50.0)
