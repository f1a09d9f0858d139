"""
Tests for organizations: ownership, membership scoping and counters
"""
from django.http import Http404
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.context.models import UserPreferences
from archub.organizations.models import Organization, OrganizationMember
from archub.organizations.services import organizations_service, is_member
from archub.organizations.access import can_access_project, get_owned_or_404, restrict_to_member
from archub.contacts.models import Contact
from archub.projects.models import Project


class OrganizationServiceTests(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()

    def test_create_adds_owner_membership(self):
        organization = organizations_service.create({'name': 'Estudio Norte'}, owner=self.user)
        membership = OrganizationMember.objects.get(organization_id=organization['id'])
        self.assertEqual(membership.user, self.user)
        self.assertEqual(membership.role, 'owner')
        self.assertEqual(organization['member_count'], 1)
        self.assertTrue(is_member(organization['id'], self.user))

    def test_counts_ignore_inactive_projects(self):
        organization = TestDataFactory.create_organization(owner=self.user, members=[TestDataFactory.create_user()])
        TestDataFactory.create_project(organization=organization)
        archived = TestDataFactory.create_project(organization=organization)
        archived.is_active = False
        archived.save()
        data = organizations_service.get(organization.id)
        self.assertEqual(data['project_count'], 1)
        self.assertEqual(data['member_count'], 2)

    def test_user_scope(self):
        mine = TestDataFactory.create_organization(owner=self.user)
        TestDataFactory.create_organization()
        self.assertEqual([o['id'] for o in organizations_service.get_all(user_id=self.user.id)], [mine.id])


class OrganizationAPITests(TestCase):
    """Organization endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_switches_context(self):
        response = self.client.post('/api/v1/organizations/', {'name': 'Estudio Sur'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Estudio Sur')
        organization = Organization.objects.get(name='Estudio Sur')
        self.assertEqual(organization.owner, self.user)
        prefs = UserPreferences.objects.get(user=self.user)
        self.assertEqual(prefs.last_organization_id, organization.id)
        self.assertIsNone(prefs.last_project_id)

    def test_create_requires_name(self):
        response = self.client.post('/api/v1/organizations/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_only_member_organizations(self):
        mine = TestDataFactory.create_organization(owner=self.user)
        TestDataFactory.create_organization()
        response = self.client.get('/api/v1/organizations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data], [mine.id])

    def test_admin_lists_all(self):
        TestDataFactory.create_organization(owner=self.user)
        TestDataFactory.create_organization()
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/organizations/')
        self.assertEqual(len(response.data), 2)

    def test_list_refreshes_after_create(self):
        self.assertEqual(self.client.get('/api/v1/organizations/').data, [])
        self.client.post('/api/v1/organizations/', {'name': 'Nueva'}, format='json')
        self.assertEqual(len(self.client.get('/api/v1/organizations/').data), 1)

    def test_foreign_organization_is_hidden(self):
        other = TestDataFactory.create_organization()
        response = self.client.get(f'/api/v1/organizations/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update(self):
        organization = TestDataFactory.create_organization(owner=self.user)
        response = self.client.patch(f'/api/v1/organizations/{organization.id}/', {'name': 'Renombrada'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Renombrada')

    def test_only_admin_deletes(self):
        organization = TestDataFactory.create_organization(owner=self.user)
        response = self.client.delete(f'/api/v1/organizations/{organization.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/organizations/{organization.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Organization.objects.filter(pk=organization.id).exists())

    def test_members(self):
        member = TestDataFactory.create_user()
        organization = TestDataFactory.create_organization(owner=self.user, members=[member])
        response = self.client.get(f'/api/v1/organizations/{organization.id}/members/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['role'] for m in response.data], ['owner', 'member'])


class AccessTests(TestCase):
    """Rows are reachable through membership of their organization"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)
        self.foreign_project = TestDataFactory.create_project()

    def test_restrict_to_member(self):
        projects = restrict_to_member(Project.objects.all(), self.user, 'organization_id')
        self.assertEqual(list(projects), [self.project])

    def test_admin_reaches_everything(self):
        admin = TestDataFactory.create_admin()
        self.assertTrue(can_access_project(admin, self.foreign_project.id))
        self.assertEqual(get_owned_or_404(Project, self.foreign_project.id, admin, 'organization_id'), self.foreign_project)

    def test_foreign_row_is_404(self):
        self.assertFalse(can_access_project(self.user, self.foreign_project.id))
        with self.assertRaises(Http404):
            get_owned_or_404(Project, self.foreign_project.id, self.user, 'organization_id')


class TenantIsolationAPITests(TestCase):
    """A user of one organization cannot read or change another organization's data"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.own_project = TestDataFactory.create_project(organization=self.organization)

        self.victim = TestDataFactory.create_organization(name='Constructora Ajena')
        self.secret_project = TestDataFactory.create_project(organization=self.victim, name='Secret')
        self.hidden_contact = TestDataFactory.create_contact(organization=self.victim, first_name='Hidden')
        concepts = TestDataFactory.create_movement_concepts()
        self.movement = TestDataFactory.create_movement(self.secret_project, concepts['Pago de Cliente'])
        self.budget = TestDataFactory.create_budget(project=self.secret_project)
        self.site_log = TestDataFactory.create_site_log(project=self.secret_project)

        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_foreign_scope_in_query_string_is_404(self):
        for url, params in (
            ('/api/v1/projects/', {'organization_id': self.victim.id}),
            ('/api/v1/contacts/', {'organization_id': self.victim.id}),
            ('/api/v1/movements/', {'project_id': self.secret_project.id}),
            ('/api/v1/movements/summary/', {'project_id': self.secret_project.id}),
            ('/api/v1/budgets/', {'project_id': self.secret_project.id}),
            ('/api/v1/site-logs/', {'project_id': self.secret_project.id}),
            ('/api/v1/timeline-events/', {'project_id': self.secret_project.id}),
            ('/api/v1/calendar-events/', {'organization_id': self.victim.id}),
            ('/api/v1/stats/', {'organization_id': self.victim.id}),
        ):
            response = self.client.get(url, params)
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, url)

    def test_foreign_details_are_404(self):
        for url in (
            f'/api/v1/projects/{self.secret_project.id}/',
            f'/api/v1/contacts/{self.hidden_contact.id}/',
            f'/api/v1/contacts/{self.hidden_contact.id}/types/',
            f'/api/v1/movements/{self.movement.id}/',
            f'/api/v1/budgets/{self.budget.id}/',
            f'/api/v1/budgets/{self.budget.id}/tasks/',
            f'/api/v1/site-logs/{self.site_log.id}/',
        ):
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, url)

    def test_foreign_rows_cannot_be_deleted(self):
        for url in (
            f'/api/v1/contacts/{self.hidden_contact.id}/',
            f'/api/v1/projects/{self.secret_project.id}/',
            f'/api/v1/movements/{self.movement.id}/',
            f'/api/v1/site-logs/{self.site_log.id}/',
            f'/api/v1/budgets/{self.budget.id}/',
        ):
            response = self.client.delete(url)
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, url)
        self.assertTrue(Contact.objects.filter(pk=self.hidden_contact.id).exists())
        self.assertTrue(Project.objects.filter(pk=self.secret_project.id).exists())

    def test_foreign_rows_cannot_be_updated(self):
        response = self.client.patch(
            f'/api/v1/contacts/{self.hidden_contact.id}/', {'first_name': 'Cambiado'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.hidden_contact.refresh_from_db()
        self.assertEqual(self.hidden_contact.first_name, 'Hidden')

    def test_cannot_move_own_project_into_foreign_organization(self):
        response = self.client.patch(
            f'/api/v1/projects/{self.own_project.id}/', {'organization': self.victim.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.own_project.refresh_from_db()
        self.assertEqual(self.own_project.organization, self.organization)

    def test_cannot_create_inside_foreign_scope(self):
        response = self.client.post(
            '/api/v1/projects/', {'name': 'Intruso', 'organization': self.victim.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.post(
            '/api/v1/contacts/', {'first_name': 'Intruso', 'organization': self.victim.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.post(
            '/api/v1/budgets/', {'name': 'Intruso', 'project': str(self.secret_project.id)}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Project.objects.filter(name='Intruso').exists())
        self.assertFalse(Contact.objects.filter(first_name='Intruso').exists())

    def test_context_cannot_point_at_foreign_organization(self):
        response = self.client.patch('/api/v1/context/', {'organization_id': self.victim.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.patch('/api/v1/context/', {'project_id': self.secret_project.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertNotEqual(UserPreferences.objects.get(user=self.user).last_organization_id, self.victim.id)

    def test_unreachable_remembered_project_is_ignored(self):
        UserPreferences.objects.update_or_create(
            user=self.user,
            defaults={'last_organization_id': self.organization.id, 'last_project_id': self.secret_project.id},
        )
        response = self.client.get('/api/v1/movements/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_member_without_organization_sees_only_own_counters(self):
        TestDataFactory.create_project(organization=self.victim)
        response = self.client.get('/api/v1/projects/overview/', {'organization_id': self.organization.id})
        self.assertEqual(response.data['total_projects'], 1)
        UserPreferences.objects.update_or_create(user=self.user, defaults={'last_organization_id': None})
        response = self.client.get('/api/v1/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_projects'], 1)

    def test_admin_reaches_foreign_rows(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/projects/', {'organization_id': self.victim.id})
        self.assertEqual([p['name'] for p in response.data], ['Secret'])
        response = self.client.get(f'/api/v1/contacts/{self.hidden_contact.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
