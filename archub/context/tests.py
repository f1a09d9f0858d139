"""
Tests for the user context store, navigation store and typed events
"""
from dataclasses import FrozenInstanceError

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from archub.core.query_cache import CacheKey, Entity, query_client
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.context.events import (
    EventDispatcher, NavigateToSection, OpenCreateModal, Shell, parse_message
)
from archub.context.models import UserPreferences
from archub.context.navigation import (
    NavigationStore, Section, View, SECTION_DEFAULT_VIEW, section_for_view
)
from archub.context.store import UserContext, UserContextStore


class UserContextStoreTests(TestCase):
    """Merge, persistence and bootstrap of the user context"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)

    def test_merge_keeps_unnamed_fields(self):
        store = UserContextStore(user=self.user)
        store.set_user_context(organization_id=self.organization.id)
        state = store.set_user_context(project_id=self.project.id)
        self.assertEqual(state.organization_id, self.organization.id)
        self.assertEqual(state.project_id, self.project.id)
        self.assertIsNone(state.budget_id)

    def test_merge_is_idempotent(self):
        store = UserContextStore(user=self.user)
        first = store.set_user_context(organization_id=self.organization.id, project_id=self.project.id)
        second = store.set_user_context(organization_id=self.organization.id, project_id=self.project.id)
        self.assertEqual(first, second)

    def test_state_is_immutable(self):
        store = UserContextStore(user=self.user)
        state = store.get_state()
        with self.assertRaises(FrozenInstanceError):
            state.organization_id = 5
        self.assertIsInstance(state, UserContext)

    def test_unknown_field_rejected(self):
        store = UserContextStore(user=self.user)
        with self.assertRaises(TypeError):
            store.set_user_context(org_id=1)

    def test_project_outside_organization_is_tolerated(self):
        other_project = TestDataFactory.create_project()
        store = UserContextStore(user=self.user)
        state = store.set_user_context(organization_id=self.organization.id, project_id=other_project.id)
        self.assertEqual(state.project_id, other_project.id)

    def test_subscribers_notified_synchronously(self):
        store = UserContextStore(user=self.user)
        calls = []
        unsubscribe = store.subscribe(lambda state, previous: calls.append((previous.project_id, state.project_id)))
        store.set_user_context(project_id=self.project.id)
        self.assertEqual(calls, [(None, self.project.id)])
        unsubscribe()
        store.set_user_context(project_id=None)
        self.assertEqual(len(calls), 1)

    def test_mutation_persists_ids(self):
        store = UserContextStore(user=self.user)
        store.set_user_context(organization_id=self.organization.id, project_id=self.project.id)
        prefs = UserPreferences.objects.get(user=self.user)
        self.assertEqual(prefs.last_organization_id, self.organization.id)
        self.assertEqual(prefs.last_project_id, self.project.id)

    def test_hydrate_restores_persisted_ids(self):
        UserContextStore(user=self.user).set_user_context(
            organization_id=self.organization.id, project_id=self.project.id
        )
        store = UserContextStore.for_user(self.user)
        self.assertEqual(store.get_state().organization_id, self.organization.id)
        self.assertEqual(store.get_state().project_id, self.project.id)

    def test_hydrate_falls_back_to_first_membership(self):
        store = UserContextStore.for_user(self.user)
        self.assertEqual(store.get_state().organization_id, self.organization.id)
        self.assertTrue(UserPreferences.objects.filter(user=self.user).exists())

    def test_refresh_data_loads_organization_and_projects(self):
        store = UserContextStore(user=self.user)
        store.set_user_context(organization_id=self.organization.id)
        state = store.refresh_data()
        self.assertEqual(state.organization['name'], self.organization.name)
        self.assertEqual([p['id'] for p in state.current_projects], [self.project.id])

    def test_refresh_without_organization_is_noop(self):
        store = UserContextStore(user=self.user)
        self.assertEqual(store.refresh_data(), UserContext())

    def test_clear(self):
        store = UserContextStore(user=self.user)
        store.set_user_context(organization_id=self.organization.id, project_id=self.project.id)
        self.assertEqual(store.clear(), UserContext())
        prefs = UserPreferences.objects.get(user=self.user)
        self.assertIsNone(prefs.last_project_id)


class NavigationStoreTests(TestCase):
    """Section and view always agree"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()

    def test_set_section_selects_default_view(self):
        store = NavigationStore(user=self.user)
        state = store.set_section('movements')
        self.assertEqual(state.current_section, Section.MOVEMENTS)
        self.assertEqual(state.current_view, View.MOVEMENTS_MAIN)

    def test_set_view_derives_section(self):
        store = NavigationStore(user=self.user)
        state = store.set_view('admin-tasks')
        self.assertEqual(state.current_section, Section.ADMIN_LIBRARY)
        state = store.set_view('sitelog-main')
        self.assertEqual(state.current_section, Section.BUDGETS)

    def test_navigate_rejects_foreign_view(self):
        store = NavigationStore(user=self.user)
        before = store.get_state()
        with self.assertRaises(ValueError):
            store.navigate('contacts', 'movements-main')
        self.assertEqual(store.get_state(), before)

    def test_every_default_view_belongs_to_its_section(self):
        for section, view in SECTION_DEFAULT_VIEW.items():
            self.assertEqual(section_for_view(view), section)

    def test_navigation_persisted_and_restored(self):
        NavigationStore(user=self.user).navigate('budgets', 'budgets-list')
        restored = NavigationStore.for_user(self.user)
        self.assertEqual(restored.get_state().current_view, View.BUDGETS_LIST)
        self.assertEqual(restored.get_state().current_section, Section.BUDGETS)

    def test_subscribers_see_both_fields_change_together(self):
        store = NavigationStore(user=self.user)
        seen = []
        store.subscribe(lambda state, previous: seen.append(state))
        store.navigate('contacts')
        self.assertEqual(len(seen), 1)
        self.assertEqual(section_for_view(seen[0].current_view), seen[0].current_section)


class EventDispatcherTests(TestCase):
    """Typed messages and the shell listener"""

    def setUp(self):
        cache.clear()
        self.dispatcher = EventDispatcher()
        self.navigation = NavigationStore()

    def test_publish_without_listener_returns_zero(self):
        self.assertEqual(self.dispatcher.publish(OpenCreateModal('contact')), 0)

    def test_shell_applies_navigation(self):
        shell = Shell(self.navigation, self.dispatcher)
        delivered = self.dispatcher.publish(NavigateToSection('movements', 'movements-main'))
        self.assertEqual(delivered, 1)
        self.assertEqual(self.navigation.get_state().current_section, Section.MOVEMENTS)
        shell.close()

    def test_shell_records_pending_modal_last_write_wins(self):
        shell = Shell(self.navigation, self.dispatcher)
        self.dispatcher.publish(OpenCreateModal('contact'))
        self.dispatcher.publish(OpenCreateModal('movement'))
        self.assertEqual(shell.pending_modal, 'movement')

    def test_closed_shell_no_longer_listens(self):
        shell = Shell(self.navigation, self.dispatcher)
        shell.close()
        self.assertEqual(self.dispatcher.publish(OpenCreateModal('contact')), 0)

    def test_unknown_modal_entity_rejected(self):
        with self.assertRaises(ValueError):
            OpenCreateModal('spaceship')

    def test_publish_rejects_untyped_payload(self):
        with self.assertRaises(TypeError):
            self.dispatcher.publish({'type': 'open-create-modal'})

    def test_parse_message(self):
        message = parse_message({'type': 'navigate-to-section', 'detail': {'section': 'contacts'}})
        self.assertEqual(message, NavigateToSection('contacts'))
        with self.assertRaises(ValueError):
            parse_message({'type': 'unknown'})
        with self.assertRaises(ValueError):
            parse_message({'type': 'open-create-modal', 'detail': {'kind': 'contact'}})


class ContextAPITests(TestCase):
    """Context, navigation and event endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)

    def test_get_context_bootstraps_from_membership(self):
        response = self.client.get('/api/v1/context/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['organization_id'], self.organization.id)
        self.assertEqual(response.data['organization']['name'], self.organization.name)
        self.assertEqual(len(response.data['current_projects']), 1)

    def test_patch_context(self):
        response = self.client.patch('/api/v1/context/', {'project_id': self.project.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['project_id'], self.project.id)
        self.assertEqual(response.data['organization_id'], self.organization.id)
        self.assertEqual(response.data['preferences']['last_project_id'], self.project.id)

    def test_patch_context_rejects_bad_id(self):
        response = self.client.patch('/api/v1/context/', {'project_id': 'abc'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_navigation_endpoint(self):
        response = self.client.post('/api/v1/context/navigation/', {'section': 'contacts'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'section': 'contacts', 'view': 'contacts'})

        response = self.client.post(
            '/api/v1/context/navigation/', {'section': 'contacts', 'view': 'admin-tasks'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/context/navigation/')
        self.assertEqual(response.data['section'], 'contacts')

    def test_publish_event(self):
        response = self.client.post(
            '/api/v1/events/',
            {'type': 'open-create-modal', 'detail': {'entity': 'site-log'}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['delivered'], 1)
        self.assertEqual(response.data['pending_modal'], 'site-log')

    def test_publish_unknown_event(self):
        response = self.client.post('/api/v1/events/', {'type': 'reload'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/context/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_window_focus_refetches_current_scope(self):
        own = CacheKey(Entity.CONTACTS, self.organization.id)
        other = CacheKey(Entity.CONTACTS, self.organization.id + 1000)
        query_client.query(own, lambda: ['propio'])
        query_client.query(other, lambda: ['ajeno'])

        response = self.client.post('/api/v1/context/focus/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertGreaterEqual(response.data['invalidated'], 1)
        self.assertIsNone(query_client.get_query_data(own))
        self.assertEqual(query_client.get_query_data(other), ['ajeno'])
