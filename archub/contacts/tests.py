"""
Tests for contacts and contact types
"""
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.core.query_cache import CacheKey, Notification, query_client
from archub.contacts.models import Contact, ContactTypeLink
from archub.contacts.services import contacts_service, contact_types_service
from archub.contacts.workflows import save_contact
from archub.context.store import UserContextStore


class SaveContactTests(TestCase):
    """Contact form: contact row, type links, invalidation, notification"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.context = UserContextStore(user=self.user)
        self.context.set_user_context(organization_id=self.organization.id)
        self.client_type = TestDataFactory.create_contact_type('Cliente')
        self.supplier_type = TestDataFactory.create_contact_type('Proveedor')

    def test_create_contact_with_types(self):
        events = []
        on_close = mock.Mock(side_effect=lambda saved: events.append('close'))
        with mock.patch.object(query_client, 'invalidate', side_effect=lambda *key: events.append(key)):
            result = save_contact(
                self.context,
                {
                    'first_name': 'Juan',
                    'last_name': 'Pérez',
                    'email': 'juan@obra.com',
                    'contact_types': [str(self.client_type.id), str(self.supplier_type.id)],
                },
                on_close=on_close,
            )

        self.assertTrue(result.ok)
        self.assertEqual(result.notification, Notification('Contacto creado', 'El contacto ha sido creado exitosamente'))
        contact = Contact.objects.get(first_name='Juan')
        self.assertEqual(contact.organization, self.organization)
        self.assertEqual(
            set(contact.types.values_list('name', flat=True)), {'Cliente', 'Proveedor'}
        )
        self.assertEqual(events, [('contacts',), ('contact-types',), 'close'])
        on_close.assert_called_once()
        self.assertEqual(result.data['full_name'], 'Juan Pérez')

    def test_update_replaces_types(self):
        contact = TestDataFactory.create_contact(organization=self.organization, types=[self.client_type])
        result = save_contact(
            self.context,
            {'first_name': contact.first_name, 'contact_types': [str(self.supplier_type.id)]},
            contact=contact.id,
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.notification.title, 'Contacto actualizado')
        self.assertEqual(list(contact.types.values_list('name', flat=True)), ['Proveedor'])

    def test_unknown_type_rolls_back_contact(self):
        result = save_contact(
            self.context,
            {'first_name': 'Ana', 'contact_types': ['6f1d2c1e-8c6b-4b55-9d2e-4f9a2a1b0c00']},
        )
        self.assertFalse(result.ok)
        self.assertEqual(result.notification.variant, 'destructive')
        self.assertFalse(Contact.objects.filter(first_name='Ana').exists())

    def test_duplicate_type_ids_collapsed(self):
        contact = TestDataFactory.create_contact(organization=self.organization)
        contact_types_service.update_contact_types(contact.id, [self.client_type.id, str(self.client_type.id)])
        self.assertEqual(ContactTypeLink.objects.filter(contact=contact).count(), 1)

    def test_get_by_type(self):
        client = TestDataFactory.create_contact(organization=self.organization, types=[self.client_type])
        TestDataFactory.create_contact(organization=self.organization, types=[self.supplier_type])
        found = contacts_service.get_by_type(self.client_type.id, organization_id=self.organization.id)
        self.assertEqual([c['id'] for c in found], [client.id])


class ContactAPITests(TestCase):
    """Contact endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.contact_type = TestDataFactory.create_contact_type('Cliente')

    def test_list_scoped_to_organization(self):
        mine = TestDataFactory.create_contact(organization=self.organization)
        TestDataFactory.create_contact()
        response = self.client.get('/api/v1/contacts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['id'] for c in response.data], [mine.id])

    def test_create_then_list_refetches(self):
        self.assertEqual(self.client.get('/api/v1/contacts/').data, [])
        data = {'first_name': 'Juan', 'last_name': 'Pérez', 'contact_types': [str(self.contact_type.id)]}
        response = self.client.post('/api/v1/contacts/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['contact_types'][0]['name'], 'Cliente')
        listed = self.client.get('/api/v1/contacts/').data
        self.assertEqual([c['full_name'] for c in listed], ['Juan Pérez'])

    def test_create_requires_first_name(self):
        response = self.client.post('/api/v1/contacts/', {'last_name': 'Solo'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_by_type(self):
        tagged = TestDataFactory.create_contact(organization=self.organization, types=[self.contact_type])
        TestDataFactory.create_contact(organization=self.organization)
        response = self.client.get('/api/v1/contacts/', {'type': str(self.contact_type.id)})
        self.assertEqual([c['id'] for c in response.data], [tagged.id])

    def test_types_of_contact(self):
        contact = TestDataFactory.create_contact(organization=self.organization, types=[self.contact_type])
        response = self.client.get(f'/api/v1/contacts/{contact.id}/types/')
        self.assertEqual([t['name'] for t in response.data], ['Cliente'])

    def test_delete(self):
        contact = TestDataFactory.create_contact(organization=self.organization)
        response = self.client.delete(f'/api/v1/contacts/{contact.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Contact.objects.filter(pk=contact.id).exists())

    def test_contact_types_sorted_and_admin_only_create(self):
        TestDataFactory.create_contact_type('Arquitecto')
        response = self.client.get('/api/v1/contact-types/')
        self.assertEqual([t['name'] for t in response.data], ['Arquitecto', 'Cliente'])

        response = self.client.post('/api/v1/contact-types/', {'name': 'Proveedor'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/api/v1/contact-types/', {'name': 'Proveedor'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(query_client.get_query_data(CacheKey('contact-types')))
        response = self.client.get('/api/v1/contact-types/')
        self.assertEqual(len(response.data), 3)
