"""
Tests for movements, their currency totals, concepts and wallets
"""
from datetime import datetime
from decimal import Decimal
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.core.models import Activity
from archub.context.store import UserContextStore
from archub.finances.models import Movement, MovementConcept
from archub.finances.services import movements_service, wallets_service
from archub.finances.summary import totals_by_currency
from archub.finances.workflows import normalize_movement_form, save_movement
from archub.finances.management.commands.seed_movement_concepts import DEFAULT_CONCEPTS


def local(year, month, day, hour=12):
    return timezone.make_aware(datetime(year, month, day, hour))


class TotalsByCurrencyTests(TestCase):
    """Balance = ingresos - egresos + ajustes, per currency"""

    def test_totals_and_balance(self):
        rows = [
            {'currency': 'ARS', 'amount': '1000.00', 'type_name': 'Ingresos'},
            {'currency': 'ARS', 'amount': '250.50', 'type_name': 'Egresos'},
            {'currency': 'ARS', 'amount': '-20.00', 'type_name': 'Ajustes'},
            {'currency': 'USD', 'amount': '300.00', 'type_name': 'Ingresos'},
        ]
        totals = totals_by_currency(rows)
        self.assertEqual(totals['ARS']['ingresos'], Decimal('1000.00'))
        self.assertEqual(totals['ARS']['egresos'], Decimal('250.50'))
        self.assertEqual(totals['ARS']['balance'], Decimal('729.50'))
        self.assertEqual(totals['USD']['balance'], Decimal('300.00'))

    def test_singular_and_case_insensitive_type_names(self):
        totals = totals_by_currency([
            {'currency': 'USD', 'amount': '10', 'type_name': 'egreso'},
            {'currency': 'USD', 'amount': '5', 'type_name': ' AJUSTE '},
        ])
        self.assertEqual(totals['USD']['egresos'], Decimal('10'))
        self.assertEqual(totals['USD']['balance'], Decimal('-5'))

    def test_unknown_rows_skipped(self):
        totals = totals_by_currency([
            {'currency': 'EUR', 'amount': '10', 'type_name': 'Ingresos'},
            {'currency': 'ARS', 'amount': '10', 'type_name': 'Préstamos'},
            {'currency': 'ARS', 'amount': None, 'type_name': 'Ingresos'},
        ])
        self.assertEqual(set(totals), {'ARS', 'USD'})
        self.assertEqual(totals['ARS']['balance'], Decimal('0.00'))

    def test_empty(self):
        totals = totals_by_currency([])
        self.assertEqual(totals['ARS'], {
            'ingresos': Decimal('0.00'), 'egresos': Decimal('0.00'),
            'ajustes': Decimal('0.00'), 'balance': Decimal('0.00'),
        })


class MovementFilterTests(TestCase):
    """Search, currency, type and date range narrow the movement list"""

    def setUp(self):
        cache.clear()
        self.project = TestDataFactory.create_project()
        self.concepts = TestDataFactory.create_movement_concepts()
        self.payment = TestDataFactory.create_movement(
            self.project, self.concepts['Pago de Cliente'], Decimal('5000.00'),
            description='Anticipo cliente', created_at_local=local(2024, 5, 1),
        )
        self.cement = TestDataFactory.create_movement(
            self.project, self.concepts['Materiales de Construcción'], Decimal('1200.00'),
            description='Cemento', created_at_local=local(2024, 5, 10),
        )
        self.dollars = TestDataFactory.create_movement(
            self.project, self.concepts['Pago de Cliente'], Decimal('300.00'), currency='USD',
            created_at_local=local(2024, 6, 2),
        )

    def _ids(self, params):
        return [row['id'] for row in movements_service.filter(params, project_id=self.project.id)]

    def test_newest_first(self):
        self.assertEqual(self._ids({}), [str(self.dollars.id), str(self.cement.id), str(self.payment.id)])

    def test_search_description_concept_and_amount(self):
        self.assertEqual(self._ids({'search': 'cemento'}), [str(self.cement.id)])
        self.assertEqual(self._ids({'search': 'materiales'}), [str(self.cement.id)])
        self.assertEqual(self._ids({'search': 'egresos'}), [str(self.cement.id)])
        self.assertEqual(self._ids({'search': '1200'}), [str(self.cement.id)])

    def test_currency(self):
        self.assertEqual(self._ids({'currency': 'USD'}), [str(self.dollars.id)])

    def test_type(self):
        self.assertEqual(
            self._ids({'type': str(self.concepts['Ingresos'].id)}),
            [str(self.dollars.id), str(self.payment.id)],
        )

    def test_date_range_inclusive(self):
        self.assertEqual(
            self._ids({'date_from': '2024-05-01', 'date_to': '2024-05-10'}),
            [str(self.cement.id), str(self.payment.id)],
        )

    def test_invalid_filter_rejected(self):
        with self.assertRaises(ValidationError) as raised:
            self._ids({'currency': 'EUR'})
        self.assertIn('currency', raised.exception.detail)
        with self.assertRaises(ValidationError):
            movements_service.summary({'date_from': '2024-13-45'}, project_id=self.project.id)

    def test_other_projects_excluded(self):
        TestDataFactory.create_movement(TestDataFactory.create_project(), self.concepts['Corrección'])
        self.assertEqual(len(self._ids({})), 3)

    def test_summary_follows_filters(self):
        summary = movements_service.summary({'date_to': '2024-05-31'}, project_id=self.project.id)
        self.assertEqual(summary['count'], 2)
        self.assertEqual(summary['totals']['ARS']['balance'], Decimal('3800.00'))
        self.assertEqual(summary['totals']['USD']['balance'], Decimal('0.00'))


class SaveMovementTests(TestCase):
    """Movement form submission"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)
        self.context = UserContextStore(user=self.user)
        self.context.set_user_context(organization_id=self.organization.id, project_id=self.project.id)
        self.concepts = TestDataFactory.create_movement_concepts()

    def test_normalize_form(self):
        values = normalize_movement_form(
            {'created_at_local': '2024-05-02', 'wallet': '', 'related_contact': ''}, project_id=7
        )
        self.assertEqual(values['created_at_local'], '2024-05-02T00:00:00')
        self.assertIsNone(values['wallet'])
        self.assertIsNone(values['related_contact'])
        self.assertEqual(values['project'], 7)

        values = normalize_movement_form({'created_at_local': '2024-05-02T15:30:00', 'project': 3}, project_id=7)
        self.assertEqual(values['created_at_local'], '2024-05-02T15:30:00')
        self.assertEqual(values['project'], 3)

    def test_create_in_current_project(self):
        result = save_movement(
            self.context,
            {
                'concept': str(self.concepts['Pago de Cliente'].id),
                'amount': '15000.00',
                'currency': 'ARS',
                'created_at_local': '2024-05-02',
            },
            user=self.user,
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.notification.title, 'Movimiento creado')
        self.assertEqual(result.data['type_name'], 'Ingresos')
        self.assertEqual(result.data['parent_concept_name'], 'Ingresos')
        movement = Movement.objects.get(pk=result.data['id'])
        self.assertEqual(movement.project, self.project)
        self.assertEqual(timezone.localtime(movement.created_at_local).date().isoformat(), '2024-05-02')
        self.assertTrue(Activity.objects.filter(type='movement_created', project=self.project).exists())

    def test_root_concept_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            save_movement(
                self.context,
                {'concept': str(self.concepts['Egresos'].id), 'amount': '10', 'created_at_local': '2024-05-02'},
                user=self.user,
            )
        self.assertIn('concept', ctx.exception.detail)
        self.assertFalse(Movement.objects.exists())

    def test_update(self):
        movement = TestDataFactory.create_movement(self.project, self.concepts['Pago de Cliente'])
        result = save_movement(self.context, {'amount': '99.90'}, movement=movement.id, user=self.user)
        self.assertTrue(result.ok)
        self.assertEqual(result.notification.title, 'Movimiento actualizado')
        movement.refresh_from_db()
        self.assertEqual(movement.amount, Decimal('99.90'))


class MovementAPITests(TestCase):
    """Movement, concept and wallet endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)
        UserContextStore(user=self.user).set_user_context(
            organization_id=self.organization.id, project_id=self.project.id
        )
        self.concepts = TestDataFactory.create_movement_concepts()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_refetched_after_create(self):
        self.assertEqual(self.client.get('/api/v1/movements/').data, [])
        data = {
            'concept': str(self.concepts['Materiales de Construcción'].id),
            'amount': '450.00',
            'currency': 'USD',
            'created_at_local': '2024-07-01',
        }
        response = self.client.post('/api/v1/movements/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        listed = self.client.get('/api/v1/movements/').data
        self.assertEqual([row['type_name'] for row in listed], ['Egresos'])

    def test_filtered_lists_cached_separately(self):
        TestDataFactory.create_movement(self.project, self.concepts['Pago de Cliente'], currency='ARS')
        TestDataFactory.create_movement(self.project, self.concepts['Pago de Cliente'], currency='USD')
        self.assertEqual(len(self.client.get('/api/v1/movements/').data), 2)
        self.assertEqual(len(self.client.get('/api/v1/movements/', {'currency': 'USD'}).data), 1)

    def test_summary(self):
        TestDataFactory.create_movement(self.project, self.concepts['Pago de Cliente'], Decimal('1000.00'))
        TestDataFactory.create_movement(self.project, self.concepts['Materiales de Construcción'], Decimal('400.00'))
        response = self.client.get('/api/v1/movements/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(Decimal(response.data['totals']['ARS']['balance']), Decimal('600.00'))

    def test_non_numeric_project_id_is_400(self):
        response = self.client.get('/api/v1/movements/', {'project_id': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('project_id', response.data)
        response = self.client.get('/api/v1/movements/summary/', {'project_id': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_filters_are_400(self):
        TestDataFactory.create_movement(self.project, self.concepts['Pago de Cliente'], Decimal('1000.00'))
        response = self.client.get('/api/v1/movements/', {'currency': 'EUR'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('currency', response.data)
        response = self.client.get('/api/v1/movements/summary/', {'date_to': 'ayer'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('date_to', response.data)

    def test_summary_without_project(self):
        UserContextStore(user=self.user).set_user_context(project_id=None)
        response = self.client.get('/api/v1/movements/summary/')
        self.assertEqual(response.data, {'count': 0, 'totals': {}})

    def test_delete(self):
        movement = TestDataFactory.create_movement(self.project, self.concepts['Corrección'])
        response = self.client.delete(f'/api/v1/movements/{movement.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Movement.objects.filter(pk=movement.id).exists())

    def test_concepts_by_type(self):
        response = self.client.get('/api/v1/movement-concepts/', {'types': '1'})
        self.assertEqual([c['name'] for c in response.data], ['Ajustes', 'Egresos', 'Ingresos'])

        response = self.client.get('/api/v1/movement-concepts/', {'type': str(self.concepts['Ingresos'].id)})
        self.assertEqual([c['name'] for c in response.data], ['Pago de Cliente'])

    def test_only_admin_creates_concepts(self):
        data = {'name': 'Alquiler', 'parent': str(self.concepts['Egresos'].id)}
        response = self.client.post('/api/v1/movement-concepts/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_wallets_for_organization(self):
        TestDataFactory.create_wallet('Caja', organization=self.organization, is_default=True)
        TestDataFactory.create_wallet('Banco', organization=self.organization)
        TestDataFactory.create_wallet('Ajena', organization=TestDataFactory.create_organization())
        TestDataFactory.create_wallet('Cerrada', organization=self.organization, is_active=False)
        response = self.client.get('/api/v1/wallets/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([(w['name'], w['is_default']) for w in response.data], [('Banco', False), ('Caja', True)])

    def test_wallets_without_organization(self):
        TestDataFactory.create_wallet('Caja')
        self.assertEqual([w['name'] for w in wallets_service.get_all()], ['Caja'])


class SeedMovementConceptsCommandTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_seed_is_idempotent(self):
        expected = len(DEFAULT_CONCEPTS) + sum(len(names) for names in DEFAULT_CONCEPTS.values())
        call_command('seed_movement_concepts', stdout=StringIO())
        self.assertEqual(MovementConcept.objects.count(), expected)
        call_command('seed_movement_concepts', stdout=StringIO())
        self.assertEqual(MovementConcept.objects.count(), expected)
        self.assertEqual(MovementConcept.objects.filter(parent__isnull=True).count(), 3)

    def test_clear_keeps_concepts_in_use(self):
        concepts = TestDataFactory.create_movement_concepts()
        custom = MovementConcept.objects.create(name='Alquiler', parent=concepts['Egresos'])
        TestDataFactory.create_movement(TestDataFactory.create_project(), concepts['Corrección'])
        call_command('seed_movement_concepts', '--clear', stdout=StringIO())
        self.assertFalse(MovementConcept.objects.filter(pk=custom.pk).exists())
        self.assertTrue(MovementConcept.objects.filter(pk=concepts['Corrección'].pk).exists())
