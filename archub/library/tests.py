"""
Tests for the library catalogs: units, category tree, materials and tasks
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.core.services import ServiceError
from archub.library.models import TaskCategory, Task, Unit
from archub.library.services import task_categories_service


class TaskCategoryTreeTests(TestCase):
    """Positions stay 1..n within each parent"""

    def setUp(self):
        cache.clear()
        self.root = TestDataFactory.create_task_category(name='Albañilería', code='01')
        self.first = TestDataFactory.create_task_category(name='Muros', parent=self.root)
        self.second = TestDataFactory.create_task_category(name='Revoques', parent=self.root)
        self.third = TestDataFactory.create_task_category(name='Contrapisos', parent=self.root)

    def _positions(self, parent):
        return list(TaskCategory.objects.filter(parent=parent).order_by('position').values_list('name', 'position'))

    def test_tree_nests_children_in_position_order(self):
        other_root = TestDataFactory.create_task_category(name='Instalaciones', code='02')
        tree = task_categories_service.get_tree()
        self.assertEqual([node['id'] for node in tree], [self.root.id, other_root.id])
        self.assertEqual([c['name'] for c in tree[0]['children']], ['Muros', 'Revoques', 'Contrapisos'])
        self.assertEqual(tree[1]['children'], [])

    def test_create_appends_to_level(self):
        created = task_categories_service.create({'code': '01.04', 'name': 'Cielorrasos', 'parent': self.root.id})
        self.assertEqual(created['position'], 4)
        created = task_categories_service.create({'code': '03', 'name': 'Pintura'})
        self.assertEqual(created['position'], 2)

    def test_move_within_level(self):
        task_categories_service.move(self.third.id, self.root.id, 1)
        self.assertEqual(self._positions(self.root), [('Contrapisos', 1), ('Muros', 2), ('Revoques', 3)])

    def test_move_to_other_parent_renumbers_both_levels(self):
        target = TestDataFactory.create_task_category(name='Instalaciones', code='02')
        moved = task_categories_service.move(self.first.id, target.id)
        self.assertEqual(moved['parent'], target.id)
        self.assertEqual(moved['position'], 1)
        self.assertEqual(self._positions(self.root), [('Revoques', 1), ('Contrapisos', 2)])

    def test_move_to_root(self):
        task_categories_service.move(self.second.id, None, 1)
        self.assertEqual(self._positions(None), [('Revoques', 1), ('Albañilería', 2)])

    def test_cannot_move_under_own_descendant(self):
        with self.assertRaises(ServiceError):
            task_categories_service.move(self.root.id, self.first.id)
        self.root.refresh_from_db()
        self.assertIsNone(self.root.parent_id)

    def test_delete_renumbers_siblings(self):
        task_categories_service.delete(self.first.id)
        self.assertEqual(self._positions(self.root), [('Revoques', 1), ('Contrapisos', 2)])

    def test_delete_with_children_refused(self):
        with self.assertRaises(ServiceError):
            task_categories_service.delete(self.root.id)
        self.assertTrue(TaskCategory.objects.filter(pk=self.root.id).exists())


class LibraryAPITests(TestCase):
    """Catalog endpoints: everyone reads, admins write"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_units_listed_newest_first(self):
        TestDataFactory.create_unit('m2')
        TestDataFactory.create_unit('kg')
        response = self.client.get('/api/v1/units/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['name'] for u in response.data], ['kg', 'm2'])

    def test_non_admin_cannot_write(self):
        response = self.client.post('/api/v1/units/', {'name': 'm3'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        unit = TestDataFactory.create_unit('m3')
        response = self.client.delete(f'/api/v1/units/{unit.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_unit_and_list_refetches(self):
        self.client.authenticate_user(self.admin)
        self.assertEqual(self.client.get('/api/v1/units/').data, [])
        response = self.client.post('/api/v1/units/', {'name': 'ml'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([u['name'] for u in self.client.get('/api/v1/units/').data], ['ml'])

    def test_duplicate_unit_rejected(self):
        TestDataFactory.create_unit('m2')
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/units/', {'name': 'm2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Unit.objects.filter(name='m2').count(), 1)

    def test_category_tree_endpoint(self):
        root = TestDataFactory.create_task_category(name='Estructura', code='01')
        TestDataFactory.create_task_category(name='Columnas', parent=root)
        response = self.client.get('/api/v1/task-categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['children'][0]['name'], 'Columnas')

    def test_move_endpoint(self):
        root = TestDataFactory.create_task_category(name='Estructura', code='01')
        child = TestDataFactory.create_task_category(name='Columnas', parent=root)
        self.client.authenticate_user(self.admin)
        response = self.client.post(
            f'/api/v1/task-categories/{root.id}/move/', {'parent': child.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['notification']['variant'], 'destructive')

        response = self.client.post(f'/api/v1/task-categories/{child.id}/move/', {'parent': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['parent'])
        self.assertEqual(response.data['position'], 2)

    def test_delete_category_with_children_is_400(self):
        root = TestDataFactory.create_task_category(name='Estructura', code='01')
        TestDataFactory.create_task_category(name='Columnas', parent=root)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/task-categories/{root.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_task_with_materials(self):
        unit = TestDataFactory.create_unit('m2')
        material = TestDataFactory.create_material(name='Cemento', unit=unit)
        self.client.authenticate_user(self.admin)
        data = {
            'name': 'Revoque grueso',
            'unit_labor_price': '1200.00',
            'unit_material_price': '800.00',
            'unit': unit.id,
            'materials': [{'material': material.id, 'quantity': '0.250'}],
        }
        response = self.client.post('/api/v1/tasks/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['unit_price']), Decimal('2000.00'))
        self.assertEqual(response.data['materials'][0]['material_name'], 'Cemento')
        self.assertEqual(Task.objects.get(name='Revoque grueso').task_materials.count(), 1)

    def test_tasks_filtered_by_category(self):
        category = TestDataFactory.create_task_category(name='Pintura', code='05')
        painted = TestDataFactory.create_task(category=category)
        TestDataFactory.create_task()
        response = self.client.get('/api/v1/tasks/', {'category': category.id})
        self.assertEqual([t['id'] for t in response.data], [painted.id])

    def test_missing_task_is_404(self):
        response = self.client.get('/api/v1/tasks/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
