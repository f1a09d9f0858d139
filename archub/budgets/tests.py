"""
Tests for budgets and the budget task summary
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.budgets.models import Budget, BudgetTask
from archub.budgets.services import budgets_service, budget_tasks_service
from archub.context.models import UserPreferences
from archub.context.store import UserContextStore


class BudgetSummaryTests(TestCase):
    """Subtotals are labor price times quantity; percentages share the total"""

    def setUp(self):
        cache.clear()
        self.budget = TestDataFactory.create_budget()

    def test_subtotals_percentages_and_total(self):
        walls = TestDataFactory.create_task(name='Muros', unit_labor_price=Decimal('100.00'))
        plaster = TestDataFactory.create_task(name='Revoque', unit_labor_price=Decimal('50.00'))
        TestDataFactory.create_budget_task(self.budget, walls, Decimal('3.000'))
        TestDataFactory.create_budget_task(self.budget, plaster, Decimal('2.000'))

        summary = budget_tasks_service.summary(self.budget.id)
        self.assertEqual(summary['total'], '400.00')
        rows = {row['task_name']: row for row in summary['tasks']}
        self.assertEqual(Decimal(rows['Muros']['subtotal']), Decimal('300.00'))
        self.assertEqual(rows['Muros']['percentage'], 75.0)
        self.assertEqual(rows['Revoque']['percentage'], 25.0)

    def test_material_price_not_in_subtotal(self):
        task = TestDataFactory.create_task(unit_labor_price=Decimal('10.00'), unit_material_price=Decimal('90.00'))
        TestDataFactory.create_budget_task(self.budget, task, Decimal('2.000'))
        summary = budget_tasks_service.summary(self.budget.id)
        self.assertEqual(summary['total'], '20.00')

    def test_zero_total_gives_zero_percentages(self):
        free = TestDataFactory.create_task(unit_labor_price=Decimal('0.00'))
        TestDataFactory.create_budget_task(self.budget, free, Decimal('5.000'))
        summary = budget_tasks_service.summary(self.budget.id)
        self.assertEqual(summary['total'], '0.00')
        self.assertEqual([row['percentage'] for row in summary['tasks']], [0.0])

    def test_empty_budget(self):
        self.assertEqual(budget_tasks_service.summary(self.budget.id), {'tasks': [], 'total': '0.00'})

    def test_task_count_annotation(self):
        TestDataFactory.create_budget_task(self.budget)
        TestDataFactory.create_budget_task(self.budget)
        self.assertEqual(budgets_service.get(self.budget.id)['task_count'], 2)


class BudgetAPITests(TestCase):
    """Budget endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)
        self.context = UserContextStore(user=self.user)
        self.context.set_user_context(organization_id=self.organization.id, project_id=self.project.id)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_disabled_without_project(self):
        TestDataFactory.create_budget(project=self.project)
        self.context.set_user_context(project_id=None)
        response = self.client.get('/api/v1/budgets/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_create_uses_current_project_and_selects_budget(self):
        response = self.client.post('/api/v1/budgets/', {'name': 'Presupuesto inicial'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        budget = Budget.objects.get(name='Presupuesto inicial')
        self.assertEqual(budget.project, self.project)
        self.assertEqual(budget.created_by, self.user)
        self.assertEqual(UserPreferences.objects.get(user=self.user).last_budget_id, budget.id)
        listed = self.client.get('/api/v1/budgets/').data
        self.assertEqual([b['name'] for b in listed], ['Presupuesto inicial'])

    def test_add_task_and_read_summary(self):
        budget = TestDataFactory.create_budget(project=self.project)
        task = TestDataFactory.create_task(unit_labor_price=Decimal('250.00'))
        self.assertEqual(self.client.get(f'/api/v1/budgets/{budget.id}/tasks/').data['total'], '0.00')

        response = self.client.post(
            f'/api/v1/budgets/{budget.id}/tasks/', {'task': task.id, 'quantity': '4'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f'/api/v1/budgets/{budget.id}/tasks/')
        self.assertEqual(response.data['total'], '1000.00')
        self.assertEqual(response.data['tasks'][0]['percentage'], 100.0)

    def test_same_task_twice_rejected(self):
        budget = TestDataFactory.create_budget(project=self.project)
        task = TestDataFactory.create_task()
        TestDataFactory.create_budget_task(budget, task)
        response = self.client.post(f'/api/v1/budgets/{budget.id}/tasks/', {'task': task.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(BudgetTask.objects.filter(budget=budget).count(), 1)

    def test_change_quantity_and_remove_row(self):
        budget = TestDataFactory.create_budget(project=self.project)
        row = TestDataFactory.create_budget_task(budget, TestDataFactory.create_task(unit_labor_price=Decimal('10.00')))
        response = self.client.patch(f'/api/v1/budget-tasks/{row.id}/', {'quantity': '7.5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['subtotal']), Decimal('75.00'))

        response = self.client.delete(f'/api/v1/budget-tasks/{row.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f'/api/v1/budgets/{budget.id}/tasks/').data['tasks'], [])

    def test_delete_selected_budget_clears_context(self):
        budget = TestDataFactory.create_budget(project=self.project)
        self.context.set_user_context(budget_id=budget.id)
        response = self.client.delete(f'/api/v1/budgets/{budget.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertIsNone(UserPreferences.objects.get(user=self.user).last_budget_id)
