import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count

from archub.core.services import ModelService
from .models import Budget, BudgetTask
from .serializers import BudgetSerializer, BudgetTaskSerializer

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


class BudgetsService(ModelService):
    model = Budget
    serializer_class = BudgetSerializer
    select_related = ('project', 'created_by')
    scope_fields = {'project_id': 'project_id', 'status': 'status'}
    label = 'presupuestos'
    not_found_message = 'Presupuesto no encontrado'

    def get_queryset(self):
        return super().get_queryset().annotate(task_count=Count('budget_tasks'))


class BudgetTasksService(ModelService):
    model = BudgetTask
    serializer_class = BudgetTaskSerializer
    ordering = ('created_at',)
    select_related = ('task__unit', 'task__category')
    scope_fields = {'budget_id': 'budget_id'}
    label = 'tareas del presupuesto'

    def summary(self, budget_id):
        """
        Budget rows with labor subtotal and share of the total.

        subtotal = unit_labor_price * quantity; percentage is 0 for every
        row when the total is 0.
        """
        rows = self.get_all(budget_id=budget_id)
        total = sum((Decimal(row['subtotal']) for row in rows), Decimal('0.00'))
        for row in rows:
            subtotal = Decimal(row['subtotal'])
            if total:
                row['percentage'] = float((subtotal * 100 / total).quantize(CENT, rounding=ROUND_HALF_UP))
            else:
                row['percentage'] = 0.0
        logger.debug(f"Budget {budget_id} summary: {len(rows)} rows, total {total}")
        return {'tasks': rows, 'total': str(total.quantize(CENT))}


budgets_service = BudgetsService()
budget_tasks_service = BudgetTasksService()
