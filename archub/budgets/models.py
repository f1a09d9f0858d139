import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from archub.core.models import User
from archub.projects.models import Project
from archub.library.models import Task


class Budget(models.Model):
    """Named set of catalog tasks with quantities for one project"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('approved', 'Approved'),
        ('archived', 'Archived'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='budgets')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='budgets')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.project})"

    class Meta:
        db_table = 'budgets'
        ordering = ['-created_at']
        verbose_name = 'presupuesto'
        verbose_name_plural = 'presupuestos'


class BudgetTask(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    budget = models.ForeignKey(Budget, on_delete=models.CASCADE, related_name='budget_tasks')
    task = models.ForeignKey(Task, on_delete=models.PROTECT, related_name='budget_tasks')
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('1.000'), validators=[MinValueValidator(0)])
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.budget.name} - {self.task.name} x {self.quantity}"

    def get_subtotal(self):
        return (self.task.unit_labor_price or Decimal('0.00')) * self.quantity

    class Meta:
        db_table = 'budget_tasks'
        ordering = ['created_at']
        verbose_name = 'tarea de presupuesto'
        verbose_name_plural = 'tareas de presupuesto'
        unique_together = [('budget', 'task')]
