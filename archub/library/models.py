from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Unit(models.Model):
    """Unit of measure (m2, m3, kg, jornal, ...)"""
    name = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'units'
        ordering = ['-id']
        verbose_name = 'unidad'
        verbose_name_plural = 'unidades'


class Action(models.Model):
    """Work verb used to compose task names (construir, demoler, ...)"""
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'actions'
        ordering = ['-created_at', '-id']
        verbose_name = 'acción'
        verbose_name_plural = 'acciones'


class TaskCategory(models.Model):
    """Node of the task category tree; siblings are ordered by position"""
    code = models.CharField(max_length=20)
    name = models.CharField(max_length=200)
    position = models.PositiveIntegerField(default=1)
    parent = models.ForeignKey('self', on_delete=models.PROTECT, null=True, blank=True, related_name='children')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.code} {self.name}"

    class Meta:
        db_table = 'task_categories'
        ordering = ['position', 'id']
        verbose_name = 'categoría'
        verbose_name_plural = 'categorías'
        indexes = [
            models.Index(fields=['parent', 'position'], name='task_cat_parent_pos_idx'),
        ]


class MaterialCategory(models.Model):
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'material_categories'
        ordering = ['name']
        verbose_name = 'categoría de material'
        verbose_name_plural = 'categorías de material'


class Material(models.Model):
    name = models.CharField(max_length=200)
    unit = models.ForeignKey(Unit, on_delete=models.PROTECT, null=True, blank=True, related_name='materials')
    category = models.ForeignKey(MaterialCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='materials')
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)])
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'materials'
        ordering = ['-created_at', '-id']
        verbose_name = 'material'
        verbose_name_plural = 'materiales'


class Task(models.Model):
    """Catalog task with unit labor and material prices"""
    name = models.CharField(max_length=255)
    unit_labor_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)])
    unit_material_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)])
    category = models.ForeignKey(TaskCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='category_tasks')
    subcategory = models.ForeignKey(TaskCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='subcategory_tasks')
    element_category = models.ForeignKey(TaskCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='element_tasks')
    unit = models.ForeignKey(Unit, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    materials = models.ManyToManyField(Material, through='TaskMaterial', related_name='tasks', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def get_unit_price(self):
        return (self.unit_labor_price or Decimal('0.00')) + (self.unit_material_price or Decimal('0.00'))

    class Meta:
        db_table = 'tasks'
        ordering = ['-created_at', '-id']
        verbose_name = 'tarea'
        verbose_name_plural = 'tareas'


class TaskMaterial(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='task_materials')
    material = models.ForeignKey(Material, on_delete=models.PROTECT, related_name='task_materials')
    quantity = models.DecimalField(max_digits=12, decimal_places=3, validators=[MinValueValidator(0)])

    def __str__(self):
        return f"{self.task} - {self.material} x {self.quantity}"

    class Meta:
        db_table = 'task_materials'
        unique_together = [('task', 'material')]
