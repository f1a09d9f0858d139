from django.contrib import admin
from .models import Unit, Action, TaskCategory, MaterialCategory, Material, Task, TaskMaterial


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ['name', 'description', 'created_at']
    search_fields = ['name']


@admin.register(Action)
class ActionAdmin(admin.ModelAdmin):
    list_display = ['name', 'description', 'created_at']
    search_fields = ['name']


@admin.register(TaskCategory)
class TaskCategoryAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'parent', 'position']
    list_filter = ['parent']
    search_fields = ['code', 'name']
    ordering = ['parent__id', 'position']


@admin.register(MaterialCategory)
class MaterialCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ['name', 'unit', 'category', 'cost', 'created_at']
    list_filter = ['category', 'unit']
    search_fields = ['name']


class TaskMaterialInline(admin.TabularInline):
    model = TaskMaterial
    extra = 0


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'unit', 'unit_labor_price', 'unit_material_price', 'created_at']
    list_filter = ['category', 'unit']
    search_fields = ['name']
    inlines = [TaskMaterialInline]
