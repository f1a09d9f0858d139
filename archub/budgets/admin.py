from django.contrib import admin
from .models import Budget, BudgetTask


class BudgetTaskInline(admin.TabularInline):
    model = BudgetTask
    extra = 0
    raw_id_fields = ['task']


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'status', 'created_by', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['name', 'project__name']
    inlines = [BudgetTaskInline]
