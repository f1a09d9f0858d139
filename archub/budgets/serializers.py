from rest_framework import serializers
from .models import Budget, BudgetTask


class BudgetSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source='project.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, allow_null=True)
    task_count = serializers.SerializerMethodField()

    class Meta:
        model = Budget
        fields = [
            'id', 'project', 'project_name', 'name', 'description', 'status',
            'created_by', 'created_by_name', 'task_count', 'created_at'
        ]
        read_only_fields = ['created_by', 'created_at']

    def get_task_count(self, obj):
        count = getattr(obj, 'task_count', None)
        if count is None:
            count = obj.budget_tasks.count()
        return count


class BudgetTaskSerializer(serializers.ModelSerializer):
    task_name = serializers.CharField(source='task.name', read_only=True)
    unit_name = serializers.CharField(source='task.unit.name', read_only=True, allow_null=True)
    category_name = serializers.CharField(source='task.category.name', read_only=True, allow_null=True)
    unit_labor_price = serializers.DecimalField(source='task.unit_labor_price', max_digits=12, decimal_places=2, read_only=True)
    subtotal = serializers.DecimalField(source='get_subtotal', max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = BudgetTask
        fields = [
            'id', 'budget', 'task', 'task_name', 'unit_name', 'category_name',
            'unit_labor_price', 'quantity', 'subtotal', 'created_at'
        ]
        read_only_fields = ['created_at']
        validators = [
            serializers.UniqueTogetherValidator(
                queryset=BudgetTask.objects.all(),
                fields=['budget', 'task'],
                message='La tarea ya forma parte del presupuesto',
            )
        ]
