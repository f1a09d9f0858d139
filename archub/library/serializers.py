from rest_framework import serializers
from .models import Unit, Action, TaskCategory, MaterialCategory, Material, Task, TaskMaterial


class UnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = Unit
        fields = ['id', 'name', 'description', 'created_at']


class ActionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Action
        fields = ['id', 'name', 'description', 'created_at']


class TaskCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskCategory
        fields = ['id', 'code', 'name', 'position', 'parent', 'created_at']
        read_only_fields = ['position', 'created_at']

    def validate_parent(self, value):
        if value is not None and self.instance is not None and value.pk == self.instance.pk:
            raise serializers.ValidationError('Una categoría no puede ser su propio padre')
        return value


class TaskCategoryMoveSerializer(serializers.Serializer):
    parent = serializers.PrimaryKeyRelatedField(queryset=TaskCategory.objects.all(), allow_null=True, required=False)
    position = serializers.IntegerField(min_value=1, required=False)


class MaterialCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = MaterialCategory
        fields = ['id', 'name', 'created_at']


class MaterialSerializer(serializers.ModelSerializer):
    unit_name = serializers.CharField(source='unit.name', read_only=True, allow_null=True)
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)

    class Meta:
        model = Material
        fields = ['id', 'name', 'unit', 'unit_name', 'category', 'category_name', 'cost', 'created_at']


class TaskMaterialSerializer(serializers.ModelSerializer):
    material_name = serializers.CharField(source='material.name', read_only=True)
    unit_name = serializers.CharField(source='material.unit.name', read_only=True, allow_null=True)

    class Meta:
        model = TaskMaterial
        fields = ['id', 'material', 'material_name', 'unit_name', 'quantity']


class TaskSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)
    subcategory_name = serializers.CharField(source='subcategory.name', read_only=True, allow_null=True)
    element_category_name = serializers.CharField(source='element_category.name', read_only=True, allow_null=True)
    unit_name = serializers.CharField(source='unit.name', read_only=True, allow_null=True)
    unit_price = serializers.DecimalField(source='get_unit_price', max_digits=14, decimal_places=2, read_only=True)
    materials = TaskMaterialSerializer(source='task_materials', many=True, required=False)

    class Meta:
        model = Task
        fields = [
            'id', 'name', 'unit_labor_price', 'unit_material_price', 'unit_price',
            'category', 'category_name', 'subcategory', 'subcategory_name',
            'element_category', 'element_category_name', 'unit', 'unit_name',
            'materials', 'created_at'
        ]
        read_only_fields = ['created_at']

    def create(self, validated_data):
        materials_data = validated_data.pop('task_materials', [])
        task = Task.objects.create(**validated_data)
        for material_data in materials_data:
            TaskMaterial.objects.create(task=task, **material_data)
        return task

    def update(self, instance, validated_data):
        materials_data = validated_data.pop('task_materials', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if materials_data is not None:
            instance.task_materials.all().delete()
            for material_data in materials_data:
                TaskMaterial.objects.create(task=instance, **material_data)
        return instance
