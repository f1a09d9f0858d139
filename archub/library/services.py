import logging

from django.db import DatabaseError, transaction
from django.db.models import Max

from archub.core.services import ModelService, ServiceError
from .models import Unit, Action, TaskCategory, MaterialCategory, Material, Task
from .serializers import (
    UnitSerializer, ActionSerializer, TaskCategorySerializer,
    MaterialCategorySerializer, MaterialSerializer, TaskSerializer
)

logger = logging.getLogger(__name__)


class UnitsService(ModelService):
    model = Unit
    serializer_class = UnitSerializer
    ordering = ('-id',)
    label = 'unidades'
    not_found_message = 'Unidad no encontrada'


class ActionsService(ModelService):
    model = Action
    serializer_class = ActionSerializer
    ordering = ('-created_at', '-id')
    label = 'acciones'
    not_found_message = 'Acción no encontrada'


class TaskCategoriesService(ModelService):
    """Category tree. Positions are 1..n within each parent."""
    model = TaskCategory
    serializer_class = TaskCategorySerializer
    ordering = ('position', 'id')
    scope_fields = {'parent_id': 'parent_id'}
    label = 'categorías'
    not_found_message = 'Categoría no encontrada'

    def get_tree(self):
        rows = self.get_all()
        nodes = {row['id']: dict(row, children=[]) for row in rows}
        roots = []
        for row in rows:
            node = nodes[row['id']]
            parent = nodes.get(row['parent'])
            if parent is None:
                roots.append(node)
            else:
                parent['children'].append(node)
        # rows arrive ordered by position, so every children list is too
        return roots

    def next_position(self, parent_id):
        current = self.model.objects.filter(parent_id=parent_id).aggregate(top=Max('position'))['top']
        return (current or 0) + 1

    def perform_save(self, serializer, **extra):
        if serializer.instance is None:
            parent = serializer.validated_data.get('parent')
            extra.setdefault('position', self.next_position(parent.pk if parent else None))
        return serializer.save(**extra)

    def delete(self, pk):
        instance = self.get_object(pk)
        if instance.children.exists():
            raise ServiceError('No se puede eliminar una categoría que tiene subcategorías')
        super().delete(pk)
        self._renumber(instance.parent_id)

    def _renumber(self, parent_id, ordered=None):
        siblings = ordered if ordered is not None else list(
            self.model.objects.filter(parent_id=parent_id).order_by('position', 'id')
        )
        changed = []
        for index, sibling in enumerate(siblings, start=1):
            if sibling.position != index:
                sibling.position = index
                changed.append(sibling)
        if changed:
            self.model.objects.bulk_update(changed, ['position'])

    def _is_descendant(self, node_id, candidate_id):
        """True when ``candidate_id`` lies in the subtree rooted at ``node_id``."""
        current = candidate_id
        seen = set()
        while current is not None and current not in seen:
            if current == node_id:
                return True
            seen.add(current)
            current = self.model.objects.filter(pk=current).values_list('parent_id', flat=True).first()
        return False

    def move(self, pk, parent_id=None, position=None):
        """Move a category under ``parent_id`` (root when None) at ``position``."""
        instance = self.get_object(pk)
        if parent_id is not None and self._is_descendant(instance.pk, parent_id):
            raise ServiceError('No se puede mover una categoría dentro de sí misma')

        old_parent_id = instance.parent_id
        try:
            with transaction.atomic():
                siblings = list(
                    self.model.objects.filter(parent_id=parent_id).exclude(pk=instance.pk).order_by('position', 'id')
                )
                index = len(siblings) if position is None else max(0, min(position - 1, len(siblings)))
                siblings.insert(index, instance)
                if instance.parent_id != parent_id:
                    instance.parent_id = parent_id
                    instance.save(update_fields=['parent'])
                self._renumber(parent_id, siblings)
                if old_parent_id != parent_id:
                    self._renumber(old_parent_id)
        except DatabaseError as e:
            logger.error(f"Error moving TaskCategory {pk}: {e}")
            raise ServiceError('Error al actualizar las posiciones', original=e) from e
        logger.info(f"Moved TaskCategory {pk} under {parent_id} at {index + 1}")
        return self.get(pk)


class MaterialCategoriesService(ModelService):
    model = MaterialCategory
    serializer_class = MaterialCategorySerializer
    ordering = ('name',)
    label = 'categorías de material'


class MaterialsService(ModelService):
    model = Material
    serializer_class = MaterialSerializer
    ordering = ('-created_at', '-id')
    select_related = ('unit', 'category')
    scope_fields = {'category_id': 'category_id'}
    label = 'materiales'


class TasksService(ModelService):
    model = Task
    serializer_class = TaskSerializer
    ordering = ('-created_at', '-id')
    select_related = ('category', 'subcategory', 'element_category', 'unit')
    prefetch_related = ('task_materials__material__unit',)
    scope_fields = {
        'category_id': 'category_id',
        'subcategory_id': 'subcategory_id',
        'element_category_id': 'element_category_id',
    }
    label = 'tareas'
    not_found_message = 'Tarea no encontrada'


units_service = UnitsService()
actions_service = ActionsService()
task_categories_service = TaskCategoriesService()
material_categories_service = MaterialCategoriesService()
materials_service = MaterialsService()
tasks_service = TasksService()
