from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from archub.core.query_cache import CacheKey, Entity, Mutation, QueryOptions
from archub.core.utils import is_admin_user, query_response, mutation_response
from .serializers import TaskCategoryMoveSerializer
from .services import (
    units_service, actions_service, task_categories_service,
    material_categories_service, materials_service, tasks_service
)


def _admin_only(request):
    if is_admin_user(request.user):
        return None
    return Response(
        {'message': 'Solo los administradores pueden modificar la biblioteca'},
        status=status.HTTP_403_FORBIDDEN,
    )


def _catalog_list_create(request, service, entity, noun, scope=None):
    """Shared GET/POST for admin catalogs"""
    if request.method == 'GET':
        scope = scope or {}
        parts = [f"{name}={value}" for name, value in sorted(scope.items()) if value]
        return query_response(CacheKey(entity, *parts), lambda: service.get_all(**scope))

    denied = _admin_only(request)
    if denied:
        return denied
    mutation = Mutation(
        service.create,
        invalidates=[(entity,)],
        error_message=f'No se pudo crear {noun}',
    )
    return mutation_response(mutation.mutate(request.data), status.HTTP_201_CREATED)


def _catalog_detail(request, pk, service, entity, noun, extra_invalidates=()):
    """Shared GET/PUT/PATCH/DELETE for admin catalogs"""
    if request.method == 'GET':
        return query_response(CacheKey(entity, 'detail', pk), lambda: service.get(pk), QueryOptions(retry=0))

    denied = _admin_only(request)
    if denied:
        return denied
    invalidates = [(entity,)] + [(e,) for e in extra_invalidates]
    if request.method in ('PUT', 'PATCH'):
        mutation = Mutation(service.update, invalidates=invalidates, error_message=f'No se pudo actualizar {noun}')
        return mutation_response(mutation.mutate(pk, request.data))
    mutation = Mutation(service.delete, invalidates=invalidates, error_message=f'No se pudo eliminar {noun}')
    return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)


# Unit views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def unit_list_create(request):
    """List all units or create a new unit"""
    return _catalog_list_create(request, units_service, Entity.UNITS, 'la unidad')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def unit_detail(request, pk):
    return _catalog_detail(request, pk, units_service, Entity.UNITS, 'la unidad', (Entity.MATERIALS, Entity.TASKS))


# Action views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def action_list_create(request):
    """List all actions or create a new action"""
    return _catalog_list_create(request, actions_service, Entity.ACTIONS, 'la acción')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def action_detail(request, pk):
    return _catalog_detail(request, pk, actions_service, Entity.ACTIONS, 'la acción')


# Task category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_category_tree(request):
    """Category tree ordered by position, or create a category at the end of its level"""
    if request.method == 'GET':
        return query_response(CacheKey(Entity.TASK_CATEGORIES, 'tree'), task_categories_service.get_tree)
    return _catalog_list_create(request, task_categories_service, Entity.TASK_CATEGORIES, 'la categoría')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_category_detail(request, pk):
    return _catalog_detail(
        request, pk, task_categories_service, Entity.TASK_CATEGORIES, 'la categoría', (Entity.TASKS,)
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_category_move(request, pk):
    """Reparent and/or reposition a category"""
    denied = _admin_only(request)
    if denied:
        return denied
    serializer = TaskCategoryMoveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    parent = serializer.validated_data.get('parent')
    mutation = Mutation(
        task_categories_service.move,
        invalidates=[(Entity.TASK_CATEGORIES,)],
        error_message='Error al actualizar las posiciones',
    )
    result = mutation.mutate(pk, parent.pk if parent else None, serializer.validated_data.get('position'))
    return mutation_response(result)


# Material views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def material_list_create(request):
    """List materials (optionally by category) or create a material"""
    scope = {'category_id': request.query_params.get('category')}
    return _catalog_list_create(request, materials_service, Entity.MATERIALS, 'el material', scope)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def material_detail(request, pk):
    return _catalog_detail(request, pk, materials_service, Entity.MATERIALS, 'el material', (Entity.TASKS,))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def material_category_list_create(request):
    """List material categories by name or create one"""
    if request.method == 'GET':
        return query_response(CacheKey(Entity.MATERIALS, 'categories'), material_categories_service.get_all)
    return _catalog_list_create(request, material_categories_service, Entity.MATERIALS, 'la categoría de material')


# Task views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request):
    """List catalog tasks (optionally by category) or create a task"""
    scope = {
        'category_id': request.query_params.get('category'),
        'subcategory_id': request.query_params.get('subcategory'),
        'element_category_id': request.query_params.get('element_category'),
    }
    return _catalog_list_create(request, tasks_service, Entity.TASKS, 'la tarea', scope)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    return _catalog_detail(request, pk, tasks_service, Entity.TASKS, 'la tarea', (Entity.BUDGET_TASKS,))
