from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from archub.context.store import get_user_context, scope_id
from archub.core.query_cache import CacheKey, Entity, Mutation, QueryOptions
from archub.core.utils import query_response, mutation_response
from archub.organizations.access import check_scope, check_payload_scope, get_owned_or_404
from .models import Budget, BudgetTask
from .services import budgets_service, budget_tasks_service

BUDGET_INVALIDATES = [(Entity.BUDGETS,), (Entity.BUDGET_TASKS,)]


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def budget_list_create(request):
    """Budgets of the current project, or create one"""
    context = get_user_context(request)
    if request.method == 'GET':
        project_id = scope_id(request, 'project_id')
        return query_response(
            CacheKey(Entity.BUDGETS, project_id or ''),
            lambda: budgets_service.get_all(project_id=project_id),
            QueryOptions(enabled=bool(project_id)),
        )

    payload = dict(request.data.items())
    payload.setdefault('project', context.get_state().project_id)
    check_scope(request.user, 'project_id', payload['project'])

    def on_success(budget):
        context.set_user_context(budget_id=budget['id'])

    mutation = Mutation(
        lambda values: budgets_service.create(values, created_by=request.user),
        invalidates=BUDGET_INVALIDATES,
        success_message='Presupuesto creado',
        error_message='No se pudo crear el presupuesto',
        on_success=on_success,
        pending_key=f'budget-create:{request.user.pk}',
    )
    return mutation_response(mutation.mutate(payload), status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def budget_detail(request, pk):
    """Retrieve, update or delete a budget"""
    get_owned_or_404(Budget, pk, request.user, 'project__organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.BUDGETS, 'detail', pk),
            lambda: budgets_service.get(pk),
            QueryOptions(retry=0),
        )
    elif request.method in ('PUT', 'PATCH'):
        check_payload_scope(request.user, request.data, 'project', 'project_id')
        mutation = Mutation(
            budgets_service.update,
            invalidates=BUDGET_INVALIDATES,
            success_message='Presupuesto actualizado',
            error_message='No se pudo actualizar el presupuesto',
        )
        return mutation_response(mutation.mutate(pk, request.data))
    else:  # DELETE
        context = get_user_context(request)

        def on_success(_):
            if str(context.get_state().budget_id) == str(pk):
                context.set_user_context(budget_id=None)

        mutation = Mutation(
            budgets_service.delete,
            invalidates=BUDGET_INVALIDATES,
            success_message='Presupuesto eliminado',
            error_message='No se pudo eliminar el presupuesto',
            on_success=on_success,
        )
        return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def budget_tasks(request, pk):
    """Budget summary (rows, subtotals, percentages, total) or add a task"""
    get_owned_or_404(Budget, pk, request.user, 'project__organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.BUDGET_TASKS, pk),
            lambda: budget_tasks_service.summary(pk),
            QueryOptions(default=dict),
        )

    payload = dict(request.data.items())
    payload['budget'] = str(pk)
    mutation = Mutation(
        budget_tasks_service.create,
        invalidates=[(Entity.BUDGET_TASKS, pk), (Entity.BUDGETS,)],
        success_message='Tarea agregada al presupuesto',
        error_message='No se pudo agregar la tarea',
    )
    return mutation_response(mutation.mutate(payload), status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def budget_task_detail(request, pk):
    """Change the quantity of a budget row or remove it"""
    get_owned_or_404(BudgetTask, pk, request.user, 'budget__project__organization_id')

    if request.method == 'PATCH':
        check_payload_scope(request.user, request.data, 'budget', 'budget_id')
        mutation = Mutation(
            budget_tasks_service.update,
            invalidates=[(Entity.BUDGET_TASKS,)],
            error_message='No se pudo actualizar la cantidad',
        )
        return mutation_response(mutation.mutate(pk, request.data))

    mutation = Mutation(
        budget_tasks_service.delete,
        invalidates=[(Entity.BUDGET_TASKS,), (Entity.BUDGETS,)],
        error_message='No se pudo quitar la tarea',
    )
    return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)
