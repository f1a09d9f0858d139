from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from archub.context.store import get_user_context, scope_id
from archub.core.query_cache import CacheKey, Entity, Mutation, QueryOptions
from archub.core.utils import is_admin_user, query_response, mutation_response
from archub.organizations.access import check_scope, check_payload_scope, get_owned_or_404
from .filters import MovementFilter
from .models import Movement
from .services import movements_service, movement_concepts_service, wallets_service
from .workflows import save_movement, delete_movement


def _filter_parts(request):
    names = MovementFilter.Meta.fields
    return [f"{name}={request.query_params[name]}" for name in names if request.query_params.get(name)]


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def movement_list_create(request):
    """Movements of the current project, newest first, or create one"""
    if request.method == 'GET':
        project_id = scope_id(request, 'project_id')
        params = request.query_params.copy()
        movements_service.validate_filters(params)
        return query_response(
            CacheKey(Entity.MOVEMENTS, project_id or '', *_filter_parts(request)),
            lambda: movements_service.filter(params, project_id=project_id),
            QueryOptions(enabled=bool(project_id)),
        )

    context = get_user_context(request)
    check_scope(request.user, 'project_id', request.data.get('project') or context.get_state().project_id)
    result = save_movement(context, request.data, user=request.user)
    return mutation_response(result, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def movement_detail(request, pk):
    """Retrieve, update or delete a movement"""
    get_owned_or_404(Movement, pk, request.user, 'project__organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.MOVEMENTS, 'detail', pk),
            lambda: movements_service.get(pk),
            QueryOptions(retry=0),
        )
    elif request.method in ('PUT', 'PATCH'):
        check_payload_scope(request.user, request.data, 'project', 'project_id')
        return mutation_response(save_movement(get_user_context(request), request.data, movement=pk, user=request.user))
    else:  # DELETE
        return mutation_response(delete_movement(pk), status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def movement_summary(request):
    """Ingresos, egresos, ajustes and balance per currency for the filtered movements"""
    project_id = scope_id(request, 'project_id')
    if not project_id:
        return Response({'count': 0, 'totals': {}})
    params = request.query_params.copy()
    movements_service.validate_filters(params)
    return query_response(
        CacheKey(Entity.MOVEMENTS, project_id, 'summary', *_filter_parts(request)),
        lambda: movements_service.summary(params, project_id=project_id),
        QueryOptions(default=dict),
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def movement_concept_list_create(request):
    """
    Movement concepts.

    ?types=1 lists the root types, ?type=<id> the categories of one type,
    otherwise every concept by name.
    """
    if request.method == 'GET':
        type_id = request.query_params.get('type')
        if request.query_params.get('types'):
            return query_response(CacheKey(Entity.MOVEMENT_CONCEPTS, 'types'), movement_concepts_service.get_types)
        if type_id:
            return query_response(
                CacheKey(Entity.MOVEMENT_CONCEPTS, 'type', type_id),
                lambda: movement_concepts_service.get_categories_by_type(type_id),
            )
        return query_response(CacheKey(Entity.MOVEMENT_CONCEPTS), movement_concepts_service.get_all)

    if not is_admin_user(request.user):
        return Response(
            {'message': 'Solo los administradores pueden crear conceptos'},
            status=status.HTTP_403_FORBIDDEN,
        )
    mutation = Mutation(
        movement_concepts_service.create,
        invalidates=[(Entity.MOVEMENT_CONCEPTS,)],
        error_message='No se pudo crear el concepto',
    )
    return mutation_response(mutation.mutate(request.data), status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wallet_list(request):
    """Active wallets of the current organization; admins without one see every wallet"""
    organization_id = scope_id(request, 'organization_id')
    return query_response(
        CacheKey(Entity.WALLETS, organization_id or 'all'),
        lambda: wallets_service.get_all(organization_id=organization_id),
        QueryOptions(enabled=bool(organization_id) or is_admin_user(request.user)),
    )
