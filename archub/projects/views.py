from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from archub.context.store import get_user_context, scope_id
from archub.core.query_cache import CacheKey, Entity, Mutation, QueryOptions
from archub.core.utils import is_admin_user, query_response, mutation_response
from archub.organizations.access import check_scope, check_payload_scope, get_owned_or_404
from .models import Project
from .services import projects_service
from .workflows import create_project, update_project


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """Active projects of the current organization, or create a project"""
    if request.method == 'GET':
        organization_id = scope_id(request, 'organization_id')
        project_status = request.query_params.get('status')
        return query_response(
            CacheKey(Entity.PROJECTS, organization_id or '', project_status or ''),
            lambda: projects_service.get_all(organization_id=organization_id, status=project_status),
            QueryOptions(enabled=bool(organization_id)),
        )

    context = get_user_context(request)
    check_payload_scope(request.user, request.data, 'organization', 'organization_id')
    if not request.data.get('organization'):
        check_scope(request.user, 'organization_id', context.get_state().organization_id)
    result = create_project(context, request.data, request.user)
    return mutation_response(result, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve, update or delete a project"""
    get_owned_or_404(Project, pk, request.user, 'organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.PROJECTS, 'detail', pk),
            lambda: projects_service.get(pk),
            QueryOptions(retry=0),
        )
    elif request.method in ('PUT', 'PATCH'):
        check_payload_scope(request.user, request.data, 'organization', 'organization_id')
        return mutation_response(update_project(pk, request.data, request.user))
    else:  # DELETE
        context = get_user_context(request)

        def on_success(_):
            if str(context.get_state().project_id) == str(pk):
                context.set_user_context(project_id=None, budget_id=None)

        mutation = Mutation(
            projects_service.delete,
            invalidates=[(Entity.PROJECTS,), (Entity.STATS,), (Entity.TIMELINE_EVENTS,)],
            success_message='Proyecto eliminado',
            error_message='Error al eliminar el proyecto',
            on_success=on_success,
        )
        return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)


def overview_scope(request):
    """Organization scope for counters; members without one see their own organizations."""
    organization_id = scope_id(request, 'organization_id')
    if organization_id or is_admin_user(request.user):
        return {'organization_id': organization_id}, organization_id or 'all'
    return {'user_id': request.user.pk}, f'member:{request.user.pk}'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_overview(request):
    """Totals, active count, budget sum and average progress"""
    scope, label = overview_scope(request)
    return query_response(
        CacheKey(Entity.PROJECTS, 'overview', label),
        lambda: projects_service.overview(**scope),
    )
