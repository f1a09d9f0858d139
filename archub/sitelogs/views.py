from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import JSONParser, FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from archub.context.store import get_user_context, scope_id
from archub.core.query_cache import CacheKey, Entity, Mutation, QueryOptions
from archub.core.utils import query_response, mutation_response
from archub.organizations.access import check_scope, get_owned_or_404
from .models import SiteLog, SiteLogFile
from .services import site_logs_service, site_log_files_service
from .workflows import create_site_log, update_site_log, add_site_log_files


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([JSONParser, FormParser, MultiPartParser])
def site_log_list_create(request):
    """Site logs of the current project (newest first), or create one with files"""
    if request.method == 'GET':
        project_id = scope_id(request, 'project_id')
        return query_response(
            CacheKey(Entity.SITE_LOGS, project_id or ''),
            lambda: site_logs_service.get_all(project_id=project_id),
            QueryOptions(enabled=bool(project_id)),
        )

    context = get_user_context(request)
    check_scope(request.user, 'project_id', request.data.get('project') or context.get_state().project_id)
    result = create_site_log(
        context,
        request.data,
        files=request.FILES.getlist('files'),
        user=request.user,
    )
    return mutation_response(result, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def site_log_detail(request, pk):
    """Retrieve, update or delete a site log"""
    get_owned_or_404(SiteLog, pk, request.user, 'project__organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.SITE_LOGS, 'detail', pk),
            lambda: site_logs_service.get(pk),
            QueryOptions(retry=0),
        )
    elif request.method in ('PUT', 'PATCH'):
        return mutation_response(update_site_log(pk, request.data))
    else:  # DELETE
        mutation = Mutation(
            site_logs_service.delete,
            invalidates=[(Entity.SITE_LOGS,), (Entity.STATS,), (Entity.TIMELINE_EVENTS,)],
            success_message='Registro eliminado',
            error_message='No se pudo eliminar el registro de obra',
        )
        return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def site_log_files(request, pk):
    """Files attached to a site log, or upload more"""
    get_owned_or_404(SiteLog, pk, request.user, 'project__organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.SITE_LOGS, 'files', pk),
            lambda: site_log_files_service.get_all(site_log_id=pk),
        )
    result = add_site_log_files(
        pk,
        request.FILES.getlist('files'),
        user=request.user,
        description=request.data.get('description'),
    )
    return mutation_response(result, status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def site_log_file_detail(request, pk):
    get_owned_or_404(SiteLogFile, pk, request.user, 'site_log__project__organization_id')
    mutation = Mutation(
        site_log_files_service.delete,
        invalidates=[(Entity.SITE_LOGS,)],
        error_message='No se pudo eliminar el archivo',
    )
    return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)
