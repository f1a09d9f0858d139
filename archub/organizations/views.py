from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from archub.context.store import get_user_context
from archub.core.query_cache import CacheKey, Entity, Mutation, QueryOptions
from archub.core.utils import is_admin_user, query_response, mutation_response
from .services import organizations_service, organization_members_service, is_member
from .workflows import create_organization


def _can_access(request, pk):
    return is_admin_user(request.user) or is_member(pk, request.user)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def organization_list_create(request):
    """Organizations visible to the user (all of them for admins), or create one"""
    if request.method == 'GET':
        if is_admin_user(request.user):
            return query_response(CacheKey(Entity.ORGANIZATIONS, 'all'), organizations_service.get_all)
        return query_response(
            CacheKey(Entity.ORGANIZATIONS, 'member', request.user.pk),
            lambda: organizations_service.get_all(user_id=request.user.pk),
        )

    result = create_organization(get_user_context(request), request.data, request.user)
    return mutation_response(result, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def organization_detail(request, pk):
    """Retrieve, update or delete an organization"""
    if not _can_access(request, pk):
        return Response({'message': 'Organización no encontrada'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.ORGANIZATIONS, pk),
            lambda: organizations_service.get(pk),
            QueryOptions(retry=0),
        )
    elif request.method in ('PUT', 'PATCH'):
        mutation = Mutation(
            organizations_service.update,
            invalidates=[(Entity.ORGANIZATIONS,)],
            success_message='Organización actualizada',
            error_message='No se pudo actualizar la organización',
        )
        return mutation_response(mutation.mutate(pk, request.data))
    else:  # DELETE
        if not is_admin_user(request.user):
            return Response(
                {'message': 'Solo los administradores pueden eliminar organizaciones'},
                status=status.HTTP_403_FORBIDDEN,
            )
        mutation = Mutation(
            organizations_service.delete,
            invalidates=[(Entity.ORGANIZATIONS,), (Entity.PROJECTS,), (Entity.STATS,), (Entity.CALENDAR_EVENTS,)],
            error_message='No se pudo eliminar la organización',
        )
        return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def organization_members(request, pk):
    """Team of an organization"""
    if not _can_access(request, pk):
        return Response({'message': 'Organización no encontrada'}, status=status.HTTP_404_NOT_FOUND)
    return query_response(
        CacheKey(Entity.ORGANIZATIONS, pk, 'members'),
        lambda: organization_members_service.get_all(organization_id=pk),
    )
