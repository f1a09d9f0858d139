from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from archub.context.store import get_user_context, scope_id
from archub.core.query_cache import CacheKey, Entity, Mutation, QueryOptions
from archub.core.utils import is_admin_user, query_response, mutation_response
from archub.organizations.access import check_scope, check_payload_scope, get_owned_or_404
from .models import Contact
from .services import contacts_service, contact_types_service
from .workflows import save_contact, delete_contact


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contact_list_create(request):
    """Contacts of the current organization (optionally by type), or create one"""
    if request.method == 'GET':
        organization_id = scope_id(request, 'organization_id')
        type_id = request.query_params.get('type')
        if type_id:
            return query_response(
                CacheKey(Entity.CONTACTS, organization_id or '', 'type', type_id),
                lambda: contacts_service.get_by_type(type_id, organization_id=organization_id),
                QueryOptions(enabled=bool(organization_id)),
            )
        return query_response(
            CacheKey(Entity.CONTACTS, organization_id or ''),
            lambda: contacts_service.get_all(organization_id=organization_id),
            QueryOptions(enabled=bool(organization_id)),
        )

    context = get_user_context(request)
    check_payload_scope(request.user, request.data, 'organization', 'organization_id')
    if not request.data.get('organization'):
        check_scope(request.user, 'organization_id', context.get_state().organization_id)
    result = save_contact(context, request.data)
    return mutation_response(result, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def contact_detail(request, pk):
    """Retrieve, update or delete a contact"""
    get_owned_or_404(Contact, pk, request.user, 'organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.CONTACTS, 'detail', pk),
            lambda: contacts_service.get(pk),
            QueryOptions(retry=0),
        )
    elif request.method in ('PUT', 'PATCH'):
        check_payload_scope(request.user, request.data, 'organization', 'organization_id')
        return mutation_response(save_contact(get_user_context(request), request.data, contact=pk))
    else:  # DELETE
        return mutation_response(delete_contact(pk), status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def contact_types_of_contact(request, pk):
    """Types assigned to one contact"""
    get_owned_or_404(Contact, pk, request.user, 'organization_id')
    return query_response(
        CacheKey(Entity.CONTACT_TYPES, 'contact', pk),
        lambda: contact_types_service.get_contact_types(pk),
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contact_type_list_create(request):
    """All contact types by name; admins may add new ones"""
    if request.method == 'GET':
        return query_response(CacheKey(Entity.CONTACT_TYPES), contact_types_service.get_all)

    if not is_admin_user(request.user):
        return Response(
            {'message': 'Solo los administradores pueden crear tipos de contacto'},
            status=status.HTTP_403_FORBIDDEN,
        )
    mutation = Mutation(
        contact_types_service.create,
        invalidates=[(Entity.CONTACT_TYPES,)],
        error_message='No se pudo crear el tipo de contacto',
    )
    return mutation_response(mutation.mutate(request.data), status.HTTP_201_CREATED)
