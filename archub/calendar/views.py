from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from archub.context.store import get_user_context, scope_id
from archub.core.query_cache import CacheKey, Entity, Mutation, Notification, QueryOptions
from archub.core.utils import query_response, mutation_response
from archub.organizations.access import check_scope, check_payload_scope, get_owned_or_404
from .filters import CalendarEventFilter
from .models import CalendarEvent
from .services import calendar_events_service, timeline_service

CALENDAR_INVALIDATES = [(Entity.CALENDAR_EVENTS,)]


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def calendar_event_list_create(request):
    """Events of the current organization by date, or schedule one"""
    if request.method == 'GET':
        organization_id = scope_id(request, 'organization_id')
        params = request.query_params.copy()
        calendar_events_service.validate_filters(params)
        parts = [f"{name}={params[name]}" for name in CalendarEventFilter.Meta.fields if params.get(name)]
        return query_response(
            CacheKey(Entity.CALENDAR_EVENTS, organization_id or '', *parts),
            lambda: calendar_events_service.filter(params, organization_id=organization_id),
            QueryOptions(enabled=bool(organization_id)),
        )

    payload = dict(request.data.items())
    payload.setdefault('organization', get_user_context(request).get_state().organization_id)
    check_scope(request.user, 'organization_id', payload['organization'])
    mutation = Mutation(
        lambda values: calendar_events_service.create(values, created_by=request.user),
        invalidates=CALENDAR_INVALIDATES,
        success_message=Notification('Éxito', 'Evento creado correctamente'),
        error_message='Error al crear el evento',
        pending_key=f'calendar-event-create:{request.user.pk}',
    )
    return mutation_response(mutation.mutate(payload), status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def calendar_event_detail(request, pk):
    """Retrieve, reschedule or delete an event"""
    get_owned_or_404(CalendarEvent, pk, request.user, 'organization_id')

    if request.method == 'GET':
        return query_response(
            CacheKey(Entity.CALENDAR_EVENTS, 'detail', pk),
            lambda: calendar_events_service.get(pk),
            QueryOptions(retry=0),
        )
    elif request.method in ('PUT', 'PATCH'):
        check_payload_scope(request.user, request.data, 'organization', 'organization_id')
        mutation = Mutation(
            calendar_events_service.update,
            invalidates=CALENDAR_INVALIDATES,
            success_message=Notification('Éxito', 'Evento actualizado correctamente'),
            error_message='Error al actualizar el evento',
        )
        return mutation_response(mutation.mutate(pk, request.data))
    else:  # DELETE
        mutation = Mutation(
            calendar_events_service.delete,
            invalidates=CALENDAR_INVALIDATES,
            success_message=Notification('Éxito', 'Evento eliminado correctamente'),
            error_message='Error al eliminar el evento',
        )
        return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def timeline_events(request):
    """Site logs and movements of the current project, oldest first"""
    project_id = scope_id(request, 'project_id')
    return query_response(
        CacheKey(Entity.TIMELINE_EVENTS, project_id or ''),
        lambda: timeline_service.get_events(project_id),
        QueryOptions(enabled=bool(project_id)),
    )
