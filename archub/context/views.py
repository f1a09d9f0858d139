from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from archub.core.query_cache import query_client
from archub.organizations.access import check_scope
from .events import EventDispatcher, Shell, parse_message
from .models import UserPreferences
from .navigation import NavigationStore
from .serializers import (
    UserContextUpdateSerializer, NavigationSerializer,
    EventMessageSerializer, UserPreferencesSerializer
)
from .store import get_user_context


def _context_payload(request, store):
    data = store.get_state().as_dict()
    prefs = UserPreferences.objects.filter(user=request.user).first()
    data['preferences'] = UserPreferencesSerializer(prefs).data if prefs else None
    return data


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def context_detail(request):
    """Current user context, or merge a partial update into it"""
    store = get_user_context(request)
    if request.method == 'PATCH':
        serializer = UserContextUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        for name, value in serializer.validated_data.items():
            check_scope(request.user, name, value)
        store.set_user_context(**serializer.validated_data)
    store.refresh_data()
    return Response(_context_payload(request, store))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def navigation_detail(request):
    """Current section and view, or move to another one"""
    navigation = NavigationStore.for_user(request.user)
    if request.method == 'POST':
        serializer = NavigationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            navigation.navigate(serializer.validated_data['section'], serializer.validated_data.get('view'))
        except ValueError as e:
            return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(navigation.get_state().as_dict())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def publish_event(request):
    """Deliver a typed message to the shell"""
    serializer = EventMessageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        message = parse_message(serializer.validated_data)
    except ValueError as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    navigation = NavigationStore.for_user(request.user)
    dispatcher = EventDispatcher()
    shell = Shell(navigation, dispatcher)
    try:
        delivered = dispatcher.publish(message)
    except ValueError as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    finally:
        shell.close()
    return Response({
        'delivered': delivered,
        'navigation': navigation.get_state().as_dict(),
        'pending_modal': shell.pending_modal,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def window_focus(request):
    """The client regained focus: refetch the observed queries of the current context"""
    state = get_user_context(request).get_state()
    invalidated = query_client.on_window_focus(scopes=[state.organization_id, state.project_id, state.budget_id])
    return Response({'invalidated': invalidated})
