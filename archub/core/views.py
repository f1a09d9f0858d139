from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.core.exceptions import ObjectDoesNotExist
from archub.context.store import get_user_context, scope_id
from .models import Activity
from .query_cache import CacheKey, Entity, Mutation, QueryOptions
from .serializers import (
    UserSerializer, UserCreateSerializer, UserRoleSerializer, UserPlanSerializer, ActivitySerializer
)
from .services import users_service, plans_service
from .utils import is_admin_user, query_response, mutation_response

RECENT_ACTIVITY_LIMIT = 10


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('La cuenta está deshabilitada.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that answers 401 for tokens of deleted users"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token inválido o expirado.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token inválido. El usuario ya no existe.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def _forbidden():
    return Response(
        {'message': 'Solo los administradores pueden realizar esta acción'},
        status=status.HTTP_403_FORBIDDEN,
    )


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    # self-registration never grants the admin role or a plan
    user = serializer.save(role='user', plan=None)
    token = CustomTokenObtainPairSerializer.get_token(user)
    return Response({
        'user': UserSerializer(user).data,
        'access': str(token.access_token),
        'refresh': str(token),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with admin flag and working context"""
    user_data = dict(UserSerializer(request.user).data)
    user_data['is_admin'] = is_admin_user(request.user)
    user_data['context'] = get_user_context(request).get_state().as_dict()
    return Response(user_data)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list_create(request):
    """List all users or create a new user"""
    if not is_admin_user(request.user):
        return _forbidden()
    if request.method == 'GET':
        return query_response(CacheKey(Entity.USERS), users_service.get_all)

    mutation = Mutation(
        users_service.create,
        invalidates=[(Entity.USERS,)],
        error_message='No se pudo crear el usuario',
    )
    return mutation_response(mutation.mutate(request.data), status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    if not is_admin_user(request.user) and request.user.pk != pk:
        return _forbidden()

    if request.method == 'GET':
        return query_response(CacheKey(Entity.USERS, pk), lambda: users_service.get(pk), QueryOptions(retry=0))
    elif request.method in ('PUT', 'PATCH'):
        extra = {}
        if 'plan' in request.data:
            # subscription changes go through an administrator
            if not is_admin_user(request.user):
                return _forbidden()
            plan_serializer = UserPlanSerializer(data={'plan': request.data.get('plan')})
            if not plan_serializer.is_valid():
                return Response(plan_serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            extra['plan'] = plan_serializer.validated_data['plan']
        mutation = Mutation(
            users_service.update,
            invalidates=[(Entity.USERS,)],
            error_message='No se pudo actualizar el usuario',
        )
        return mutation_response(mutation.mutate(pk, request.data, **extra))
    else:  # DELETE
        if not is_admin_user(request.user):
            return _forbidden()
        mutation = Mutation(
            users_service.delete,
            invalidates=[(Entity.USERS,)],
            error_message='No se pudo eliminar el usuario',
        )
        return mutation_response(mutation.mutate(pk), status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def user_role(request, pk):
    """Change a user's role (admin only)"""
    if not is_admin_user(request.user):
        return _forbidden()
    serializer = UserRoleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    mutation = Mutation(
        users_service.update_role,
        invalidates=[(Entity.USERS,)],
        error_message='No se pudo actualizar el rol',
    )
    return mutation_response(mutation.mutate(pk, serializer.validated_data['role']))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def plan_list(request):
    """Active subscription plans, cheapest first"""
    return query_response(CacheKey(Entity.PLANS), plans_service.get_all)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stats(request):
    """Dashboard counters for the current organization"""
    from archub.projects.services import projects_service
    from archub.projects.views import overview_scope

    scope, label = overview_scope(request)
    return query_response(
        CacheKey(Entity.STATS, label),
        lambda: projects_service.overview(**scope),
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recent_activities(request):
    """Latest activity feed entries for the current organization"""
    organization_id = scope_id(request, 'organization_id')
    try:
        limit = min(int(request.query_params.get('limit', RECENT_ACTIVITY_LIMIT)), 100)
    except ValueError:
        limit = RECENT_ACTIVITY_LIMIT

    if not organization_id and not is_admin_user(request.user):
        return Response([])

    def fetch():
        queryset = Activity.objects.select_related('user', 'project')
        if organization_id:
            queryset = queryset.filter(organization_id=organization_id)
        return [dict(row) for row in ActivitySerializer(queryset[:limit], many=True).data]

    return query_response(CacheKey(Entity.ACTIVITIES, organization_id or 'all', 'recent', limit), fetch)
