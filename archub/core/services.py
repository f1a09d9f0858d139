"""
CRUD façades.

Each domain service wraps one model: it validates input through the
model's serializer, runs the write inside a savepoint, resolves joined
display fields through the serializer, and turns persistence failures into
ServiceError carrying the database message. Nothing here retries, and a
failed read returns no partial results.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from .models import User, Plan
from .serializers import PlanSerializer, UserSerializer, UserCreateSerializer, UserRoleSerializer

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """A persistence read or write failed; ``original`` keeps the provider message."""

    def __init__(self, message, original=None):
        super().__init__(message)
        self.message = message
        self.original = str(original) if original is not None else None

    def __str__(self):
        if self.original:
            return f"{self.message}: {self.original}"
        return self.message


class NotFound(ServiceError):
    """An id-scoped lookup matched nothing."""


class ModelService:
    """Base façade. Subclasses set ``model`` and ``serializer_class``."""
    model = None
    serializer_class = None
    # used by create when the input shape differs from the output
    create_serializer_class = None
    ordering = ('-created_at',)
    select_related = ()
    prefetch_related = ()
    # scope keyword -> ORM lookup, e.g. {'project_id': 'project_id'}
    scope_fields = {}
    base_filters = {}
    label = 'registros'
    not_found_message = None

    def get_queryset(self):
        queryset = self.model.objects.filter(**self.base_filters)
        if self.select_related:
            queryset = queryset.select_related(*self.select_related)
        if self.prefetch_related:
            queryset = queryset.prefetch_related(*self.prefetch_related)
        return queryset.order_by(*self.ordering)

    def filter_scope(self, queryset, **scope):
        for name, value in scope.items():
            if value is None or value == '':
                continue
            lookup = self.scope_fields.get(name)
            if lookup is None:
                logger.debug(f"{type(self).__name__} ignores unknown scope '{name}'")
                continue
            queryset = queryset.filter(**{lookup: value})
        return queryset

    def serialize(self, instance_or_queryset, many=False):
        data = self.serializer_class(instance_or_queryset, many=many).data
        if many:
            return [dict(row) for row in data]
        return dict(data)

    def get_all(self, **scope):
        try:
            queryset = self.filter_scope(self.get_queryset(), **scope)
            return self.serialize(queryset, many=True)
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error fetching {self.label}: {e}")
            raise ServiceError(f"Error al obtener los {self.label}", original=e) from e

    def get_object(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except (self.model.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound(self.not_found_message or f"{self.model._meta.verbose_name.capitalize()} no encontrado")

    def get(self, pk):
        return self.serialize(self.get_object(pk))

    def perform_save(self, serializer, **extra):
        return serializer.save(**extra)

    def create(self, data, **extra):
        serializer = (self.create_serializer_class or self.serializer_class)(data=data)
        serializer.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                instance = self.perform_save(serializer, **extra)
        except DatabaseError as e:
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise ServiceError(f"Error al crear {self.model._meta.verbose_name}", original=e) from e
        logger.info(f"Created {self.model.__name__} {instance.pk}")
        return self.get(instance.pk)

    def update(self, pk, partial, **extra):
        instance = self.get_object(pk)
        serializer = self.serializer_class(instance, data=partial, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                instance = self.perform_save(serializer, **extra)
        except DatabaseError as e:
            logger.error(f"Error updating {self.model.__name__} {pk}: {e}")
            raise ServiceError(f"Error al actualizar {self.model._meta.verbose_name}", original=e) from e
        logger.info(f"Updated {self.model.__name__} {pk}")
        return self.get(instance.pk)

    def delete(self, pk):
        instance = self.get_object(pk)
        try:
            with transaction.atomic():
                instance.delete()
        except DatabaseError as e:
            logger.error(f"Error deleting {self.model.__name__} {pk}: {e}")
            raise ServiceError(f"Error al eliminar {self.model._meta.verbose_name}", original=e) from e
        logger.info(f"Deleted {self.model.__name__} {pk}")


class UsersService(ModelService):
    model = User
    serializer_class = UserSerializer
    create_serializer_class = UserCreateSerializer
    select_related = ('plan',)
    label = 'usuarios'

    def update_role(self, pk, role):
        serializer = UserRoleSerializer(data={'role': role})
        serializer.is_valid(raise_exception=True)
        instance = self.get_object(pk)
        instance.role = serializer.validated_data['role']
        try:
            instance.save(update_fields=['role', 'updated_at'])
        except DatabaseError as e:
            logger.error(f"Error updating role of User {pk}: {e}")
            raise ServiceError("Error al actualizar el rol", original=e) from e
        logger.info(f"User {pk} role set to {instance.role}")
        return self.get(pk)


class PlansService(ModelService):
    model = Plan
    serializer_class = PlanSerializer
    ordering = ('price', 'name')
    base_filters = {'is_active': True}
    label = 'planes'


users_service = UsersService()
plans_service = PlansService()
