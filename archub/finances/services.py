import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.db.models import OuterRef, Subquery
from rest_framework.exceptions import ValidationError

from archub.core.services import ModelService, ServiceError
from .filters import MovementFilter
from .models import Wallet, OrganizationWallet, MovementConcept, Movement
from .serializers import WalletSerializer, MovementConceptSerializer, MovementSerializer
from .summary import totals_by_currency

logger = logging.getLogger(__name__)


class MovementsService(ModelService):
    model = Movement
    serializer_class = MovementSerializer
    ordering = ('-created_at_local',)
    select_related = ('project', 'concept__parent', 'wallet', 'related_contact', 'related_task')
    scope_fields = {'project_id': 'project_id'}
    label = 'movimientos'
    not_found_message = 'Movimiento no encontrado'

    def validate_filters(self, params):
        """Raise a 400 ValidationError for filter values MovementFilter rejects."""
        filterset = MovementFilter(params, queryset=self.model.objects.none())
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)

    def filter(self, params, **scope):
        """Scoped movements narrowed by MovementFilter query params."""
        self.validate_filters(params)
        try:
            queryset = self.filter_scope(self.get_queryset(), **scope)
            return self.serialize(MovementFilter(params, queryset=queryset).qs, many=True)
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error fetching {self.label}: {e}")
            raise ServiceError(f"Error al obtener los {self.label}", original=e) from e

    def summary(self, params, **scope):
        rows = self.filter(params, **scope)
        return {'count': len(rows), 'totals': totals_by_currency(rows)}


class MovementConceptsService(ModelService):
    model = MovementConcept
    serializer_class = MovementConceptSerializer
    ordering = ('name',)
    select_related = ('parent',)
    scope_fields = {'parent_id': 'parent_id'}
    label = 'conceptos'

    def get_types(self):
        """Root concepts: Ingresos, Egresos, Ajustes."""
        try:
            return self.serialize(self.get_queryset().filter(parent__isnull=True), many=True)
        except DatabaseError as e:
            logger.error(f"Error fetching movement types: {e}")
            raise ServiceError('Error al obtener los tipos de movimiento', original=e) from e

    def get_categories_by_type(self, type_id):
        return self.get_all(parent_id=type_id)


class WalletsService(ModelService):
    model = Wallet
    serializer_class = WalletSerializer
    ordering = ('name',)
    base_filters = {'is_active': True}
    scope_fields = {'organization_id': 'organization_wallets__organization_id'}
    label = 'billeteras'

    def get_all(self, **scope):
        organization_id = scope.get('organization_id')
        if not organization_id:
            return super().get_all(**scope)
        try:
            queryset = self.filter_scope(self.get_queryset(), **scope).annotate(
                is_default=Subquery(
                    OrganizationWallet.objects.filter(
                        wallet=OuterRef('pk'), organization_id=organization_id
                    ).values('is_default')[:1]
                )
            )
            return self.serialize(queryset, many=True)
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error fetching {self.label}: {e}")
            raise ServiceError(f"Error al obtener las {self.label}", original=e) from e


movements_service = MovementsService()
movement_concepts_service = MovementConceptsService()
wallets_service = WalletsService()
