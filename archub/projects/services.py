import logging
from decimal import Decimal

from django.db import DatabaseError
from django.db.models import Avg, Count, Q, Sum

from archub.core.services import ModelService, ServiceError
from .models import Project
from .serializers import ProjectSerializer, ProjectOverviewSerializer

logger = logging.getLogger(__name__)


class ProjectsService(ModelService):
    model = Project
    serializer_class = ProjectSerializer
    ordering = ('-created_at', '-id')
    select_related = ('organization', 'created_by')
    scope_fields = {
        'organization_id': 'organization_id',
        'status': 'status',
        'user_id': 'organization__members__user_id',
    }
    base_filters = {'is_active': True}
    label = 'proyectos'

    def overview(self, **scope):
        """Project counters: total, active, budget sum and average progress."""
        queryset = self.filter_scope(self.model.objects.filter(**self.base_filters), **scope)
        try:
            totals = queryset.aggregate(
                total_projects=Count('id'),
                active_projects=Count('id', filter=Q(status='active')),
                total_budget=Sum('budget'),
                average_progress=Avg('progress'),
            )
        except (DatabaseError, ValueError) as e:
            logger.error(f"Error computing projects overview: {e}")
            raise ServiceError("Error al obtener el resumen de proyectos", original=e) from e
        totals['total_budget'] = totals['total_budget'] or Decimal('0.00')
        totals['average_progress'] = float(totals['average_progress'] or 0)
        return dict(ProjectOverviewSerializer(totals).data)


projects_service = ProjectsService()
