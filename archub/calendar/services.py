import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from archub.core.services import ModelService, ServiceError
from archub.finances.models import Movement
from archub.sitelogs.models import SiteLog
from .filters import CalendarEventFilter
from .models import CalendarEvent
from .serializers import CalendarEventSerializer, TimelineEventSerializer

logger = logging.getLogger(__name__)


class CalendarEventsService(ModelService):
    model = CalendarEvent
    serializer_class = CalendarEventSerializer
    ordering = ('date', 'time')
    select_related = ('created_by',)
    scope_fields = {'organization_id': 'organization_id'}
    label = 'eventos'
    not_found_message = 'Evento no encontrado'

    def validate_filters(self, params):
        filterset = CalendarEventFilter(params, queryset=self.model.objects.none())
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)

    def filter(self, params, **scope):
        self.validate_filters(params)
        try:
            queryset = self.filter_scope(self.get_queryset(), **scope)
            return self.serialize(CalendarEventFilter(params, queryset=queryset).qs, many=True)
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error fetching {self.label}: {e}")
            raise ServiceError(f"Error al obtener los {self.label}", original=e) from e


class TimelineService:
    """Site logs and movements of one project as dated events, oldest first."""

    def get_events(self, project_id):
        try:
            site_logs = list(SiteLog.objects.filter(project_id=project_id).order_by('log_date', 'id'))
            movements = list(
                Movement.objects.filter(project_id=project_id)
                .select_related('concept')
                .order_by('created_at_local')
            )
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error fetching timeline for project {project_id}: {e}")
            raise ServiceError("Error al obtener la línea de tiempo", original=e) from e

        events = [
            {
                'id': f"sitelog-{log.id}",
                'date': log.log_date,
                'type': 'sitelog',
                'title': 'Bitácora de Obra',
                'description': log.comments,
                'amount': None,
                'currency': None,
            }
            for log in site_logs
        ]
        events.extend(
            {
                'id': f"movement-{movement.id}",
                'date': timezone.localtime(movement.created_at_local).date(),
                'type': 'movement',
                'title': movement.concept.name,
                'description': movement.description,
                'amount': movement.amount,
                'currency': movement.currency,
            }
            for movement in movements
        )
        # stable: site logs stay ahead of movements on the same day
        events.sort(key=lambda event: event['date'])
        logger.debug(f"Timeline for project {project_id}: {len(events)} events")
        return [dict(row) for row in TimelineEventSerializer(events, many=True).data]


calendar_events_service = CalendarEventsService()
timeline_service = TimelineService()
