import django_filters

from .models import CalendarEvent


class CalendarEventFilter(django_filters.FilterSet):
    """Date window and type for the calendar month view"""

    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')
    type = django_filters.ChoiceFilter(choices=CalendarEvent.TYPE_CHOICES)

    class Meta:
        model = CalendarEvent
        fields = ['date_from', 'date_to', 'type']
