import django_filters
from django.db.models import Q
from decimal import Decimal, InvalidOperation

from .models import Movement


class MovementFilter(django_filters.FilterSet):
    """Filters for the movements list and its currency totals"""

    # description, concept, type or exact amount
    search = django_filters.CharFilter(method='filter_search', label='Search')
    currency = django_filters.ChoiceFilter(choices=Movement.CURRENCY_CHOICES)
    # root concept (Ingresos/Egresos/Ajustes)
    type = django_filters.UUIDFilter(method='filter_type', label='Type')
    date_from = django_filters.DateFilter(field_name='created_at_local', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at_local', lookup_expr='date__lte')

    class Meta:
        model = Movement
        fields = ['search', 'currency', 'type', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        query = (
            Q(description__icontains=search)
            | Q(concept__name__icontains=search)
            | Q(concept__parent__name__icontains=search)
        )
        try:
            query |= Q(amount=Decimal(search))
        except InvalidOperation:
            pass
        return queryset.filter(query)

    def filter_type(self, queryset, name, value):
        return queryset.filter(Q(concept_id=value) | Q(concept__parent_id=value))
