from rest_framework import serializers
from .models import CalendarEvent


class CalendarEventSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, allow_null=True)

    class Meta:
        model = CalendarEvent
        fields = [
            'id', 'organization', 'title', 'description', 'date', 'time', 'duration',
            'location', 'attendees', 'type', 'priority', 'created_by', 'created_by_name',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']
        extra_kwargs = {
            'title': {'error_messages': {'blank': 'El título es requerido'}},
            'duration': {'min_value': 1},
        }


class TimelineEventSerializer(serializers.Serializer):
    id = serializers.CharField()
    date = serializers.DateField()
    type = serializers.ChoiceField(choices=['sitelog', 'movement'])
    title = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    currency = serializers.CharField(allow_null=True)
