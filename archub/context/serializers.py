from rest_framework import serializers
from .models import UserPreferences
from .navigation import Section, View


class UserContextUpdateSerializer(serializers.Serializer):
    organization_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    project_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    budget_id = serializers.UUIDField(required=False, allow_null=True)


class NavigationSerializer(serializers.Serializer):
    section = serializers.ChoiceField(choices=[s.value for s in Section])
    view = serializers.ChoiceField(choices=[v.value for v in View], required=False, allow_null=True)


class EventMessageSerializer(serializers.Serializer):
    type = serializers.CharField()
    detail = serializers.DictField(required=False)


class UserPreferencesSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserPreferences
        fields = [
            'last_organization_id', 'last_project_id', 'last_budget_id',
            'last_section', 'last_view', 'theme', 'updated_at'
        ]
        read_only_fields = fields
