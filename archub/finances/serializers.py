from rest_framework import serializers
from .models import Wallet, OrganizationWallet, MovementConcept, Movement


class WalletSerializer(serializers.ModelSerializer):
    is_default = serializers.SerializerMethodField()

    class Meta:
        model = Wallet
        fields = ['id', 'name', 'is_active', 'is_default', 'created_at']
        read_only_fields = ['created_at']

    def get_is_default(self, obj):
        return bool(getattr(obj, 'is_default', False))


class OrganizationWalletSerializer(serializers.ModelSerializer):
    wallet_name = serializers.CharField(source='wallet.name', read_only=True)

    class Meta:
        model = OrganizationWallet
        fields = ['id', 'organization', 'wallet', 'wallet_name', 'is_default', 'created_at']
        read_only_fields = ['created_at']


class MovementConceptSerializer(serializers.ModelSerializer):
    parent_name = serializers.CharField(source='parent.name', read_only=True, allow_null=True)

    class Meta:
        model = MovementConcept
        fields = ['id', 'name', 'parent', 'parent_name', 'created_at']
        read_only_fields = ['created_at']


class MovementSerializer(serializers.ModelSerializer):
    concept_name = serializers.CharField(source='concept.name', read_only=True)
    parent_concept_name = serializers.CharField(source='concept.parent.name', read_only=True, allow_null=True)
    type_id = serializers.SerializerMethodField()
    type_name = serializers.SerializerMethodField()
    wallet_name = serializers.CharField(source='wallet.name', read_only=True, allow_null=True)
    related_contact_name = serializers.CharField(source='related_contact.full_name', read_only=True, allow_null=True)
    related_task_name = serializers.CharField(source='related_task.name', read_only=True, allow_null=True)
    project_name = serializers.CharField(source='project.name', read_only=True)

    class Meta:
        model = Movement
        fields = [
            'id', 'project', 'project_name', 'concept', 'concept_name', 'parent_concept_name',
            'type_id', 'type_name', 'wallet', 'wallet_name', 'amount', 'currency', 'description',
            'related_contact', 'related_contact_name', 'related_task', 'related_task_name',
            'file_url', 'created_at_local', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_type_id(self, obj):
        return str(obj.concept.get_root().pk)

    def get_type_name(self, obj):
        return obj.concept.get_root().name

    def validate_concept(self, value):
        if value.parent_id is None:
            raise serializers.ValidationError('Debe seleccionar una categoría válida.')
        return value
