from rest_framework import serializers
from .models import Organization, OrganizationMember


class OrganizationSerializer(serializers.ModelSerializer):
    owner_name = serializers.CharField(source='owner.full_name', read_only=True)
    project_count = serializers.SerializerMethodField()
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Organization
        fields = [
            'id', 'name', 'description', 'address', 'phone', 'email',
            'owner', 'owner_name', 'is_active', 'created_at',
            'project_count', 'member_count'
        ]
        read_only_fields = ['owner', 'created_at']

    def get_project_count(self, obj):
        # annotated by the list queryset; counted directly otherwise
        count = getattr(obj, 'project_count', None)
        if count is None:
            count = obj.projects.filter(is_active=True).count()
        return count

    def get_member_count(self, obj):
        count = getattr(obj, 'member_count', None)
        if count is None:
            count = obj.members.count()
        return count


class OrganizationMemberSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.full_name', read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = OrganizationMember
        fields = ['id', 'organization', 'user', 'user_name', 'user_email', 'role', 'created_at']
        read_only_fields = ['created_at']
