from rest_framework import serializers
from .models import Contact, ContactType


class ContactTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContactType
        fields = ['id', 'name']


class ContactSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    contact_types = ContactTypeSerializer(source='types', many=True, read_only=True)

    class Meta:
        model = Contact
        fields = [
            'id', 'organization', 'first_name', 'last_name', 'full_name',
            'company_name', 'email', 'phone', 'location', 'notes',
            'contact_types', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class ContactFormSerializer(serializers.Serializer):
    """Shape of the contact form: contact fields plus the selected type ids"""
    contact_types = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
