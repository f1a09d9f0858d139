from rest_framework import serializers
from .models import SiteLog, SiteLogTask, SiteLogAttendee, SiteLogFile


class SiteLogTaskSerializer(serializers.ModelSerializer):
    task_name = serializers.CharField(source='task.name', read_only=True)
    unit_name = serializers.CharField(source='task.unit.name', read_only=True, allow_null=True)

    class Meta:
        model = SiteLogTask
        fields = ['id', 'task', 'task_name', 'unit_name', 'quantity', 'notes']


class SiteLogAttendeeSerializer(serializers.ModelSerializer):
    contact_name = serializers.CharField(source='contact.full_name', read_only=True)

    class Meta:
        model = SiteLogAttendee
        fields = ['id', 'contact', 'contact_name', 'role']


class SiteLogFileSerializer(serializers.ModelSerializer):
    uploaded_by_name = serializers.CharField(source='uploaded_by.full_name', read_only=True, allow_null=True)

    class Meta:
        model = SiteLogFile
        fields = ['id', 'site_log', 'file_url', 'file_name', 'description', 'uploaded_by', 'uploaded_by_name', 'created_at']
        read_only_fields = ['uploaded_by', 'created_at']


class SiteLogSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source='project.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, allow_null=True)
    tasks = SiteLogTaskSerializer(many=True, read_only=True)
    attendees = SiteLogAttendeeSerializer(many=True, read_only=True)
    files = SiteLogFileSerializer(many=True, read_only=True)

    class Meta:
        model = SiteLog
        fields = [
            'id', 'project', 'project_name', 'created_by', 'created_by_name',
            'log_date', 'weather', 'comments', 'tasks', 'attendees', 'files', 'created_at'
        ]
        read_only_fields = ['created_by', 'created_at']


class SiteLogFormSerializer(serializers.Serializer):
    """Multipart/JSON form: the log plus its task and attendee rows"""
    project = serializers.IntegerField(required=False, allow_null=True)
    log_date = serializers.DateField()
    weather = serializers.ChoiceField(choices=SiteLog.WEATHER_CHOICES, required=False, allow_null=True, allow_blank=True)
    comments = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    tasks = SiteLogTaskSerializer(many=True, required=False)
    attendees = SiteLogAttendeeSerializer(many=True, required=False)
