from django.contrib import admin
from .models import Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'client_name', 'status', 'progress', 'is_active', 'created_at']
    list_filter = ['status', 'is_active', 'organization']
    search_fields = ['name', 'client_name', 'city']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
