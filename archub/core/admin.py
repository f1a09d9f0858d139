from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Plan, Activity


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'role', 'plan', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'is_staff', 'plan']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Archub', {'fields': ('role', 'plan')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Archub', {'fields': ('email', 'role', 'plan')}),
    )


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = ['name', 'price', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
    ordering = ['price']


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'organization', 'project', 'user', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['title', 'description', 'user__username']
    ordering = ['-created_at']
    readonly_fields = ['type', 'title', 'description', 'organization', 'project', 'user', 'created_at']
