from django.contrib import admin
from .models import SiteLog, SiteLogTask, SiteLogAttendee, SiteLogFile


class SiteLogTaskInline(admin.TabularInline):
    model = SiteLogTask
    extra = 0
    raw_id_fields = ['task']


class SiteLogAttendeeInline(admin.TabularInline):
    model = SiteLogAttendee
    extra = 0
    raw_id_fields = ['contact']


class SiteLogFileInline(admin.TabularInline):
    model = SiteLogFile
    extra = 0
    readonly_fields = ['file_url', 'uploaded_by', 'created_at']


@admin.register(SiteLog)
class SiteLogAdmin(admin.ModelAdmin):
    list_display = ['project', 'log_date', 'weather', 'created_by', 'created_at']
    list_filter = ['weather', 'log_date']
    search_fields = ['project__name', 'comments']
    date_hierarchy = 'log_date'
    inlines = [SiteLogTaskInline, SiteLogAttendeeInline, SiteLogFileInline]
