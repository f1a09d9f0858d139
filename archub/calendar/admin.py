from django.contrib import admin
from .models import CalendarEvent


@admin.register(CalendarEvent)
class CalendarEventAdmin(admin.ModelAdmin):
    list_display = ['title', 'date', 'time', 'type', 'priority', 'organization']
    list_filter = ['type', 'priority', 'organization']
    search_fields = ['title', 'description', 'location']
    ordering = ['-date', '-time']
