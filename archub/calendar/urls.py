from django.urls import path
from .views import calendar_event_list_create, calendar_event_detail, timeline_events

urlpatterns = [
    path('calendar-events/', calendar_event_list_create, name='calendar-event-list-create'),
    path('calendar-events/<uuid:pk>/', calendar_event_detail, name='calendar-event-detail'),
    path('timeline-events/', timeline_events, name='timeline-events'),
]
