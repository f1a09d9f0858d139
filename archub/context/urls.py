from django.urls import path
from .views import context_detail, navigation_detail, publish_event, window_focus

urlpatterns = [
    path('context/', context_detail, name='context-detail'),
    path('context/navigation/', navigation_detail, name='context-navigation'),
    path('context/focus/', window_focus, name='context-focus'),
    path('events/', publish_event, name='events-publish'),
]
