from django.urls import path
from .views import site_log_list_create, site_log_detail, site_log_files, site_log_file_detail

urlpatterns = [
    path('site-logs/', site_log_list_create, name='site-log-list-create'),
    path('site-logs/<int:pk>/', site_log_detail, name='site-log-detail'),
    path('site-logs/<int:pk>/files/', site_log_files, name='site-log-files'),
    path('site-log-files/<int:pk>/', site_log_file_detail, name='site-log-file-detail'),
]
