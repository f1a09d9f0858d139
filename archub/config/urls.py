"""
URL configuration for the Archub backend.

Every app mounts its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Archub Admin"
admin.site.site_title = "Archub Admin Portal"
admin.site.index_title = "Gestión de obras"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('archub.core.urls')),
    path('api/v1/', include('archub.organizations.urls')),
    path('api/v1/', include('archub.projects.urls')),
    path('api/v1/', include('archub.contacts.urls')),
    path('api/v1/', include('archub.library.urls')),
    path('api/v1/', include('archub.budgets.urls')),
    path('api/v1/', include('archub.sitelogs.urls')),
    path('api/v1/', include('archub.finances.urls')),
    path('api/v1/', include('archub.calendar.urls')),
    path('api/v1/', include('archub.context.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
