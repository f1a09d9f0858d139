from django.urls import path
from .views import organization_list_create, organization_detail, organization_members

urlpatterns = [
    path('organizations/', organization_list_create, name='organization-list-create'),
    path('organizations/<int:pk>/', organization_detail, name='organization-detail'),
    path('organizations/<int:pk>/members/', organization_members, name='organization-members'),
]
