from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    user_list_create, user_detail, user_role,
    plan_list, stats, recent_activities
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('users/<int:pk>/role/', user_role, name='user-role'),

    # Plan endpoints
    path('plans/', plan_list, name='plan-list'),

    # Dashboard endpoints
    path('stats/', stats, name='stats'),
    path('activities/recent/', recent_activities, name='activities-recent'),
]
