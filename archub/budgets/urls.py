from django.urls import path
from .views import budget_list_create, budget_detail, budget_tasks, budget_task_detail

urlpatterns = [
    path('budgets/', budget_list_create, name='budget-list-create'),
    path('budgets/<uuid:pk>/', budget_detail, name='budget-detail'),
    path('budgets/<uuid:pk>/tasks/', budget_tasks, name='budget-tasks'),
    path('budget-tasks/<uuid:pk>/', budget_task_detail, name='budget-task-detail'),
]
