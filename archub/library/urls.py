from django.urls import path
from .views import (
    unit_list_create, unit_detail,
    action_list_create, action_detail,
    task_category_tree, task_category_detail, task_category_move,
    material_list_create, material_detail, material_category_list_create,
    task_list_create, task_detail
)

urlpatterns = [
    # Unit endpoints
    path('units/', unit_list_create, name='unit-list-create'),
    path('units/<int:pk>/', unit_detail, name='unit-detail'),

    # Action endpoints
    path('actions/', action_list_create, name='action-list-create'),
    path('actions/<int:pk>/', action_detail, name='action-detail'),

    # Task category endpoints
    path('task-categories/', task_category_tree, name='task-category-tree'),
    path('task-categories/<int:pk>/', task_category_detail, name='task-category-detail'),
    path('task-categories/<int:pk>/move/', task_category_move, name='task-category-move'),

    # Material endpoints
    path('materials/', material_list_create, name='material-list-create'),
    path('materials/<int:pk>/', material_detail, name='material-detail'),
    path('material-categories/', material_category_list_create, name='material-category-list-create'),

    # Task endpoints
    path('tasks/', task_list_create, name='task-list-create'),
    path('tasks/<int:pk>/', task_detail, name='task-detail'),
]
