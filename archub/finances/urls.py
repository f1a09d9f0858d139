from django.urls import path
from .views import (
    movement_list_create, movement_detail, movement_summary,
    movement_concept_list_create, wallet_list
)

urlpatterns = [
    path('movements/', movement_list_create, name='movement-list-create'),
    path('movements/summary/', movement_summary, name='movement-summary'),
    path('movements/<uuid:pk>/', movement_detail, name='movement-detail'),
    path('movement-concepts/', movement_concept_list_create, name='movement-concept-list-create'),
    path('wallets/', wallet_list, name='wallet-list'),
]
