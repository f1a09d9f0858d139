from django.urls import path
from .views import contact_list_create, contact_detail, contact_types_of_contact, contact_type_list_create

urlpatterns = [
    path('contacts/', contact_list_create, name='contact-list-create'),
    path('contacts/<int:pk>/', contact_detail, name='contact-detail'),
    path('contacts/<int:pk>/types/', contact_types_of_contact, name='contact-types-of-contact'),
    path('contact-types/', contact_type_list_create, name='contact-type-list-create'),
]
