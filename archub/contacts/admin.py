from django.contrib import admin
from .models import Contact, ContactType, ContactTypeLink


class ContactTypeLinkInline(admin.TabularInline):
    model = ContactTypeLink
    extra = 0


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'company_name', 'email', 'phone', 'organization', 'created_at']
    list_filter = ['organization', 'types']
    search_fields = ['first_name', 'last_name', 'company_name', 'email', 'phone']
    ordering = ['-created_at']
    inlines = [ContactTypeLinkInline]


@admin.register(ContactType)
class ContactTypeAdmin(admin.ModelAdmin):
    list_display = ['name']
    search_fields = ['name']
