from django.contrib import admin
from .models import Wallet, OrganizationWallet, MovementConcept, Movement


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']


@admin.register(OrganizationWallet)
class OrganizationWalletAdmin(admin.ModelAdmin):
    list_display = ['organization', 'wallet', 'is_default']
    list_filter = ['is_default']


@admin.register(MovementConcept)
class MovementConceptAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'created_at']
    list_filter = ['parent']
    search_fields = ['name']


@admin.register(Movement)
class MovementAdmin(admin.ModelAdmin):
    list_display = ['created_at_local', 'project', 'concept', 'amount', 'currency', 'wallet']
    list_filter = ['currency', 'concept__parent']
    search_fields = ['description', 'concept__name', 'project__name']
    raw_id_fields = ['related_contact', 'related_task']
    date_hierarchy = 'created_at_local'
