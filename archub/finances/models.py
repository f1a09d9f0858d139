import uuid
from decimal import Decimal

from django.db import models
from archub.organizations.models import Organization
from archub.projects.models import Project
from archub.contacts.models import Contact
from archub.library.models import Task


class Wallet(models.Model):
    """Where money sits: cash box, bank account, ..."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'wallets'
        ordering = ['name']
        verbose_name = 'billetera'
        verbose_name_plural = 'billeteras'


class OrganizationWallet(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='organization_wallets')
    wallet = models.ForeignKey(Wallet, on_delete=models.CASCADE, related_name='organization_wallets')
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.organization} - {self.wallet}"

    class Meta:
        db_table = 'organization_wallets'
        unique_together = [('organization', 'wallet')]


class MovementConcept(models.Model):
    """
    Two-level concept tree.

    Root concepts are the movement types (Ingresos, Egresos, Ajustes);
    their children are the categories a movement is booked against.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    parent = models.ForeignKey('self', on_delete=models.CASCADE, null=True, blank=True, related_name='children')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def get_root(self):
        node, seen = self, set()
        while node.parent_id is not None and node.pk not in seen:
            seen.add(node.pk)
            node = node.parent
        return node

    class Meta:
        db_table = 'movement_concepts'
        ordering = ['name']
        verbose_name = 'concepto'
        verbose_name_plural = 'conceptos'
        unique_together = [('parent', 'name')]


class Movement(models.Model):
    """Income, expense or adjustment booked against a project"""
    CURRENCY_CHOICES = [
        ('ARS', 'Pesos'),
        ('USD', 'Dólares'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='movements')
    concept = models.ForeignKey(MovementConcept, on_delete=models.PROTECT, related_name='movements')
    wallet = models.ForeignKey(Wallet, on_delete=models.SET_NULL, null=True, blank=True, related_name='movements')
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='ARS')
    description = models.TextField(blank=True, null=True)
    related_contact = models.ForeignKey(Contact, on_delete=models.SET_NULL, null=True, blank=True, related_name='movements')
    related_task = models.ForeignKey(Task, on_delete=models.SET_NULL, null=True, blank=True, related_name='movements')
    file_url = models.CharField(max_length=500, blank=True, null=True)
    created_at_local = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.concept} {self.currency} {self.amount}"

    class Meta:
        db_table = 'movements'
        ordering = ['-created_at_local']
        verbose_name = 'movimiento'
        verbose_name_plural = 'movimientos'
        indexes = [
            models.Index(fields=['project', '-created_at_local'], name='movements_project_date_idx'),
        ]
