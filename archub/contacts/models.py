import uuid

from django.db import models
from archub.organizations.models import Organization


class ContactType(models.Model):
    """Role a contact can play: client, supplier, subcontractor, ..."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'contact_types'
        ordering = ['name']
        verbose_name = 'tipo de contacto'
        verbose_name_plural = 'tipos de contacto'


class Contact(models.Model):
    """Person or company an organization works with"""
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='contacts')
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True, null=True)
    company_name = models.CharField(max_length=200, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    location = models.CharField(max_length=255, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    types = models.ManyToManyField(ContactType, through='ContactTypeLink', related_name='contacts', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()

    class Meta:
        db_table = 'contacts'
        ordering = ['-created_at', '-id']
        verbose_name = 'contacto'
        verbose_name_plural = 'contactos'
        indexes = [
            models.Index(fields=['organization', '-created_at'], name='contacts_org_created_idx'),
        ]


class ContactTypeLink(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    contact = models.ForeignKey(Contact, on_delete=models.CASCADE, related_name='type_links')
    type = models.ForeignKey(ContactType, on_delete=models.CASCADE, related_name='links')

    def __str__(self):
        return f"{self.contact} - {self.type}"

    class Meta:
        db_table = 'contact_type_links'
        unique_together = [('contact', 'type')]
