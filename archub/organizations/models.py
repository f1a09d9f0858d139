from django.db import models
from archub.core.models import User


class Organization(models.Model):
    """Tenant: a construction company owning projects, contacts and wallets"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    owner = models.ForeignKey(User, on_delete=models.PROTECT, related_name='owned_organizations')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'organizations'
        ordering = ['-created_at', '-id']
        verbose_name = 'organización'
        verbose_name_plural = 'organizaciones'


class OrganizationMember(models.Model):
    """Membership of a user in an organization"""
    ROLE_CHOICES = [
        ('owner', 'Owner'),
        ('admin', 'Admin'),
        ('member', 'Member'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='member')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} @ {self.organization} ({self.role})"

    class Meta:
        db_table = 'organization_members'
        ordering = ['created_at', 'id']
        verbose_name = 'miembro'
        verbose_name_plural = 'miembros'
        unique_together = [('organization', 'user')]
