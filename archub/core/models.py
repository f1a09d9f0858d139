import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class Plan(models.Model):
    """Subscription plans"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    features = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'plans'
        ordering = ['price']
        verbose_name = 'plan'
        verbose_name_plural = 'planes'


class User(AbstractUser):
    """Extended user model with role and plan"""
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('user', 'User'),
    ]

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='user')
    plan = models.ForeignKey(Plan, on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    class Meta:
        db_table = 'users'
        verbose_name = 'usuario'
        verbose_name_plural = 'usuarios'


class Activity(models.Model):
    """Recent activity feed entries (project created, budget updated, ...)"""
    TYPE_CHOICES = [
        ('project_created', 'Project Created'),
        ('project_updated', 'Project Updated'),
        ('site_log_created', 'Site Log Created'),
        ('movement_created', 'Movement Created'),
        ('budget_updated', 'Budget Updated'),
        ('contact_created', 'Contact Created'),
    ]

    type = models.CharField(max_length=50, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    project = models.ForeignKey('projects.Project', on_delete=models.SET_NULL, null=True, blank=True, related_name='activities')
    organization = models.ForeignKey('organizations.Organization', on_delete=models.CASCADE, related_name='activities')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='activities')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'activities'
        ordering = ['-created_at', '-id']
        verbose_name = 'actividad'
        verbose_name_plural = 'actividades'
        indexes = [
            models.Index(fields=['-created_at'], name='activities_created_idx'),
            models.Index(fields=['type'], name='activities_type_idx'),
        ]
