import uuid

from django.conf import settings
from django.db import models
from archub.organizations.models import Organization


class CalendarEvent(models.Model):
    """Meeting, task, reminder or appointment on an organization's calendar"""
    TYPE_CHOICES = [
        ('meeting', 'Reunión'),
        ('task', 'Tarea'),
        ('reminder', 'Recordatorio'),
        ('appointment', 'Cita'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Baja'),
        ('medium', 'Media'),
        ('high', 'Alta'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='calendar_events')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    date = models.DateField()
    time = models.TimeField()
    duration = models.PositiveIntegerField(help_text='Minutos')
    location = models.CharField(max_length=255, blank=True, null=True)
    attendees = models.TextField(blank=True, null=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='meeting')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='calendar_events'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.date} {self.time:%H:%M} {self.title}"

    class Meta:
        db_table = 'calendar_events'
        ordering = ['date', 'time']
        verbose_name = 'evento'
        verbose_name_plural = 'eventos'
        indexes = [
            models.Index(fields=['organization', 'date'], name='calendar_org_date_idx'),
        ]
