from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from archub.core.models import User
from archub.projects.models import Project
from archub.contacts.models import Contact
from archub.library.models import Task


class SiteLog(models.Model):
    """Daily site diary entry for a project"""
    WEATHER_CHOICES = [
        ('Soleado', 'Soleado'),
        ('Nublado', 'Nublado'),
        ('Lluvia', 'Lluvia'),
        ('Tormenta', 'Tormenta'),
    ]

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='site_logs')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='site_logs')
    log_date = models.DateField()
    weather = models.CharField(max_length=20, choices=WEATHER_CHOICES, blank=True, null=True)
    comments = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.project} - {self.log_date}"

    class Meta:
        db_table = 'site_logs'
        ordering = ['-log_date', '-id']
        verbose_name = 'registro de obra'
        verbose_name_plural = 'registros de obra'
        indexes = [
            models.Index(fields=['project', '-log_date'], name='site_logs_project_date_idx'),
        ]


class SiteLogTask(models.Model):
    site_log = models.ForeignKey(SiteLog, on_delete=models.CASCADE, related_name='tasks')
    task = models.ForeignKey(Task, on_delete=models.PROTECT, related_name='site_log_tasks')
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'), validators=[MinValueValidator(0)])
    notes = models.TextField(blank=True, null=True)

    def __str__(self):
        return f"{self.site_log} - {self.task}"

    class Meta:
        db_table = 'site_log_tasks'


class SiteLogAttendee(models.Model):
    site_log = models.ForeignKey(SiteLog, on_delete=models.CASCADE, related_name='attendees')
    contact = models.ForeignKey(Contact, on_delete=models.CASCADE, related_name='site_log_attendances')
    role = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return f"{self.site_log} - {self.contact}"

    class Meta:
        db_table = 'site_log_attendees'
        unique_together = [('site_log', 'contact')]


class SiteLogFile(models.Model):
    site_log = models.ForeignKey(SiteLog, on_delete=models.CASCADE, related_name='files')
    file_url = models.CharField(max_length=500)
    file_name = models.CharField(max_length=255)
    description = models.CharField(max_length=255, blank=True, null=True)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='site_log_files')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.file_name

    class Meta:
        db_table = 'site_log_files'
        ordering = ['-created_at', '-id']
