from django.db import models
from archub.core.models import User


class UserPreferences(models.Model):
    """Durable copy of a user's session context and navigation.

    The ids are plain columns: the context store never validates that the
    project belongs to the organization, so neither does the table.
    """
    THEME_CHOICES = [
        ('light', 'Light'),
        ('dark', 'Dark'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='preferences')
    last_organization_id = models.PositiveBigIntegerField(null=True, blank=True)
    last_project_id = models.PositiveBigIntegerField(null=True, blank=True)
    last_budget_id = models.UUIDField(null=True, blank=True)
    last_section = models.CharField(max_length=50, blank=True, default='')
    last_view = models.CharField(max_length=50, blank=True, default='')
    theme = models.CharField(max_length=10, choices=THEME_CHOICES, default='light')
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Preferences({self.user_id})"

    class Meta:
        db_table = 'user_preferences'
