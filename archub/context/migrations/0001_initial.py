# Generated manually for the UserPreferences model

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='UserPreferences',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('last_organization_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('last_project_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('last_budget_id', models.UUIDField(blank=True, null=True)),
                ('last_section', models.CharField(blank=True, default='', max_length=50)),
                ('last_view', models.CharField(blank=True, default='', max_length=50)),
                ('theme', models.CharField(choices=[('light', 'Light'), ('dark', 'Dark')], default='light', max_length=10)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='preferences', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_preferences',
            },
        ),
    ]
