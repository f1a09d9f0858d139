# Generated manually for the site log models

import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('projects', '0001_initial'),
        ('contacts', '0001_initial'),
        ('library', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SiteLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('log_date', models.DateField()),
                ('weather', models.CharField(blank=True, choices=[('Soleado', 'Soleado'), ('Nublado', 'Nublado'), ('Lluvia', 'Lluvia'), ('Tormenta', 'Tormenta')], max_length=20, null=True)),
                ('comments', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='site_logs', to=settings.AUTH_USER_MODEL)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='site_logs', to='projects.project')),
            ],
            options={
                'verbose_name': 'registro de obra',
                'verbose_name_plural': 'registros de obra',
                'db_table': 'site_logs',
                'ordering': ['-log_date', '-id'],
                'indexes': [models.Index(fields=['project', '-log_date'], name='site_logs_project_date_idx')],
            },
        ),
        migrations.CreateModel(
            name='SiteLogTask',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ('notes', models.TextField(blank=True, null=True)),
                ('site_log', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='sitelogs.sitelog')),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='site_log_tasks', to='library.task')),
            ],
            options={
                'db_table': 'site_log_tasks',
            },
        ),
        migrations.CreateModel(
            name='SiteLogAttendee',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(blank=True, max_length=100, null=True)),
                ('contact', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='site_log_attendances', to='contacts.contact')),
                ('site_log', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendees', to='sitelogs.sitelog')),
            ],
            options={
                'db_table': 'site_log_attendees',
                'unique_together': {('site_log', 'contact')},
            },
        ),
        migrations.CreateModel(
            name='SiteLogFile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file_url', models.CharField(max_length=500)),
                ('file_name', models.CharField(max_length=255)),
                ('description', models.CharField(blank=True, max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('site_log', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to='sitelogs.sitelog')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='site_log_files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'site_log_files',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
