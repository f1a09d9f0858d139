"""
Django management command to drop every cached query.

Usage:
    python manage.py clear_query_cache
"""
from django.core.management.base import BaseCommand
from django.conf import settings

from archub.core.query_cache import Entity, query_client


class Command(BaseCommand):
    help = 'Invalidate all query cache entries so the next read refetches'

    def handle(self, *args, **options):
        self.stdout.write(f"Cache Backend: {settings.CACHES['default']['BACKEND']}")
        query_client.invalidate_all()
        for entity in Entity:
            self.stdout.write(f"  ✓ Invalidated: {entity.value}")
        self.stdout.write(self.style.SUCCESS(f"Invalidated {len(Entity)} query cache entities."))
