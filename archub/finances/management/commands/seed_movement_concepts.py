"""
Management command to create the movement types and their default categories
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from archub.core.cache_signals import suspend_cache_signals
from archub.core.query_cache import Entity, query_client
from archub.finances.models import MovementConcept

DEFAULT_CONCEPTS = {
    'Ingresos': [
        'Pago de Cliente',
        'Anticipo de Cliente',
        'Certificación',
        'Venta de Material',
    ],
    'Egresos': [
        'Materiales de Construcción',
        'Mano de Obra',
        'Herramientas y Equipos',
        'Transporte',
        'Servicios Profesionales',
        'Gastos Generales',
    ],
    'Ajustes': [
        'Corrección',
    ],
}


class Command(BaseCommand):
    help = "Creates the movement types (Ingresos, Egresos, Ajustes) and their default categories"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete concepts without movements before seeding',
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(self.style.SUCCESS("SEEDING MOVEMENT CONCEPTS"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        created_count = 0
        skipped_count = 0

        with suspend_cache_signals(), transaction.atomic():
            if options['clear']:
                self.stdout.write(self.style.WARNING("Clearing unused concepts..."))
                deleted, _ = MovementConcept.objects.filter(
                    parent__isnull=False, movements__isnull=True
                ).delete()
                self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} concept(s)."))

            for type_name, categories in DEFAULT_CONCEPTS.items():
                root, created = MovementConcept.objects.get_or_create(name=type_name, parent=None)
                if created:
                    created_count += 1
                    self.stdout.write(f"  + {type_name}")
                else:
                    skipped_count += 1

                for category_name in categories:
                    _, created = MovementConcept.objects.get_or_create(name=category_name, parent=root)
                    if created:
                        created_count += 1
                        self.stdout.write(f"    + {category_name}")
                    else:
                        skipped_count += 1

        query_client.invalidate(Entity.MOVEMENT_CONCEPTS)

        self.stdout.write(self.style.SUCCESS(f"Created: {created_count}"))
        self.stdout.write(f"Already present: {skipped_count}")
