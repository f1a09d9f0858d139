from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'archub.core'

    def ready(self):
        """Import signals when app is ready"""
        import archub.core.cache_signals  # noqa: F401  # Query cache invalidation signals
