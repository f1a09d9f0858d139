from django.apps import AppConfig


class SitelogsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'archub.sitelogs'
