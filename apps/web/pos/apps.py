"""Django app configuration for the Clover POS integration."""

from django.apps import AppConfig


class PosConfig(AppConfig):
    """Clover integration app configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.web.pos"
    verbose_name = "Clover Integration"
