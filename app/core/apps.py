"""
Django app configuration for core.
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Infrastructure base classes; defines no concrete models."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Core"
