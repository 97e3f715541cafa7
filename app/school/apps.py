"""
Django app configuration for school.
"""

from django.apps import AppConfig


class SchoolConfig(AppConfig):
    """Students, classes and enrollments that tuition billing attaches to."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "school"
    verbose_name = "School"
