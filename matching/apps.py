"""
Matching application configuration.
"""

from django.apps import AppConfig


class MatchingConfig(AppConfig):
    """Configuration for the manufacturer URL matching Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "matching"
    verbose_name = "Manufacturer URL Matching"
