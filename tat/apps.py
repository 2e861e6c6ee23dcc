"""
TAT reporting app config
"""

from django.apps import AppConfig


class TatConfig(AppConfig):
    """Turnaround-time reporting (no models of its own)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "tat"
    verbose_name = "TAT Reports"
