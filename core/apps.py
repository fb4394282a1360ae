"""App configuration for the statistics dashboard app."""

from __future__ import annotations

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Configuration for the `core` app (statistics dashboard)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Statistics dashboard"
