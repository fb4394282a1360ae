"""Minimal smoke tests for the project scaffolding."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration


def test_stats_package_imports() -> None:
    """Import the pure stats package and verify the public entry point exists."""

    from stats import parse_stats_payload

    assert callable(parse_stats_payload)


def test_django_project_loads() -> None:
    """Import and initialize Django to verify settings are valid."""

    import os

    import django
    from django.conf import settings

    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hydraStats.settings")
    django.setup()
    assert "core.apps.CoreConfig" in settings.INSTALLED_APPS
    assert settings.HYDRA_STATS_URL
