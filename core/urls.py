"""URL configuration for core views."""

from __future__ import annotations

from django.urls import path

from core import views

app_name = "core"

urlpatterns = [
    path("", views.stats_dashboard, name="stats_dashboard"),
    path("stats/", views.stats_dashboard, name="stats"),
    path("api/stats/", views.stats_api, name="stats_api"),
]
