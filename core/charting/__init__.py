"""Chart view-models for the statistics dashboard.

Charts are described by `ChartViewModel` objects built from the statistics
payload rather than by bespoke view logic. This package contains the schema,
the builder, and the rendering boundary used by the dashboard views.
"""
