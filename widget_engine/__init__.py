"""Widget Engine - dashboard widget data resolution and render dispatch.

Turns a widget descriptor plus its declarative configuration into a render
descriptor for the dashboard front end:
- Config interpretation (telemetry keys, buffer size, data-source type)
- Data shape normalization (static, live and JSON-object data)
- Guards for missing telemetry and missing data
- Registry-based dispatch with per-widget failure containment
"""

__version__ = "0.1.0"
