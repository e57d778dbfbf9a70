"""Widget type catalog — the closed set of dashboard widget tags.

Each entry classifies a tag for the render engine: buffered or latest-only
subscription, telemetry and data exemptions, and the binding/renderer pair
the dispatcher routes it to.
"""

from .registry import WidgetTypeRegistry, get_widget_type_registry
from .schemas import WidgetTypeDefinition, WidgetTypeSummary

__all__ = [
    "WidgetTypeDefinition",
    "WidgetTypeSummary",
    "WidgetTypeRegistry",
    "get_widget_type_registry",
]
