"""Widget data resolution: interpreter, normalizer and guards.

Turns a widget descriptor, its configuration and the current live sample
view into the normalized ``{data, dataKeys}`` input and a guard outcome.
"""

from .guards import evaluate_guards, is_empty_data
from .interpreter import (
    CHART_BUFFER_SIZE,
    DEFAULT_BUFFER_SIZE,
    ConfigDecodeError,
    decode_widget_config,
    extract_telemetry_keys,
    interpret,
)
from .normalizer import NormalizerMemo, normalize
from .schemas import (
    DataSource,
    GuardOutcome,
    InterpretedConfig,
    JsonObjectSource,
    NormalizedRenderInput,
    TelemetrySource,
    WidgetConfig,
    WidgetDescriptor,
)

__all__ = [
    "CHART_BUFFER_SIZE",
    "DEFAULT_BUFFER_SIZE",
    "ConfigDecodeError",
    "DataSource",
    "GuardOutcome",
    "InterpretedConfig",
    "JsonObjectSource",
    "NormalizedRenderInput",
    "NormalizerMemo",
    "TelemetrySource",
    "WidgetConfig",
    "WidgetDescriptor",
    "decode_widget_config",
    "evaluate_guards",
    "extract_telemetry_keys",
    "interpret",
    "is_empty_data",
    "normalize",
]
