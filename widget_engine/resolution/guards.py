"""Guard evaluator — decides whether a widget renders or shows a placeholder.

Two guards run before dispatch, always in this order:
- no telemetry: telemetry mode with an empty key set
- no data: the normalized data is empty

Each guard has its own exemption list in the widget type catalog.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from widget_engine.resolution.schemas import (
    GuardOutcome,
    InterpretedConfig,
    NormalizedRenderInput,
    WidgetConfig,
    WidgetDescriptor,
)
from widget_engine.widget_types.registry import (
    WidgetTypeRegistry,
    get_widget_type_registry,
)

logger = logging.getLogger(__name__)

NO_TELEMETRY_MESSAGE = "No telemetry keys selected."
WAITING_FOR_DATA_MESSAGE = "Waiting for data..."


def is_empty_data(data: Any) -> bool:
    """True for None, an empty string/sequence or a mapping without keys."""
    if data is None:
        return True
    if isinstance(data, (str, bytes)):
        return len(data) == 0
    if isinstance(data, (Mapping, Sequence)):
        return len(data) == 0
    return False


def no_telemetry_guard(
    widget_type: str,
    json_object_mode: bool,
    telemetry_keys: list[str],
    registry: Optional[WidgetTypeRegistry] = None,
) -> bool:
    """True when the widget needs telemetry keys and none are selected."""
    registry = registry or get_widget_type_registry()
    return (
        not json_object_mode
        and not telemetry_keys
        and not registry.is_telemetry_exempt(widget_type)
    )


def no_data_guard(
    widget_type: str,
    data: Any,
    registry: Optional[WidgetTypeRegistry] = None,
) -> bool:
    """True when the widget needs data and none has arrived."""
    registry = registry or get_widget_type_registry()
    return is_empty_data(data) and not registry.is_data_exempt(widget_type)


def evaluate_guards(
    widget: WidgetDescriptor,
    config: WidgetConfig,
    interpreted: InterpretedConfig,
    normalized: NormalizedRenderInput,
    registry: Optional[WidgetTypeRegistry] = None,
) -> GuardOutcome:
    """Run both guards in order and return the first that fires."""
    if no_telemetry_guard(
        widget.type, config.is_json_object_mode, interpreted.telemetry_keys, registry
    ):
        return GuardOutcome.NO_TELEMETRY
    if no_data_guard(widget.type, normalized.data, registry):
        return GuardOutcome.NO_DATA
    return GuardOutcome.PROCEED
