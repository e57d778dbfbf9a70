"""Config interpreter — decodes a widget's configuration at the engine boundary.

Extracts the three facts every later stage needs:
- the telemetry key set (always a list, possibly empty)
- the live buffer size (static lookup against the widget type catalog)
- the data-source type (defaults to 'static')

The raw configuration is never mutated; decoding builds new objects.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from widget_engine.resolution.schemas import (
    DataSourceType,
    InterpretedConfig,
    WidgetConfig,
    WidgetDescriptor,
)
from widget_engine.widget_types.registry import (
    WidgetTypeRegistry,
    get_widget_type_registry,
)

logger = logging.getLogger(__name__)

# Chart-like widgets keep a rolling window; everything else the latest sample
CHART_BUFFER_SIZE = 50
DEFAULT_BUFFER_SIZE = 1

DEFAULT_SOURCE_TYPE = DataSourceType.STATIC.value
DEFAULT_THEME = "light"


class ConfigDecodeError(Exception):
    """Raised when a widget configuration cannot be decoded."""

    def __init__(self, widget_id: Any, reason: str):
        self.widget_id = widget_id
        self.reason = reason
        super().__init__(f"Invalid configuration for widget '{widget_id}': {reason}")

    def to_dict(self) -> dict:
        return {
            "error_type": self.__class__.__name__,
            "widget_id": self.widget_id,
            "reason": self.reason,
        }


def as_widget_descriptor(widget: Union[WidgetDescriptor, Mapping]) -> WidgetDescriptor:
    """Accept a descriptor or a plain ``{id, type}`` mapping."""
    if isinstance(widget, WidgetDescriptor):
        return widget
    return WidgetDescriptor.model_validate(
        {"id": widget.get("id", ""), "type": widget.get("type") or ""}
    )


def _coerce_key_list(value: Any) -> list[str]:
    """Normalize a sequence, a single string or anything else into a key list."""
    if isinstance(value, (list, tuple)):
        return [k if isinstance(k, str) else str(k) for k in value if k]
    if isinstance(value, str):
        return [value] if value else []
    return []


def extract_telemetry_keys(data_source: Optional[Mapping]) -> list[str]:
    """Extract the telemetry key set from a raw ``dataSource`` object.

    A list keeps its truthy entries in order, a non-empty string becomes a
    one-element list, anything else yields an empty list.
    """
    if not isinstance(data_source, Mapping):
        return []
    return _coerce_key_list(data_source.get("telemetry"))


def normalize_source_type(value: Any) -> str:
    """Lower-case and strip a data-source type; absent means 'static'."""
    if not value:
        return DEFAULT_SOURCE_TYPE
    return str(value).strip().lower() or DEFAULT_SOURCE_TYPE


def _data_source_payload(raw: Mapping) -> dict[str, Any]:
    """Build the tagged-union input for a raw ``dataSource`` object."""
    payload: dict[str, Any] = {
        "type": normalize_source_type(raw.get("type")),
        "stream_url": raw.get("streamUrl"),
        "telemetry_out": _coerce_key_list(raw.get("telemetryOut")),
        "device_id": raw.get("deviceId"),
        "topic": raw.get("topic"),
        "telemetry_keys": extract_telemetry_keys(raw),
    }
    if raw.get("isJsonObject"):
        payload.update(
            mode="json_object",
            value=raw.get("jsonObjectValue"),
            json_object_path=raw.get("jsonObjectPath"),
        )
    else:
        payload["mode"] = "telemetry"
    return payload


def _fan_list(value: Any, widget_id: Any) -> list[Any]:
    """Configured fans as a list; any other shape is dropped with a warning."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    logger.warning(
        f"Ignoring fans of type {type(value).__name__} for widget '{widget_id}': expected a list"
    )
    return []


def decode_widget_config(raw: Optional[Mapping], widget_id: Any = None) -> WidgetConfig:
    """Decode a raw configuration bag into a WidgetConfig.

    Args:
        raw: The layout's configuration object for one widget (may be None)
        widget_id: Used only for error reporting

    Returns:
        WidgetConfig with defaults applied and the raw bag preserved

    Raises:
        ConfigDecodeError: If the bag or one of its known fields is malformed
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigDecodeError(
            widget_id, f"config must be an object, got {type(raw).__name__}"
        )

    raw_source = raw.get("dataSource")
    if raw_source is not None and not isinstance(raw_source, Mapping):
        raise ConfigDecodeError(
            widget_id,
            f"dataSource must be an object, got {type(raw_source).__name__}",
        )

    try:
        return WidgetConfig.model_validate({
            "data_source": _data_source_payload(raw_source) if raw_source is not None else None,
            "data": raw.get("data"),
            "theme": raw.get("theme") or DEFAULT_THEME,
            "stream_url": raw.get("streamUrl"),
            "fans": _fan_list(raw.get("fans"), widget_id),
            "raw": dict(raw),
        })
    except ValidationError as e:
        raise ConfigDecodeError(widget_id, str(e)) from e


def buffer_size_for(widget_type: Optional[str], registry: Optional[WidgetTypeRegistry] = None) -> int:
    """Buffer size for a widget type: 50 for chart-like widgets, else 1."""
    registry = registry or get_widget_type_registry()
    return CHART_BUFFER_SIZE if registry.is_buffered(widget_type) else DEFAULT_BUFFER_SIZE


def interpret(
    widget: Union[WidgetDescriptor, Mapping],
    config: Union[WidgetConfig, Mapping, None],
    registry: Optional[WidgetTypeRegistry] = None,
) -> InterpretedConfig:
    """Extract telemetry keys, buffer size and data-source type for a widget."""
    widget = as_widget_descriptor(widget)
    if not isinstance(config, WidgetConfig):
        config = decode_widget_config(config, widget.id)

    source = config.data_source
    telemetry_keys = list(source.telemetry_keys) if source is not None else []

    return InterpretedConfig(
        telemetry_keys=telemetry_keys,
        buffer_size=buffer_size_for(widget.type, registry),
        data_source_type=source.type if source is not None else DEFAULT_SOURCE_TYPE,
    )


def config_with_buffer_size(raw: Mapping, buffer_size: int) -> dict[str, Any]:
    """Copy of the raw config carrying the buffer size for the live adapter."""
    return {**raw, "bufferSize": buffer_size}
