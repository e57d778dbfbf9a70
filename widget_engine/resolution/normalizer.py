"""Data shape normalizer — combines static, live and JSON-object data.

Every renderer receives the same ``{data, dataKeys}`` pair. Resolution
order:

1. JSON-object mode with a configured value: the value verbatim, no keys
2. Live source (mqtt/coap/http/device): the live sample view; the
   multi-unit fan controller unwraps the nested fan collection
3. Static source: ``config.data``, else an empty list (an empty mapping
   for the fan controller, whose renderer expects keyed units)

Normalization is pure. NormalizerMemo caches the last result per widget
and recomputes only when one of its inputs changes.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from widget_engine.resolution.interpreter import (
    as_widget_descriptor,
    decode_widget_config,
    interpret,
)
from widget_engine.resolution.schemas import (
    InterpretedConfig,
    JsonObjectSource,
    NormalizedRenderInput,
    WidgetConfig,
    WidgetDescriptor,
    is_live_source,
)
from widget_engine.widget_types.registry import WidgetTypeRegistry

logger = logging.getLogger(__name__)

FAN_CONTROL_TYPE = "fan-control"

# Nested key carrying the per-fan mapping in fan controller payloads.
# Producers have used 'fan_status' in the past; 'fans' is the current one.
FAN_COLLECTION_KEY = "fans"


def unwrap_fan_collection(live_data: Any) -> Any:
    """Return the nested fan mapping of a live envelope, or the envelope itself."""
    if isinstance(live_data, Mapping):
        fans = live_data.get(FAN_COLLECTION_KEY)
        if isinstance(fans, Mapping):
            return fans
    return live_data


def _static_default(widget_type: str) -> Any:
    return {} if widget_type == FAN_CONTROL_TYPE else []


def normalize(
    widget: Union[WidgetDescriptor, Mapping],
    config: Union[WidgetConfig, Mapping, None],
    live_data: Any,
    interpreted: Optional[InterpretedConfig] = None,
    registry: Optional[WidgetTypeRegistry] = None,
) -> NormalizedRenderInput:
    """Resolve the data and data keys a widget's renderer receives.

    Args:
        widget: Widget descriptor (or ``{id, type}`` mapping)
        config: Decoded WidgetConfig or the raw configuration bag
        live_data: Current view from the live data adapter (may be None)
        interpreted: Pre-computed interpreter output for this pass
        registry: Widget type registry override

    Returns:
        NormalizedRenderInput with data, dataKeys and theme
    """
    widget = as_widget_descriptor(widget)
    if not isinstance(config, WidgetConfig):
        config = decode_widget_config(config, widget.id)
    if interpreted is None:
        interpreted = interpret(widget, config, registry)

    source = config.data_source
    if isinstance(source, JsonObjectSource) and source.has_value:
        return NormalizedRenderInput(data=source.value, data_keys=[], theme=config.theme)

    if is_live_source(interpreted.data_source_type):
        if widget.type == FAN_CONTROL_TYPE:
            data = unwrap_fan_collection(live_data)
        else:
            data = live_data
    elif config.data is not None:
        data = config.data
    else:
        data = _static_default(widget.type)

    return NormalizedRenderInput(
        data=data,
        data_keys=interpreted.telemetry_keys,
        theme=config.theme,
    )


@dataclass
class _MemoEntry:
    """Last normalization of one widget and the inputs it was computed from.

    Object inputs are compared by identity, scalar inputs by value. The
    entry holds references to its inputs, so identities cannot be reused.
    """

    identities: tuple
    values: tuple
    result: NormalizedRenderInput

    def matches(self, identities: tuple, values: tuple) -> bool:
        return self.values == values and all(
            a is b for a, b in zip(self.identities, identities)
        )


class NormalizerMemo:
    """Memoizes normalization per widget id.

    Recomputes only when the data source object, data-source type,
    telemetry keys, live data object, static data object or widget type
    changes.
    """

    def __init__(self):
        self._entries: dict[Any, _MemoEntry] = {}
        self.hits = 0
        self.misses = 0

    def normalize(
        self,
        widget: Union[WidgetDescriptor, Mapping],
        config: Union[WidgetConfig, Mapping, None],
        live_data: Any,
        interpreted: Optional[InterpretedConfig] = None,
        registry: Optional[WidgetTypeRegistry] = None,
    ) -> NormalizedRenderInput:
        """Normalize, reusing the previous result when no input changed."""
        widget = as_widget_descriptor(widget)
        if not isinstance(config, WidgetConfig):
            config = decode_widget_config(config, widget.id)
        if interpreted is None:
            interpreted = interpret(widget, config, registry)

        identities = (config.raw.get("dataSource"), live_data, config.data)
        values = (
            interpreted.data_source_type,
            tuple(interpreted.telemetry_keys),
            widget.type,
        )

        entry = self._entries.get(widget.id)
        if entry is not None and entry.matches(identities, values):
            self.hits += 1
            if entry.result.theme != config.theme:
                return entry.result.model_copy(update={"theme": config.theme})
            return entry.result

        self.misses += 1
        result = normalize(widget, config, live_data, interpreted=interpreted, registry=registry)
        self._entries[widget.id] = _MemoEntry(identities=identities, values=values, result=result)
        logger.debug(f"Normalized widget {widget.id} ({widget.type})")
        return result

    def forget(self, widget_id: Any) -> None:
        """Drop the memo entry of a removed widget."""
        self._entries.pop(widget_id, None)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)
