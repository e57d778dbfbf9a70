"""Build the prop bag each widget type's renderer receives.

Every binding starts from the common bag ``{...config, data, dataKeys,
theme}`` and adds the type-specific collaborators: stream URLs for
cameras, settings callbacks for gauges, command senders for controls.

Bindings are registered by name with ``@register_binding``; the widget
type catalog names the binding each type tag uses.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from widget_engine.adapters.protocols import CommandBinding, CommandSender
from widget_engine.resolution.schemas import (
    InterpretedConfig,
    NormalizedRenderInput,
    WidgetConfig,
    WidgetDescriptor,
)

logger = logging.getLogger(__name__)

ConfigChangeCallback = Callable[[Any, dict], None]


@dataclass
class BindingContext:
    """Everything a binding may read for one widget in one render pass."""

    widget: WidgetDescriptor
    config: WidgetConfig
    normalized: NormalizedRenderInput
    interpreted: InterpretedConfig = field(default_factory=InterpretedConfig)
    commands: CommandBinding = field(default_factory=CommandBinding)
    live_data: Any = None
    on_config_change: Optional[ConfigChangeCallback] = None

    def common_props(self) -> dict[str, Any]:
        """Config fields overlaid with the normalized data, keys and theme."""
        return {**self.config.raw, **self.normalized.as_props()}

    def emit_config_change(self, new_config: dict) -> None:
        """Forward a config change to the layout owner, if one listens."""
        if self.on_config_change is None:
            logger.debug(
                f"Config change for widget {self.widget.id} dropped: no listener"
            )
            return
        self.on_config_change(self.widget.id, new_config)


Binding = Callable[[BindingContext], dict[str, Any]]


class BindingRegistry:
    """Named prop bindings."""

    def __init__(self):
        self._bindings: dict[str, Binding] = {}

    def register(self, name: str, binding: Binding) -> None:
        if name in self._bindings:
            logger.warning(f"Binding '{name}' re-registered")
        self._bindings[name] = binding

    def get(self, name: str) -> Optional[Binding]:
        return self._bindings.get(name)

    def is_registered(self, name: str) -> bool:
        return name in self._bindings

    def keys(self) -> list[str]:
        return sorted(self._bindings)


_binding_registry = BindingRegistry()


def get_binding_registry() -> BindingRegistry:
    """Get the global binding registry."""
    return _binding_registry


def register_binding(*names: str) -> Callable[[Binding], Binding]:
    """Register the decorated function under one or more binding names."""
    def decorator(fn: Binding) -> Binding:
        for name in names:
            _binding_registry.register(name, fn)
        return fn
    return decorator


# ── Stream URL resolution ──────────────────────────────


def looks_like_stream_locator(value: Any) -> bool:
    """True for absolute URLs (rtsp://, http://, ...) and absolute paths."""
    if not isinstance(value, str) or not value:
        return False
    if value.startswith("/"):
        return True
    parts = urlsplit(value)
    return bool(parts.scheme and parts.netloc)


def resolve_stream_url(config: WidgetConfig, telemetry_keys: list[str]) -> str:
    """First of config.streamUrl, dataSource.streamUrl, first telemetry key.

    The telemetry key is used only when it looks like a stream locator.
    The result is always a string; a non-string winner becomes "".
    """
    source = config.data_source
    first_key = telemetry_keys[0] if telemetry_keys else None
    candidates = (
        config.stream_url,
        source.stream_url if source is not None else None,
        first_key if looks_like_stream_locator(first_key) else None,
    )
    for candidate in candidates:
        if candidate:
            return candidate if isinstance(candidate, str) else ""
    return ""


def _with_fallback(sender: Optional[CommandSender], fallback: Optional[CommandSender]):
    return sender if sender is not None else fallback


# ── Bindings ──────────────────────────────────────────


@register_binding("common")
def bind_common(ctx: BindingContext) -> dict[str, Any]:
    return ctx.common_props()


@register_binding("camera")
def bind_camera(ctx: BindingContext) -> dict[str, Any]:
    """Camera feeds take a nested config with a resolved stream URL."""
    telemetry_keys = list(ctx.interpreted.telemetry_keys)
    camera_config = {
        **ctx.common_props(),
        "streamUrl": resolve_stream_url(ctx.config, telemetry_keys),
        "telemetry": telemetry_keys,
    }

    def on_config_change(new_config: dict) -> None:
        ctx.emit_config_change(new_config)

    return {"config": camera_config, "onConfigChange": on_config_change}


@register_binding("gauge")
def bind_gauge(ctx: BindingContext) -> dict[str, Any]:
    """Gauges save settings by merging them into a copy of the config."""
    props = ctx.common_props()

    def on_settings_save(settings: Mapping[str, Any]) -> dict:
        merged = {**ctx.config.raw, **dict(settings or {})}
        ctx.emit_config_change(merged)
        return merged

    props["onSettingsSave"] = on_settings_save
    return props


@register_binding("slider")
def bind_slider(ctx: BindingContext) -> dict[str, Any]:
    source = ctx.config.data_source
    props = ctx.common_props()
    props.update(
        sendMqttCommand=ctx.commands.send_command,
        isMqttSending=ctx.commands.is_sending,
        mqttConnected=ctx.commands.connected,
        telemetryOut=list(source.telemetry_out) if source is not None else [],
    )
    return props


@register_binding("fan_control")
def bind_fan_control(ctx: BindingContext) -> dict[str, Any]:
    """Fan grids get the configured fans and the unwrapped fan data."""
    props = ctx.common_props()
    props.update(
        fans=list(ctx.config.fans),
        data=ctx.normalized.data,
        sendMqttCommand=_with_fallback(
            ctx.commands.fan_send_command, ctx.commands.send_command
        ),
        isMqttSending=ctx.commands.is_sending,
        mqttConnected=ctx.commands.connected,
    )
    return props


@register_binding("device_command")
def bind_device_command(ctx: BindingContext) -> dict[str, Any]:
    props = ctx.common_props()
    props.update(
        sendMqttCommand=_with_fallback(
            ctx.commands.command_control_send_command, ctx.commands.send_command
        ),
        mqttConnected=ctx.commands.connected,
        isMqttSending=ctx.commands.is_sending,
    )
    return props


@register_binding("raw_live")
def bind_raw_live(ctx: BindingContext) -> dict[str, Any]:
    """Alarm and door cards read the raw live view, not the normalized data."""
    props = ctx.common_props()
    props["data"] = ctx.live_data
    return props


@register_binding("json_table")
def bind_json_table(ctx: BindingContext) -> dict[str, Any]:
    props = bind_raw_live(ctx)
    props["darkMode"] = ctx.config.theme == "dark"
    return props


@register_binding("image_card")
def bind_image_card(ctx: BindingContext) -> dict[str, Any]:
    props = ctx.common_props()
    props.update(config=dict(ctx.config.raw), liveData=ctx.live_data)
    return props
