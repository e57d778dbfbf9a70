"""Render engine: one render pass per widget, in a fixed order.

    interpret -> subscribe -> bind commands -> normalize -> guards -> dispatch

Each pass reads the widget's configuration and live view once and never
mutates them. Outcomes are logged as structured events carrying the
widget id, widget type, guard outcome and render state.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from widget_engine.adapters.memory import get_command_channel, get_live_data_adapter
from widget_engine.adapters.protocols import CommandChannel, LiveDataAdapter
from widget_engine.rendering.bindings import ConfigChangeCallback
from widget_engine.rendering.dispatcher import RenderDispatcher, error_message
from widget_engine.rendering.schemas import (
    Placeholder,
    PlaceholderKind,
    RenderFault,
    RenderPass,
    RenderState,
    WidgetRenderEntry,
)
from widget_engine.resolution.guards import (
    NO_TELEMETRY_MESSAGE,
    WAITING_FOR_DATA_MESSAGE,
    evaluate_guards,
)
from widget_engine.resolution.interpreter import (
    ConfigDecodeError,
    as_widget_descriptor,
    config_with_buffer_size,
    decode_widget_config,
    interpret,
)
from widget_engine.resolution.normalizer import NormalizerMemo
from widget_engine.resolution.schemas import GuardOutcome, WidgetDescriptor
from widget_engine.widget_types.registry import (
    WidgetTypeRegistry,
    get_widget_type_registry,
)

_GUARD_PLACEHOLDERS = {
    GuardOutcome.NO_TELEMETRY: (
        RenderState.NO_TELEMETRY_NOTICE, PlaceholderKind.NO_TELEMETRY, NO_TELEMETRY_MESSAGE,
    ),
    GuardOutcome.NO_DATA: (
        RenderState.LOADING, PlaceholderKind.LOADING, WAITING_FOR_DATA_MESSAGE,
    ),
}


def _safe_descriptor(widget: Any) -> WidgetDescriptor:
    """Best-effort descriptor for reporting a failed pass."""
    try:
        return as_widget_descriptor(widget)
    except (ValidationError, AttributeError):
        return WidgetDescriptor(id="", type="")


class WidgetRenderEngine:
    """Runs render passes against a live data adapter and a command channel."""

    def __init__(
        self,
        live_adapter: LiveDataAdapter,
        command_channel: CommandChannel,
        dispatcher: Optional[RenderDispatcher] = None,
        normalizer_memo: Optional[NormalizerMemo] = None,
        widget_types: Optional[WidgetTypeRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.live_adapter = live_adapter
        self.command_channel = command_channel
        self.widget_types = widget_types or get_widget_type_registry()
        self.dispatcher = dispatcher or RenderDispatcher(widget_types=self.widget_types)
        self.memo = normalizer_memo or NormalizerMemo()
        self.logger = logger or logging.getLogger(__name__)

    def render(
        self,
        widget: Union[WidgetDescriptor, Mapping],
        raw_config: Any,
        on_config_change: Optional[ConfigChangeCallback] = None,
    ) -> RenderPass:
        """Run one render pass for one widget."""
        widget = as_widget_descriptor(widget)

        try:
            config = decode_widget_config(raw_config, widget.id)
        except ConfigDecodeError as e:
            self._log(logging.ERROR, f"Config decode failed: {e.reason}", widget, None,
                      RenderState.ERROR_PLACEHOLDER)
            return self._error_pass(widget, e.__class__.__name__, e.reason)

        interpreted = interpret(widget, config, self.widget_types)
        live_data = self.live_adapter.subscribe(
            widget, config_with_buffer_size(config.raw, interpreted.buffer_size)
        )
        commands = self.command_channel.bind(config.raw.get("dataSource") or config.raw)
        normalized = self.memo.normalize(
            widget, config, live_data, interpreted=interpreted, registry=self.widget_types
        )

        guard = evaluate_guards(widget, config, interpreted, normalized, self.widget_types)
        if guard in _GUARD_PLACEHOLDERS:
            state, kind, message = _GUARD_PLACEHOLDERS[guard]
            level = logging.INFO if guard == GuardOutcome.NO_TELEMETRY else logging.DEBUG
            self._log(level, message, widget, guard, state)
            return RenderPass(
                widget_id=widget.id,
                widget_type=widget.type,
                state=state,
                guard=guard,
                output=Placeholder(
                    widget_id=widget.id, widget_type=widget.type, kind=kind, message=message
                ),
            )

        result = self.dispatcher.dispatch(
            widget,
            config,
            normalized,
            commands,
            interpreted=interpreted,
            live_data=live_data,
            on_config_change=on_config_change,
        )

        if result.success:
            state = RenderState.RENDERED
        elif isinstance(result.output, Placeholder) and result.output.kind == PlaceholderKind.UNKNOWN_TYPE:
            state = RenderState.UNKNOWN_TYPE_PLACEHOLDER
        else:
            state = RenderState.ERROR_PLACEHOLDER
        self._log(logging.DEBUG, "Render pass complete", widget, guard, state)

        return RenderPass(
            widget_id=widget.id,
            widget_type=widget.type,
            state=state,
            guard=guard,
            output=result.output,
            fault=result.fault,
        )

    def render_dashboard(
        self,
        entries: Iterable[Union[WidgetRenderEntry, Mapping]],
        on_config_change: Optional[ConfigChangeCallback] = None,
    ) -> list[RenderPass]:
        """Render sibling widgets; a failure in one never affects the others."""
        passes = []
        for entry in entries:
            if isinstance(entry, WidgetRenderEntry):
                widget, raw_config = entry.widget, entry.config
            else:
                widget, raw_config = entry.get("widget") or {}, entry.get("config")

            try:
                passes.append(self.render(widget, raw_config, on_config_change))
            except Exception as e:
                descriptor = _safe_descriptor(widget)
                self.logger.exception(
                    f"Render pass failed for widget {descriptor.id} ({descriptor.type})"
                )
                passes.append(self._error_pass(descriptor, type(e).__name__, str(e)))

        self.logger.info(
            f"Rendered dashboard: {sum(p.state == RenderState.RENDERED for p in passes)}"
            f"/{len(passes)} widgets rendered"
        )
        return passes

    def forget(self, widget_id: Any) -> None:
        """Drop cached state for a widget removed from the layout."""
        self.memo.forget(widget_id)

    # ── Helpers ──────────────────────────────────────────

    def _error_pass(self, widget: WidgetDescriptor, error_type: str, message: str) -> RenderPass:
        return RenderPass(
            widget_id=widget.id,
            widget_type=widget.type,
            state=RenderState.ERROR_PLACEHOLDER,
            output=Placeholder(
                widget_id=widget.id,
                widget_type=widget.type,
                kind=PlaceholderKind.ERROR,
                message=error_message(widget.type),
            ),
            fault=RenderFault(
                widget_id=widget.id,
                widget_type=widget.type,
                error_type=error_type,
                message=message,
            ),
        )

    def _log(
        self,
        level: int,
        message: str,
        widget: WidgetDescriptor,
        guard: Optional[GuardOutcome],
        state: RenderState,
    ) -> None:
        self.logger.log(
            level,
            f"{message} [widget={widget.id} type={widget.type}]",
            extra={
                "widget_id": widget.id,
                "widget_type": widget.type,
                "guard": guard.value if guard else None,
                "state": state.value,
            },
        )


# Global engine instance
_engine: Optional[WidgetRenderEngine] = None


def get_render_engine() -> WidgetRenderEngine:
    """Get the global render engine wired to the in-memory collaborators."""
    global _engine
    if _engine is None:
        _engine = WidgetRenderEngine(
            live_adapter=get_live_data_adapter(),
            command_channel=get_command_channel(),
        )
    return _engine
