"""Routes a widget to its binding and renderer.

The widget type catalog maps each type tag to a binding name and a
renderer key. Dispatch never raises: an unknown tag yields an
unknown-type placeholder, and any exception while binding props or
rendering yields an error placeholder plus a RenderFault.
"""

import logging
from typing import Any, Optional

from widget_engine.adapters.protocols import CommandBinding
from widget_engine.rendering.bindings import (
    BindingContext,
    BindingRegistry,
    ConfigChangeCallback,
    get_binding_registry,
)
from widget_engine.rendering.renderers import RendererRegistry, get_renderer_registry
from widget_engine.rendering.schemas import (
    Placeholder,
    PlaceholderKind,
    RenderedWidget,
    RenderFault,
    RenderResult,
)
from widget_engine.resolution.schemas import (
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


def unknown_type_message(widget_type: Optional[str]) -> str:
    return f"Unknown widget type: {widget_type}"


def error_message(widget_type: Optional[str]) -> str:
    return f"Error rendering widget: {widget_type or 'Unknown'}"


class RenderDispatcher:
    """Dispatches one widget to the renderer its type tag names."""

    def __init__(
        self,
        widget_types: Optional[WidgetTypeRegistry] = None,
        bindings: Optional[BindingRegistry] = None,
        renderers: Optional[RendererRegistry] = None,
    ):
        self.widget_types = widget_types or get_widget_type_registry()
        self.bindings = bindings or get_binding_registry()
        self.renderers = renderers or get_renderer_registry()

    def dispatch(
        self,
        widget: WidgetDescriptor,
        config: WidgetConfig,
        normalized: NormalizedRenderInput,
        commands: Optional[CommandBinding] = None,
        *,
        interpreted: Optional[InterpretedConfig] = None,
        live_data: Any = None,
        on_config_change: Optional[ConfigChangeCallback] = None,
    ) -> RenderResult:
        """Bind props and render one widget.

        Args:
            widget: The widget descriptor
            config: Decoded widget configuration
            normalized: Output of the normalizer for this pass
            commands: Command binding from the command channel
            interpreted: Interpreter output (telemetry keys for cameras)
            live_data: Raw live view, for types that read it directly
            on_config_change: Upward callback ``(widget_id, merged_config)``

        Returns:
            RenderResult; ``success`` is False for unknown types and faults
        """
        definition = self.widget_types.get(widget.type)
        if definition is None:
            logger.warning(f"Unknown widget type '{widget.type}' for widget {widget.id}")
            return RenderResult(
                success=False,
                output=Placeholder(
                    widget_id=widget.id,
                    widget_type=widget.type,
                    kind=PlaceholderKind.UNKNOWN_TYPE,
                    message=unknown_type_message(widget.type),
                ),
            )

        try:
            binding = self.bindings.get(definition.binding)
            if binding is None:
                raise LookupError(
                    f"No binding '{definition.binding}' registered for {widget.type}"
                )

            props = binding(BindingContext(
                widget=widget,
                config=config,
                normalized=normalized,
                interpreted=interpreted or InterpretedConfig(
                    telemetry_keys=list(normalized.data_keys)
                ),
                commands=commands or CommandBinding(),
                live_data=live_data,
                on_config_change=on_config_change,
            ))

            output = self.renderers.get(definition.renderer)(widget, definition.renderer, props)
            if not isinstance(output, RenderedWidget):
                raise TypeError(
                    f"Renderer '{definition.renderer}' returned "
                    f"{type(output).__name__}, expected RenderedWidget"
                )
            return RenderResult(success=True, output=output)

        except Exception as e:
            logger.exception(
                f"Exception while rendering widget {widget.id} ({widget.type or 'Unknown'})"
            )
            return RenderResult(
                success=False,
                output=Placeholder(
                    widget_id=widget.id,
                    widget_type=widget.type,
                    kind=PlaceholderKind.ERROR,
                    message=error_message(widget.type),
                ),
                fault=RenderFault(
                    widget_id=widget.id,
                    widget_type=widget.type,
                    error_type=type(e).__name__,
                    message=str(e),
                ),
            )
