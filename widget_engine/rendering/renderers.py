"""Renderer registry — turns a bound prop bag into render output.

Presentational widgets live in the front end. Server side, a renderer is
a callable ``(widget, renderer_key, props) -> RenderedWidget``; the
default one describes the widget so the front end can mount the named
component. Consumers and tests register their own renderers per key.
"""

import logging
from typing import Any, Callable, Optional

from widget_engine.rendering.schemas import RenderedWidget
from widget_engine.resolution.schemas import WidgetDescriptor

logger = logging.getLogger(__name__)

Renderer = Callable[[WidgetDescriptor, str, dict[str, Any]], RenderedWidget]


def describe(widget: WidgetDescriptor, renderer_key: str, props: dict[str, Any]) -> RenderedWidget:
    """Default renderer: a descriptor naming the component and its props."""
    return RenderedWidget(
        widget_id=widget.id,
        widget_type=widget.type,
        renderer=renderer_key,
        props=props,
        actions=sorted(k for k, v in props.items() if callable(v)),
    )


class RendererRegistry:
    """Renderers keyed by renderer key, with a fallback for unregistered keys."""

    def __init__(self, default: Renderer = describe):
        self.default = default
        self._renderers: dict[str, Renderer] = {}

    def register(self, renderer_key: str, renderer: Renderer) -> None:
        self._renderers[renderer_key] = renderer
        logger.debug(f"Registered renderer: {renderer_key}")

    def unregister(self, renderer_key: str) -> None:
        self._renderers.pop(renderer_key, None)

    def get(self, renderer_key: str) -> Renderer:
        """Renderer for a key, or the default renderer."""
        return self._renderers.get(renderer_key, self.default)

    def keys(self) -> list[str]:
        return sorted(self._renderers)


# Global registry instance
_renderer_registry: Optional[RendererRegistry] = None


def get_renderer_registry() -> RendererRegistry:
    """Get the global renderer registry instance."""
    global _renderer_registry
    if _renderer_registry is None:
        _renderer_registry = RendererRegistry()
    return _renderer_registry
