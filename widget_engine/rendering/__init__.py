"""Widget rendering: prop bindings, dispatch and the render engine."""

from .bindings import (
    BindingContext,
    BindingRegistry,
    get_binding_registry,
    register_binding,
    resolve_stream_url,
)
from .dispatcher import RenderDispatcher
from .engine import WidgetRenderEngine, get_render_engine
from .renderers import RendererRegistry, describe, get_renderer_registry
from .schemas import (
    Placeholder,
    PlaceholderKind,
    RenderedWidget,
    RenderFault,
    RenderPass,
    RenderResult,
    RenderState,
)

__all__ = [
    "BindingContext",
    "BindingRegistry",
    "Placeholder",
    "PlaceholderKind",
    "RenderDispatcher",
    "RenderFault",
    "RenderPass",
    "RenderResult",
    "RenderState",
    "RenderedWidget",
    "RendererRegistry",
    "WidgetRenderEngine",
    "describe",
    "get_binding_registry",
    "get_render_engine",
    "get_renderer_registry",
    "register_binding",
    "resolve_stream_url",
]
