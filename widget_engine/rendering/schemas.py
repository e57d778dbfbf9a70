"""Render output schemas — what a render pass hands to the front end.

A dispatched widget becomes a RenderedWidget (renderer key plus its prop
bag); a guarded or failed widget becomes a Placeholder. The dispatcher
wraps either in a RenderResult, and the engine reports each widget's pass
as a RenderPass.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_serializer

from widget_engine.resolution.schemas import GuardOutcome, WidgetDescriptor


class PlaceholderKind(str, Enum):
    """Why a widget shows a placeholder instead of its renderer."""
    NO_TELEMETRY = "no_telemetry"
    LOADING = "loading"
    UNKNOWN_TYPE = "unknown_type"
    ERROR = "error"


class RenderState(str, Enum):
    """Terminal state of one widget's render pass."""
    UNCONFIGURED = "unconfigured"
    NO_TELEMETRY_NOTICE = "no_telemetry_notice"
    LOADING = "loading"
    DISPATCHING = "dispatching"
    RENDERED = "rendered"
    ERROR_PLACEHOLDER = "error_placeholder"
    UNKNOWN_TYPE_PLACEHOLDER = "unknown_type_placeholder"


# -- Outputs --


class RenderedWidget(BaseModel):
    """A renderer key and the prop bag it receives.

    Props may hold callables (command senders, settings callbacks). They
    stay in ``props`` for in-process consumers and are listed by name in
    ``actions``; serialization drops them.
    """

    output_type: Literal["widget"] = "widget"
    widget_id: Union[str, int]
    widget_type: str
    renderer: str = Field(
        ..., description="Renderer key from the widget type catalog"
    )
    props: dict[str, Any] = Field(default_factory=dict)
    actions: list[str] = Field(
        default_factory=list,
        description="Names of callable props bound for this widget",
    )

    @field_serializer("props")
    def serialize_props(self, props: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in props.items() if not callable(v)}


class Placeholder(BaseModel):
    """A notice shown in place of a widget."""

    output_type: Literal["placeholder"] = "placeholder"
    widget_id: Union[str, int]
    widget_type: str = ""
    kind: PlaceholderKind
    message: str


RenderableOutput = Annotated[
    Union[RenderedWidget, Placeholder],
    Field(discriminator="output_type"),
]


class RenderFault(BaseModel):
    """A failure contained at the dispatch boundary."""

    widget_id: Union[str, int]
    widget_type: str = ""
    error_type: str
    message: str

    def to_dict(self) -> dict:
        return self.model_dump()


class RenderResult(BaseModel):
    """Result of dispatching one widget."""

    success: bool
    output: Optional[RenderableOutput] = None
    fault: Optional[RenderFault] = None


class RenderPass(BaseModel):
    """Everything one render pass decided for one widget."""

    widget_id: Union[str, int]
    widget_type: str = ""
    state: RenderState = RenderState.UNCONFIGURED
    guard: Optional[GuardOutcome] = None
    output: Optional[RenderableOutput] = None
    fault: Optional[RenderFault] = None

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.output, Placeholder)


# -- API request/response --


class WidgetRenderEntry(BaseModel):
    """One widget of a dashboard render request."""

    widget: WidgetDescriptor
    config: Any = Field(
        default=None,
        description="The widget's configuration object as stored in the layout",
    )


class DashboardRenderRequest(BaseModel):
    """Request to render a set of sibling widgets."""

    widgets: list[WidgetRenderEntry] = Field(default_factory=list)


class DashboardRenderResponse(BaseModel):
    """One render pass per requested widget, in request order."""

    passes: list[RenderPass] = Field(default_factory=list)
    rendered: int = 0
    placeholders: int = 0
    faults: int = 0


class LiveIngestResponse(BaseModel):
    """Result of pushing a payload into the in-memory live data adapter."""

    topic: str
    widgets_updated: int = 0
