"""Widget type definition schemas — data models for the widget type catalog.

WidgetTypeDefinitions declare, per widget type tag, how the render engine
treats the widget: whether its live subscription is buffered, whether it
may render without telemetry keys or without data, which binding builds
its props and which renderer receives them.
"""

from pydantic import BaseModel, Field


class WidgetTypeDefinition(BaseModel):
    """A widget type tag with its data and dispatch classification.

    The catalog is closed but extensible: adding an entry to the YAML
    definitions makes the tag dispatchable, provided its binding exists.
    """

    # Identity
    type_key: str = Field(
        ...,
        description="Widget type tag as stored in dashboard layouts "
        "(kebab-case, e.g. 'line-chart', 'fan-control')",
    )
    type_name: str = Field(
        ...,
        description="Human-readable name (e.g. 'Line Chart')",
    )
    description: str = Field(
        default="",
        description="What the widget shows or controls",
    )
    category: str = Field(
        ...,
        description="Widget category: 'chart', 'card', 'control', "
        "'media', 'map', 'table', 'alarm'",
    )

    # Data classification
    buffered: bool = Field(
        default=False,
        description="Chart-like widgets keep a rolling window of samples; "
        "all others receive only the latest sample",
    )
    requires_telemetry: bool = Field(
        default=True,
        description="False for widgets that render without any telemetry "
        "key selected (camera feeds, maps, gauges)",
    )
    requires_data: bool = Field(
        default=True,
        description="False for widgets that render before any data arrives",
    )

    # Dispatch
    binding: str = Field(
        default="common",
        description="Name of the prop binding that builds this widget's props",
    )
    renderer: str = Field(
        ...,
        description="Renderer key the bound props are handed to "
        "(e.g. 'LineChartWidget')",
    )
    aliases: list[str] = Field(
        default_factory=list,
        description="Additional type tags that share this definition",
    )

    # Metadata
    status: str = Field(
        default="active",
        description="'active', 'draft', 'deprecated'",
    )
    tags: list[str] = Field(
        default_factory=list,
        description="Categorization tags",
    )


class WidgetTypeSummary(BaseModel):
    """Lightweight summary for listing endpoints."""

    type_key: str
    type_name: str
    category: str = ""
    buffered: bool = False
    requires_telemetry: bool = True
    requires_data: bool = True
    aliases: list[str] = Field(default_factory=list)
    status: str = "active"
