"""Resolution schemas — the data model shared by interpreter, normalizer and guards.

A widget's raw configuration is decoded once into a WidgetConfig. Its data
source is a tagged union: either telemetry mode (named keys read from a
live or static source) or JSON-object mode (one structured payload handed
to the widget as a whole). Both carry the extracted telemetry keys; a
JSON-object source only overrides them when it holds a configured value.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DataSourceType(str, Enum):
    """Known data-source types. Unrecognised strings are kept as-is."""
    STATIC = "static"
    MQTT = "mqtt"
    COAP = "coap"
    HTTP = "http"
    DEVICE = "device"


LIVE_SOURCE_TYPES = frozenset({
    DataSourceType.MQTT.value,
    DataSourceType.COAP.value,
    DataSourceType.HTTP.value,
    DataSourceType.DEVICE.value,
})


def is_live_source(data_source_type: Optional[str]) -> bool:
    """True when the widget's data comes from a live subscription."""
    return data_source_type in LIVE_SOURCE_TYPES


class GuardOutcome(str, Enum):
    """Result of the pre-dispatch guards."""
    PROCEED = "proceed"
    NO_TELEMETRY = "no_telemetry"
    NO_DATA = "no_data"


class WidgetDescriptor(BaseModel):
    """Identity of one widget on the dashboard. Owned by the layout."""

    model_config = ConfigDict(frozen=True)

    id: Union[str, int]
    type: str = ""


# -- Data sources --


class _DataSourceBase(BaseModel):
    """Fields common to both data-source modes."""

    type: str = Field(
        default=DataSourceType.STATIC.value,
        description="'static', 'mqtt', 'coap', 'http', 'device' or a custom type",
    )
    stream_url: Any = Field(
        default=None,
        description="Stream locator for camera widgets; not guaranteed to be a string",
    )
    telemetry_out: list[str] = Field(
        default_factory=list,
        description="Outbound keys written by control widgets (sliders)",
    )
    telemetry_keys: list[str] = Field(
        default_factory=list,
        description="Ordered, non-empty keys; empty means no telemetry selected",
    )
    device_id: Optional[Union[str, int]] = None
    topic: Optional[str] = None


class TelemetrySource(_DataSourceBase):
    """Data source that delivers named telemetry keys."""

    mode: Literal["telemetry"] = "telemetry"


class JsonObjectSource(_DataSourceBase):
    """Data source that hands a whole JSON object to the widget."""

    mode: Literal["json_object"] = "json_object"
    value: Any = Field(
        default=None,
        description="Configured object; when set it overrides live and static data",
    )
    json_object_path: Optional[str] = Field(
        default=None,
        description="Dot-path into live payloads ('ROOT' or empty = whole payload)",
    )

    @property
    def has_value(self) -> bool:
        return self.value is not None


DataSource = Annotated[
    Union[TelemetrySource, JsonObjectSource],
    Field(discriminator="mode"),
]


class WidgetConfig(BaseModel):
    """A widget configuration decoded once, with named defaults applied.

    ``raw`` keeps the original bag so every field, known or not, is still
    forwarded to the renderer.
    """

    data_source: Optional[DataSource] = None
    data: Any = None
    theme: str = "light"
    stream_url: Any = None
    fans: list[Any] = Field(default_factory=list)
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_json_object_mode(self) -> bool:
        return isinstance(self.data_source, JsonObjectSource)


class InterpretedConfig(BaseModel):
    """What the interpreter extracts for the rest of the render pass."""

    telemetry_keys: list[str] = Field(default_factory=list)
    buffer_size: int = 1
    data_source_type: str = DataSourceType.STATIC.value

    @property
    def is_live(self) -> bool:
        return is_live_source(self.data_source_type)


class NormalizedRenderInput(BaseModel):
    """The only data shape renderers may depend on."""

    model_config = ConfigDict(populate_by_name=True)

    data: Any = None
    data_keys: list[str] = Field(default_factory=list, alias="dataKeys")
    theme: str = "light"

    def as_props(self) -> dict[str, Any]:
        """Props in the renderer's camelCase contract."""
        return {
            "data": self.data,
            "dataKeys": list(self.data_keys),
            "theme": self.theme,
        }
