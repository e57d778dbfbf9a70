"""Test configuration and shared fixtures."""

import pytest

from widget_engine.adapters.memory import InMemoryCommandChannel, InMemoryLiveDataAdapter
from widget_engine.rendering.dispatcher import RenderDispatcher
from widget_engine.rendering.engine import WidgetRenderEngine
from widget_engine.rendering.renderers import RendererRegistry
from widget_engine.resolution.normalizer import NormalizerMemo
from widget_engine.widget_types.registry import WidgetTypeRegistry


@pytest.fixture
def registry():
    """A freshly loaded widget type catalog."""
    reg = WidgetTypeRegistry()
    reg.load()
    return reg


@pytest.fixture
def renderers():
    """A renderer registry isolated from the global one."""
    return RendererRegistry()


@pytest.fixture
def dispatcher(registry, renderers):
    return RenderDispatcher(widget_types=registry, renderers=renderers)


@pytest.fixture
def live_adapter():
    return InMemoryLiveDataAdapter()


@pytest.fixture
def command_channel():
    return InMemoryCommandChannel()


@pytest.fixture
def engine(registry, dispatcher, live_adapter, command_channel):
    return WidgetRenderEngine(
        live_adapter=live_adapter,
        command_channel=command_channel,
        dispatcher=dispatcher,
        normalizer_memo=NormalizerMemo(),
        widget_types=registry,
    )


@pytest.fixture
def mqtt_config():
    """A live MQTT temperature widget configuration."""
    return {
        "title": "Boiler",
        "dataSource": {
            "type": "mqtt",
            "topic": "plant/boiler/up",
            "telemetry": ["temp", "pressure"],
        },
    }
