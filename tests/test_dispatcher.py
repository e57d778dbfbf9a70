"""Tests for prop bindings and the render dispatcher."""

import copy

from widget_engine.adapters.protocols import CommandBinding
from widget_engine.rendering.bindings import looks_like_stream_locator, resolve_stream_url
from widget_engine.rendering.schemas import Placeholder, PlaceholderKind, RenderedWidget
from widget_engine.resolution.interpreter import decode_widget_config, interpret
from widget_engine.resolution.normalizer import normalize
from widget_engine.resolution.schemas import WidgetDescriptor


def _dispatch(dispatcher, registry, widget_type, raw_config, live_data=None, **kwargs):
    widget = WidgetDescriptor(id=f"{widget_type}-1", type=widget_type)
    config = decode_widget_config(raw_config, widget.id)
    interpreted = interpret(widget, config, registry)
    normalized = normalize(widget, config, live_data, interpreted=interpreted, registry=registry)
    return dispatcher.dispatch(
        widget,
        config,
        normalized,
        kwargs.pop("commands", None),
        interpreted=interpreted,
        live_data=live_data,
        **kwargs,
    )


async def _noop(*args, **kwargs):
    return None


# -- Common bag --


def test_common_props_forward_config_fields(dispatcher, registry):
    config = {"title": "Temp", "unit": "C", "dataSource": {"telemetry": "t"}, "data": [{"t": 1}]}
    result = _dispatch(dispatcher, registry, "value-card", config)

    assert result.success
    output = result.output
    assert isinstance(output, RenderedWidget)
    assert output.renderer == "ValueCardWidget"
    assert output.props["title"] == "Temp"
    assert output.props["unit"] == "C"
    assert output.props["data"] == [{"t": 1}]
    assert output.props["dataKeys"] == ["t"]
    assert output.props["theme"] == "light"


def test_normalized_data_overrides_config_data(dispatcher, registry):
    live = [{"t": 5}]
    config = {"dataSource": {"type": "mqtt", "telemetry": "t"}, "data": "stale"}
    result = _dispatch(dispatcher, registry, "line-chart", config, live)
    assert result.output.props["data"] is live


# -- Unknown types and faults --


def test_unknown_type_yields_placeholder(dispatcher, registry):
    result = _dispatch(dispatcher, registry, "hologram", {})
    assert not result.success
    assert isinstance(result.output, Placeholder)
    assert result.output.kind == PlaceholderKind.UNKNOWN_TYPE
    assert result.output.message == "Unknown widget type: hologram"
    assert result.fault is None


def test_throwing_renderer_is_contained(dispatcher, registry, renderers):
    def explode(widget, renderer_key, props):
        raise RuntimeError("chart library failed")

    renderers.register("LineChartWidget", explode)
    config = {"dataSource": {"telemetry": "t"}, "data": [{"t": 1}]}

    broken = _dispatch(dispatcher, registry, "line-chart", config)
    sibling = _dispatch(dispatcher, registry, "bar-chart", config)

    assert not broken.success
    assert broken.output.kind == PlaceholderKind.ERROR
    assert broken.output.message == "Error rendering widget: line-chart"
    assert broken.fault.error_type == "RuntimeError"
    assert broken.fault.widget_type == "line-chart"
    assert sibling.success
    assert sibling.output.renderer == "BarChartWidget"


def test_renderer_returning_wrong_type_is_a_fault(dispatcher, registry, renderers):
    renderers.register("StatusCardWidget", lambda widget, key, props: {"not": "a widget"})
    result = _dispatch(dispatcher, registry, "status-card", {"dataSource": {"telemetry": "s"}, "data": [1]})
    assert not result.success
    assert result.fault.error_type == "TypeError"


# -- Camera --


def test_stream_url_prefers_config_over_data_source(registry):
    config = decode_widget_config({
        "streamUrl": "rtsp://cam/main",
        "dataSource": {"streamUrl": "rtsp://cam/sub", "telemetry": ["rtsp://cam/tele"]},
    })
    assert resolve_stream_url(config, ["rtsp://cam/tele"]) == "rtsp://cam/main"


def test_stream_url_falls_back_to_data_source_then_telemetry():
    config = decode_widget_config({"dataSource": {"streamUrl": "http://cam/hls.m3u8"}})
    assert resolve_stream_url(config, ["rtsp://cam/tele"]) == "http://cam/hls.m3u8"

    config = decode_widget_config({"dataSource": {"telemetry": "rtsp://cam/tele"}})
    assert resolve_stream_url(config, ["rtsp://cam/tele"]) == "rtsp://cam/tele"


def test_stream_url_is_always_a_string():
    assert resolve_stream_url(decode_widget_config({}), []) == ""
    assert resolve_stream_url(decode_widget_config({"streamUrl": 1234}), []) == ""
    # A plain telemetry key is not a stream locator
    assert resolve_stream_url(decode_widget_config({}), ["temperature"]) == ""


def test_looks_like_stream_locator():
    assert looks_like_stream_locator("rtsp://10.0.0.2:554/live")
    assert looks_like_stream_locator("/streams/cam1.m3u8")
    assert not looks_like_stream_locator("temp")
    assert not looks_like_stream_locator(None)


def test_camera_props(dispatcher, registry):
    changes = []
    config = {"title": "Gate", "dataSource": {"streamUrl": "rtsp://gate/1"}}
    result = _dispatch(
        dispatcher, registry, "camera-feed", config,
        on_config_change=lambda wid, cfg: changes.append((wid, cfg)),
    )

    props = result.output.props
    assert result.output.renderer == "CameraWidget"
    assert props["config"]["streamUrl"] == "rtsp://gate/1"
    assert props["config"]["telemetry"] == []
    assert props["config"]["title"] == "Gate"
    assert "onConfigChange" in result.output.actions

    props["onConfigChange"]({"title": "Gate 2"})
    assert changes == [("camera-feed-1", {"title": "Gate 2"})]


# -- Gauge --


def test_gauge_settings_save_merges_and_forwards(dispatcher, registry):
    changes = []
    config = {"title": "RPM", "max": 100, "dataSource": {"type": "mqtt", "telemetry": "rpm"}}
    before = copy.deepcopy(config)
    result = _dispatch(
        dispatcher, registry, "radial-gauge", config, [{"rpm": 40}],
        on_config_change=lambda wid, cfg: changes.append((wid, cfg)),
    )

    merged = result.output.props["onSettingsSave"]({"max": 200, "color": "red"})

    assert merged == {**before, "max": 200, "color": "red"}
    assert changes == [("radial-gauge-1", merged)]
    assert config == before


def test_gauge_settings_save_without_listener(dispatcher, registry):
    config = {"dataSource": {"type": "mqtt", "telemetry": "rpm"}}
    result = _dispatch(dispatcher, registry, "gauge", config, [{"rpm": 1}])
    assert result.output.props["onSettingsSave"]({"min": 0})["min"] == 0


# -- Controls --


def test_slider_props(dispatcher, registry):
    commands = CommandBinding(send_command=_noop, is_sending=True, connected=True)
    config = {"dataSource": {"type": "mqtt", "telemetry": "level", "telemetryOut": ["setpoint"]}}
    result = _dispatch(dispatcher, registry, "slider-control", config, [{"level": 3}], commands=commands)

    props = result.output.props
    assert props["sendMqttCommand"] is _noop
    assert props["isMqttSending"] is True
    assert props["mqttConnected"] is True
    assert props["telemetryOut"] == ["setpoint"]
    assert props["dataKeys"] == ["level"]


def test_slider_telemetry_out_defaults_to_empty(dispatcher, registry):
    result = _dispatch(dispatcher, registry, "slider-control", {"dataSource": {"telemetry": "l"}, "data": [1]})
    assert result.output.props["telemetryOut"] == []


def test_fan_control_props(dispatcher, registry):
    async def fan_sender(key, value=None):
        return None

    commands = CommandBinding(send_command=_noop, fan_send_command=fan_sender, connected=True)
    config = {"fans": [{"id": "f1"}], "dataSource": {"type": "mqtt", "telemetry": ["fans"]}}
    live = {"fans": {"f1": {"speed": 2}}}
    result = _dispatch(dispatcher, registry, "fan-control", config, live, commands=commands)

    props = result.output.props
    assert props["fans"] == [{"id": "f1"}]
    assert props["data"] == {"f1": {"speed": 2}}
    assert props["sendMqttCommand"] is fan_sender


def test_fan_control_defaults(dispatcher, registry):
    commands = CommandBinding(send_command=_noop)
    config = {"dataSource": {"type": "mqtt", "telemetry": ["fans"]}}
    result = _dispatch(dispatcher, registry, "fan-control", config, {"fans": {"f1": {}}}, commands=commands)
    assert result.output.props["fans"] == []
    assert result.output.props["sendMqttCommand"] is _noop


def test_device_command_props(dispatcher, registry):
    async def control_sender(key, value=None):
        return None

    commands = CommandBinding(
        send_command=_noop, command_control_send_command=control_sender, connected=False
    )
    config = {"dataSource": {"type": "device", "deviceId": "d1", "telemetry": "state"}}
    result = _dispatch(dispatcher, registry, "device-command-control", config, [{"state": 1}], commands=commands)

    props = result.output.props
    assert props["sendMqttCommand"] is control_sender
    assert props["mqttConnected"] is False
    assert props["isMqttSending"] is False


# -- Raw live and special cards --


def test_raw_live_cards_receive_live_view(dispatcher, registry):
    live = [{"door": "open"}]
    config = {"dataSource": {"type": "static", "telemetry": "door"}, "data": [{"door": "closed"}]}
    result = _dispatch(dispatcher, registry, "door-lock", config, live)
    assert result.output.props["data"] is live


def test_json_table_dark_mode(dispatcher, registry):
    value = {"a": 1}
    config = {"theme": "dark", "dataSource": {"isJsonObject": True, "jsonObjectValue": value}}
    result = _dispatch(dispatcher, registry, "json-table", config, {"live": True})
    props = result.output.props
    assert props["darkMode"] is True
    assert props["data"] == {"live": True}
    assert props["theme"] == "dark"


def test_image_card_receives_config_and_live_data(dispatcher, registry):
    config = {"imageUrl": "/img/plan.png", "dataSource": {"type": "mqtt", "telemetry": "t"}}
    live = [{"t": 1}]
    result = _dispatch(dispatcher, registry, "image-card", config, live)
    props = result.output.props
    assert props["config"] == config
    assert props["liveData"] is live


def test_rendered_widget_serialization_drops_callables(dispatcher, registry):
    commands = CommandBinding(send_command=_noop, connected=True)
    config = {"dataSource": {"type": "mqtt", "telemetry": "level"}}
    result = _dispatch(dispatcher, registry, "slider-control", config, [{"level": 3}], commands=commands)

    dumped = result.model_dump(mode="json")
    assert "sendMqttCommand" not in dumped["output"]["props"]
    assert dumped["output"]["actions"] == ["sendMqttCommand"]
    assert dumped["output"]["props"]["mqttConnected"] is True
