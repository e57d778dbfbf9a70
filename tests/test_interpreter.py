"""Tests for the config interpreter."""

import copy
import logging

import pytest

from widget_engine.resolution.interpreter import (
    CHART_BUFFER_SIZE,
    DEFAULT_BUFFER_SIZE,
    ConfigDecodeError,
    buffer_size_for,
    config_with_buffer_size,
    decode_widget_config,
    extract_telemetry_keys,
    interpret,
)
from widget_engine.resolution.schemas import JsonObjectSource, TelemetrySource

CHART_TYPES = ["line-chart", "bar-chart", "time-series-chart", "value-card"]


@pytest.mark.parametrize("widget_type", CHART_TYPES)
def test_chart_types_buffer_fifty_samples(registry, widget_type):
    assert buffer_size_for(widget_type, registry) == CHART_BUFFER_SIZE == 50


def test_every_other_type_buffers_one_sample(registry):
    for tag in registry.list_keys():
        if tag not in CHART_TYPES:
            assert buffer_size_for(tag, registry) == DEFAULT_BUFFER_SIZE == 1, tag
    assert buffer_size_for("not-a-widget", registry) == 1


def test_single_string_telemetry_becomes_list():
    assert extract_telemetry_keys({"telemetry": "temp"}) == ["temp"]


def test_falsy_telemetry_entries_dropped_in_order():
    assert extract_telemetry_keys({"telemetry": ["temp", "", None, "hum"]}) == ["temp", "hum"]


@pytest.mark.parametrize("telemetry", [None, "", [], 42, {"temp": True}])
def test_other_telemetry_shapes_yield_empty_list(telemetry):
    assert extract_telemetry_keys({"telemetry": telemetry}) == []


def test_missing_data_source_yields_empty_keys():
    assert extract_telemetry_keys(None) == []


def test_interpret_defaults_to_static(registry):
    interpreted = interpret({"id": "w1", "type": "status-card"}, {}, registry)
    assert interpreted.data_source_type == "static"
    assert interpreted.telemetry_keys == []
    assert interpreted.buffer_size == 1
    assert not interpreted.is_live


def test_interpret_live_chart(registry, mqtt_config):
    interpreted = interpret({"id": "w1", "type": "line-chart"}, mqtt_config, registry)
    assert interpreted.data_source_type == "mqtt"
    assert interpreted.telemetry_keys == ["temp", "pressure"]
    assert interpreted.buffer_size == 50
    assert interpreted.is_live


def test_source_type_is_normalized(registry):
    config = {"dataSource": {"type": " MQTT ", "telemetry": "temp"}}
    assert interpret({"id": 1, "type": "value-card"}, config, registry).data_source_type == "mqtt"


def test_decode_selects_json_object_mode():
    config = decode_widget_config({
        "dataSource": {
            "isJsonObject": True,
            "jsonObjectValue": {"rows": [1, 2]},
            "telemetry": ["temp"],
        }
    })
    assert isinstance(config.data_source, JsonObjectSource)
    assert config.is_json_object_mode
    assert config.data_source.value == {"rows": [1, 2]}
    assert config.data_source.telemetry_keys == ["temp"]


def test_json_object_mode_keeps_telemetry_keys(registry):
    config = {"dataSource": {"type": "mqtt", "isJsonObject": True, "telemetry": ["temp"]}}
    interpreted = interpret({"id": "w", "type": "json-table"}, config, registry)
    assert interpreted.telemetry_keys == ["temp"]


def test_decode_applies_named_defaults():
    config = decode_widget_config({"dataSource": {"telemetry": "temp"}})
    assert isinstance(config.data_source, TelemetrySource)
    assert config.theme == "light"
    assert config.fans == []
    assert config.data_source.telemetry_out == []
    assert config.data_source.type == "static"


def test_decode_preserves_unknown_fields():
    config = decode_widget_config({"title": "Boiler", "unit": "°C"})
    assert config.raw == {"title": "Boiler", "unit": "°C"}


def test_decode_rejects_non_mapping_config():
    with pytest.raises(ConfigDecodeError) as exc:
        decode_widget_config(["not", "a", "config"], widget_id="w9")
    assert exc.value.widget_id == "w9"
    assert exc.value.to_dict()["error_type"] == "ConfigDecodeError"


def test_decode_rejects_non_mapping_data_source():
    with pytest.raises(ConfigDecodeError):
        decode_widget_config({"dataSource": "mqtt"})


def test_decode_never_mutates_input(mqtt_config):
    before = copy.deepcopy(mqtt_config)
    decode_widget_config(mqtt_config)
    config_with_buffer_size(mqtt_config, 50)
    assert mqtt_config == before


def test_config_with_buffer_size_returns_new_dict(mqtt_config):
    sized = config_with_buffer_size(mqtt_config, 50)
    assert sized is not mqtt_config
    assert sized["bufferSize"] == 50
    assert sized["dataSource"] is mqtt_config["dataSource"]


def test_decode_drops_fans_that_are_not_a_list(caplog):
    with caplog.at_level(logging.WARNING, logger="widget_engine.resolution.interpreter"):
        config = decode_widget_config({"fans": {"f1": {"label": "Inlet"}}}, widget_id="fc")
    assert config.fans == []
    assert config.raw["fans"] == {"f1": {"label": "Inlet"}}
    assert "fc" in caplog.text


def test_decode_keeps_fan_list():
    fans = [{"id": "f1"}, {"id": "f2"}]
    assert decode_widget_config({"fans": fans}).fans == fans
