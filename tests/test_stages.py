import json

import pytest

from streampipe.packet import DataPacket
from streampipe.stages import (
    EnricherStage,
    FilterStage,
    FlinkStage,
    JsonParserStage,
    PipelineStage,
    TransformStage,
)

EVENT = {
    "event_id": "e1",
    "type": "sensor",
    "payload": {"temperature": 31.5, "humidity": 40},
    "metadata": {"location": "lab", "priority": 4},
}


def make(obj, source="src"):
    return DataPacket(json.dumps(obj, indent=4), source)


@pytest.fixture
def parser():
    stage = JsonParserStage()
    stage.delay = 0
    return stage


def test_stage_base_is_abstract():
    with pytest.raises(TypeError):
        PipelineStage()


def test_parser_rejects_missing_and_empty(parser):
    assert parser.process(None) is None
    assert parser.process(DataPacket("", "src")) is None


def test_parser_rejects_invalid_json(parser):
    assert parser.process(DataPacket("{not json", "src")) is None
    assert parser.process(DataPacket("NaN", "src")) is None


def test_parser_rejects_non_object(parser):
    assert parser.process(DataPacket("[1, 2]", "src")) is None


def test_parser_compacts_payload(parser):
    packet = DataPacket('{ "event_id" : "e1" ,\n "b": 2 }', "src")
    result = parser.process(packet)
    assert result is packet
    assert result.payload == '{"b":2,"event_id":"e1"}'


def test_parser_round_trip(parser):
    result = parser.process(make(EVENT))
    assert json.loads(result.payload) == EVENT


def test_filter_missing_priority():
    stage = FilterStage()
    assert stage.process(make({"event_id": "e1"})) is None
    assert stage.process(make({"event_id": "e1", "metadata": {}})) is None
    assert stage.process(DataPacket("{bad", "src")) is None


def test_filter_drops_low_priority():
    event = {"event_id": "e1", "metadata": {"priority": 2}}
    assert FilterStage().process(make(event)) is None


@pytest.mark.parametrize("priority", [3, 5, 3.5])
def test_filter_keeps_high_priority(priority):
    packet = make({"event_id": "e1", "metadata": {"priority": priority}})
    assert FilterStage().process(packet) is packet


def test_filter_rejects_non_numeric_priority():
    with pytest.raises(TypeError):
        FilterStage().process(make({"metadata": {"priority": "high"}}))


@pytest.mark.parametrize("temperature,alert", [(31, True), (30, False), (25.5, False)])
def test_enricher_alert(temperature, alert):
    event = {"event_id": "e1", "payload": {"temperature": temperature}}
    result = EnricherStage().process(make(event))
    assert json.loads(result.payload)["payload"]["temperature_alert"] is alert


def test_enricher_without_temperature_keeps_event():
    event = {"event_id": "e1", "payload": {"humidity": 10}}
    result = EnricherStage().process(make(event))
    assert json.loads(result.payload) == event


def test_enricher_adds_null_event_id():
    result = EnricherStage().process(make({"payload": {}}))
    data = json.loads(result.payload)
    assert "event_id" in data
    assert data["event_id"] is None


def test_enricher_errors():
    with pytest.raises(ValueError):
        EnricherStage().process(DataPacket("{bad", "src"))
    with pytest.raises(TypeError):
        EnricherStage().process(make({"payload": {"temperature": "hot"}}))


def test_transform_flattens():
    enriched = EnricherStage().process(make(EVENT))
    result = TransformStage().process(enriched)
    assert json.loads(result.payload) == {
        "event_id": EVENT["event_id"],
        "event_type": EVENT["type"],
        "temperature": EVENT["payload"]["temperature"],
        "humidity": EVENT["payload"]["humidity"],
        "alert": True,
        "location": EVENT["metadata"]["location"],
        "priority": EVENT["metadata"]["priority"],
    }
    assert result.payload.startswith("{\n  ")


def test_transform_missing_fields_are_null():
    result = TransformStage().process(make({"event_id": "e2"}))
    data = json.loads(result.payload)
    assert data["event_id"] == "e2"
    assert all(data[key] is None for key in data if key != "event_id")
    assert len(data) == 7


def test_transform_rejects_wrong_shape():
    with pytest.raises(TypeError):
        TransformStage().process(make({"event_id": "e1", "payload": 5}))


def test_flink_writes_file(tmp_path):
    stage = FlinkStage(tmp_path)
    assert stage.process(make(EVENT, source="FileTailSource")) is None
    written = tmp_path / "FileTailSource_e1.json"
    text = written.read_text(encoding="utf-8")
    assert json.loads(text) == EVENT
    assert text.endswith("}\n")


def test_flink_unknown_source(tmp_path):
    FlinkStage(tmp_path).process(make({"event_id": "e9"}, source=""))
    assert (tmp_path / "unknown_e9.json").exists()


@pytest.mark.parametrize(
    "payload",
    [json.dumps({"type": "x"}), json.dumps({"event_id": 7}), "{bad"],
)
def test_flink_writes_nothing_on_bad_event(tmp_path, payload):
    assert FlinkStage(tmp_path).process(DataPacket(payload, "src")) is None
    assert list(tmp_path.iterdir()) == []


def test_flink_unwritable_directory(tmp_path):
    stage = FlinkStage(tmp_path / "missing")
    assert stage.process(make({"event_id": "e1"})) is None
    assert not (tmp_path / "missing").exists()