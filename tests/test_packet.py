import time

from streampipe.packet import DataPacket


def test_fields_are_kept():
    packet = DataPacket('{"event_id": "e1"}', "FileTailSource")
    assert packet.payload == '{"event_id": "e1"}'
    assert packet.source == "FileTailSource"


def test_payload_is_mutable():
    packet = DataPacket("a", "src")
    packet.payload = "b"
    assert packet.payload == "b"


def test_timestamps_are_monotonic():
    first = DataPacket("a", "src")
    second = DataPacket("b", "src")
    assert second.timestamp >= first.timestamp


def test_fresh_packet_is_young():
    packet = DataPacket("a", "src")
    assert 0 <= packet.age_ms() < 1000


def test_age_reflects_timestamp():
    packet = DataPacket("a", "src", timestamp=time.monotonic() - 2.0)
    assert packet.age_ms() >= 2000


def test_age_grows():
    packet = DataPacket("a", "src")
    before = packet.age_ms()
    time.sleep(0.02)
    assert packet.age_ms() >= before + 10