"""Processing stages that transform JSON event packets."""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from .logger import get_logger
from .packet import DataPacket


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name!r}")


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _dump_compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def _dump_pretty(value: Any) -> str:
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)


def _field(obj: Any, key: str) -> Any:
    """Read ``key`` from a JSON object; null reads as null, other kinds are an error."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    raise TypeError(f"cannot read {key!r} from JSON {type(obj).__name__}")


def _contains(obj: Any, key: str) -> bool:
    return isinstance(obj, dict) and key in obj


def _number(value: Any, name: str) -> float:
    if isinstance(value, (bool, int, float)):
        return value
    raise TypeError(f"{name} must be a number, got {type(value).__name__}")


def _show(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


class PipelineStage(ABC):
    """One step of a pipeline: takes a packet, returns a packet or None to drop it."""

    @abstractmethod
    def process(self, packet: DataPacket) -> Optional[DataPacket]:
        """Handle one packet."""

    def initialize(self) -> None:
        """Called once before workers start; logs the event by default."""
        get_logger().debug("[%s] Initializing stage", type(self).__name__)

    def shutdown(self) -> None:
        """Called once after workers stop; logs the event by default."""
        get_logger().debug("[%s] Shutting down stage", type(self).__name__)


class JsonParserStage(PipelineStage):
    """Validates the payload as JSON and rewrites it in compact form."""

    delay = 0.002

    def process(self, packet: Optional[DataPacket]) -> Optional[DataPacket]:
        log = get_logger()
        if packet is None or not packet.payload:
            log.error("[JsonParseStage] Json Parse Error Empty or null Payload")
            return None
        try:
            data = _loads(packet.payload)
            packet.payload = _dump_compact(data)
            log.info("[JsonParseStage] Json for Id %s", _show(_field(data, "event_id")))
        except (ValueError, TypeError) as exc:
            log.error("[JsonParseStage] Json Parse Error Failed to Parse %s", exc)
            return None
        if self.delay:
            time.sleep(self.delay)
        return packet


class FilterStage(PipelineStage):
    """Drops events without ``metadata.priority`` or with a priority below 3."""

    min_priority = 3

    def process(self, packet: DataPacket) -> Optional[DataPacket]:
        log = get_logger()
        try:
            data = _loads(packet.payload)
        except ValueError:
            data = None
        metadata = data.get("metadata") if isinstance(data, dict) else None
        if not _contains(metadata, "priority"):
            log.error("[FilterStage] Missing priority field from Metadata")
            return None

        priority = int(_number(metadata["priority"], "priority"))
        if priority < self.min_priority:
            log.warning("[FilterStage] Dropping low-priority event")
            return None

        log.info("[FilterStage] Json for Id %s", _show(data.get("event_id")))
        return packet


class EnricherStage(PipelineStage):
    """Adds ``payload.temperature_alert``, true when the temperature exceeds 30."""

    threshold = 30.0

    def process(self, packet: DataPacket) -> DataPacket:
        log = get_logger()
        data = _loads(packet.payload)

        inner = data.get("payload") if isinstance(data, dict) else None
        if _contains(inner, "temperature"):
            temperature = float(_number(inner["temperature"], "temperature"))
            alert = temperature > self.threshold
            inner["temperature_alert"] = alert
            log.info("[EnricherStage] Json Adding Alet field if temp > 30 %s", str(alert).lower())

        if data is None:
            data = {}
        elif not isinstance(data, dict):
            raise TypeError(f"cannot read 'event_id' from JSON {type(data).__name__}")
        data.setdefault("event_id", None)
        log.info("[EnricherStage] Json for Id %s", _show(data["event_id"]))
        packet.payload = _dump_compact(data)
        return packet


class TransformStage(PipelineStage):
    """Flattens an event into a single-level, indented JSON object."""

    def process(self, packet: DataPacket) -> DataPacket:
        data = _loads(packet.payload)
        payload = _field(data, "payload")
        metadata = _field(data, "metadata")

        flat = {
            "event_id": _field(data, "event_id"),
            "event_type": _field(data, "type"),
            "temperature": _field(payload, "temperature"),
            "humidity": _field(payload, "humidity"),
            "alert": _field(payload, "temperature_alert"),
            "location": _field(metadata, "location"),
            "priority": _field(metadata, "priority"),
        }

        get_logger().info(
            "[TransformStage] Creating a simple Flat json for id %s", _show(flat["event_id"])
        )
        packet.payload = _dump_pretty(flat)
        return packet


class FlinkStage(PipelineStage):
    """Final stage: writes each event to ``<source>_<event_id>.json``; always returns None."""

    def __init__(self, output_dir: str | Path = ".") -> None:
        self.output_dir = Path(output_dir)

    def process(self, packet: DataPacket) -> None:
        log = get_logger()
        try:
            data = _loads(packet.payload)
            if not _contains(data, "event_id"):
                log.error("[FlinkStage] does not contain event_id null")
                return None

            event_id = data["event_id"]
            if not isinstance(event_id, str):
                raise TypeError(f"event_id must be a string, got {type(event_id).__name__}")
            source = packet.source or "unknown"
            path = self.output_dir / f"{source}_{event_id}.json"

            try:
                out = path.open("w", encoding="utf-8")
            except OSError:
                log.error("[FlinkStage] Cannot open file %s", path)
                return None

            with out:
                log.info("[FlinkStage] Packet latency: %d ms", packet.age_ms())
                out.write(_dump_pretty(data) + "\n")
                log.info("[FlinkStage] End of the stage %s", _show(event_id))
        except (ValueError, TypeError, OSError) as exc:
            log.error("[FlinkStage] Error writing packet %s", exc)
        return None