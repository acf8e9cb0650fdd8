"""Input sources that feed packets to a handler from a background thread."""

from __future__ import annotations

import json
import random
import socket
import sys
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .logger import get_logger
from .packet import DataPacket

PacketHandler = Callable[[DataPacket], None]

MAX_BUFFER_SIZE = 1024


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name!r}")


class InputSource(ABC):
    """A producer of packets that runs in its own thread between start and stop."""

    def __init__(self) -> None:
        self._running = False
        self._stop = threading.Event()
        self._worker: Optional[threading.Thread] = None

    @abstractmethod
    def name(self) -> str:
        """Name of the source, used as the packets' source and in logs."""

    @property
    def running(self) -> bool:
        return self._running

    def start_reading(self, handler: PacketHandler) -> None:
        """Start delivering packets to ``handler``; does nothing if already running."""
        if self._running:
            return
        self._running = True
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, args=(handler,), name=f"{self.name()}-reader", daemon=True
        )
        self._worker.start()

    def stop_reading(self) -> None:
        """Ask the reader to stop and wait for its thread to finish."""
        if not self._running:
            return
        self._running = False
        self._stop.set()
        worker, self._worker = self._worker, None
        if worker is not None and worker is not threading.current_thread():
            worker.join()

    @abstractmethod
    def _run(self, handler: PacketHandler) -> None:
        """Body of the reader thread; must return soon after ``_stop`` is set."""


class FileSource(InputSource):
    """Follows a file like ``tail -f`` and emits each complete JSON document it holds.

    Documents may span several lines. Carriage returns are removed and blank
    lines are skipped. Each document is re-serialized in compact form.
    """

    def __init__(self, file_path: str, poll_interval: float = 0.2) -> None:
        super().__init__()
        self.file_path = file_path
        self.poll_interval = poll_interval

    def name(self) -> str:
        return "FileTailSource"

    def _run(self, handler: PacketHandler) -> None:
        log = get_logger()
        try:
            stream = open(self.file_path, "r", encoding="utf-8", newline="")
        except OSError:
            log.error("Failed to open file:%s", self.file_path)
            return

        buffer = ""
        with stream:
            while not self._stop.is_set():
                position = stream.tell()
                line = stream.readline()
                if not line.endswith("\n"):
                    # No complete line yet: rewind and wait for the writer.
                    stream.seek(position)
                    self._stop.wait(self.poll_interval)
                    continue

                line = line[:-1].replace("\r", "")
                if not line:
                    continue
                buffer += line + "\n"

                try:
                    data = json.loads(buffer, parse_constant=_reject_constant)
                except ValueError:
                    continue

                packet = DataPacket(
                    json.dumps(data, separators=(",", ":"), sort_keys=True, ensure_ascii=False),
                    self.name(),
                )
                event_id = data.get("event_id") if isinstance(data, dict) else None
                log.info(
                    "Created a pkt and passing to First Stage of Pipeline %s",
                    json.dumps(event_id, ensure_ascii=False),
                )
                handler(packet)
                buffer = ""

        if buffer:
            log.error("Unparsed leftover data %s", buffer)


class SensorSource(InputSource):
    """Emits ``temperature=<20..40>`` readings every ``interval_ms`` milliseconds."""

    low = 20
    high = 40

    def __init__(self, interval_ms: int) -> None:
        super().__init__()
        self.interval_ms = interval_ms

    def name(self) -> str:
        return "SensorSource"

    def _run(self, handler: PacketHandler) -> None:
        rng = random.Random()
        while not self._stop.is_set():
            reading = rng.randint(self.low, self.high)
            handler(DataPacket(f"temperature={reading}", self.name()))
            self._stop.wait(self.interval_ms / 1000)


class SocketSource(InputSource):
    """Connects to a TCP server and emits each chunk it receives as a packet."""

    poll_interval = 0.2

    def __init__(self, host: str, port: int) -> None:
        super().__init__()
        self.host = host
        self.port = port

    def name(self) -> str:
        return "SocketSource"

    def _run(self, handler: PacketHandler) -> None:
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        except OSError as exc:
            print(f"failed to open the socket {exc}", file=sys.stderr)
            return

        with sock:
            try:
                sock.connect((self.host, self.port))
            except OSError as exc:
                print(f"failed to connect {exc}", file=sys.stderr)
                return

            sock.settimeout(self.poll_interval)
            while not self._stop.is_set():
                try:
                    chunk = sock.recv(MAX_BUFFER_SIZE - 1)
                except socket.timeout:
                    continue
                except OSError:
                    break
                if not chunk:
                    break
                text = chunk.split(b"\0", 1)[0].decode("utf-8", errors="replace")
                handler(DataPacket(text, self.name()))