"""The unit of data that travels through a pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class DataPacket:
    """A payload with the name of the source it came from and its creation time.

    ``timestamp`` is taken from a monotonic clock when the packet is created.
    """

    payload: str
    source: str
    timestamp: float = field(default_factory=time.monotonic)

    def age_ms(self) -> int:
        """Whole milliseconds elapsed since the packet was created."""
        return int((time.monotonic() - self.timestamp) * 1000)