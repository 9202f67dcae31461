"""Device model for field-based collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass
class Device:
    """A single device in the network.

    Each device has a unique ID, a 2D position, sensors, persistent state
    keyed by call path, and the export tree of its last completed round,
    which is what neighbors read.  ``export_time`` is the time of that round
    (``None`` before the first one).
    """

    id: int
    position: np.ndarray  # shape (2,)
    sensors: dict[str, Any] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)
    exports: dict[str, Any] = field(default_factory=dict)
    neighbors: list[int] = field(default_factory=list)
    current_time: float = 0.0
    next_time: float = 0.0
    export_time: float | None = None

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float)

    def distance_to(self, other: Device) -> float:
        return float(np.linalg.norm(self.position - other.position))

    def sense(self, name: str) -> Any:
        return self.sensors.get(name)

    def publish(self, exports: dict[str, Any], time: float, next_time: float) -> None:
        """Make the exports of a completed round visible to neighbors."""
        self.exports = exports
        self.export_time = time
        self.current_time = time
        self.next_time = next_time
