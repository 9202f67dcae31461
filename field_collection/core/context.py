"""Execution context for a single device round.

The context is the neighbor-field substrate seen by one device: it holds a
snapshot of the neighbors' last completed exports, the device's round
timestamps, a call-path stack for alignment, and the exports produced during
the round.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

import numpy as np

from .device import Device


class Context:
    """Per-round execution context for one device.

    Every construct that communicates enters a call site with :meth:`push`,
    giving it a path such as ``distance@0/abf@0/share@0``.  Exports are keyed
    by path, so a device only hears neighbors that evaluated the same
    construct at the same site (*alignment*).

    ``current_time`` and ``next_time`` default to a synchronous schedule
    derived from ``round_count`` and ``delta_time``.  ``devices`` optionally
    exposes the whole network for lookups of remote devices.
    """

    def __init__(
        self,
        device: Device,
        neighbor_devices: dict[int, Device],
        round_count: int = 0,
        delta_time: float = 1.0,
        current_time: float | None = None,
        next_time: float | None = None,
        devices: Mapping[int, Device] | None = None,
    ) -> None:
        self.device = device
        self.neighbor_devices = neighbor_devices
        # Frozen at round start: later publications are seen next round.
        self._snapshot: dict[int, tuple[dict[str, Any], float | None]] = {
            nid: (dict(nd.exports), nd.export_time)
            for nid, nd in neighbor_devices.items()
        }
        self.round_count = round_count
        self.delta_time = delta_time
        if current_time is None:
            current_time = round_count * delta_time
        if next_time is None:
            next_time = current_time + delta_time
        self.current_time = current_time
        self.next_time = next_time
        self.devices = devices

        self._stack: list[str] = []
        self._siblings: list[int] = [0]
        self._exports: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Alignment
    # ------------------------------------------------------------------

    def push(self, tag: str) -> str:
        """Enter a call site and return its path.

        Sites at the same depth are numbered in evaluation order, so two
        calls of one construct in a row get distinct paths.
        """
        slot = self._siblings[-1]
        self._siblings[-1] = slot + 1
        self._stack.append(f"{tag}@{slot}")
        self._siblings.append(0)
        return self.call_path

    def pop(self) -> None:
        self._stack.pop()
        self._siblings.pop()

    @property
    def call_path(self) -> str:
        return "/".join(self._stack)

    def export(self, value: Any) -> None:
        """Publish *value* at the current path once the round completes."""
        self._exports[self.call_path] = value

    def get_exports(self) -> dict[str, Any]:
        return dict(self._exports)

    def aligned(self, path: str) -> dict[int, Any]:
        """Neighbor exports at *path*, keyed by neighbor ID in ID order."""
        out: dict[int, Any] = {}
        for nid in sorted(self._snapshot):
            value = self._snapshot[nid][0].get(path)
            if value is not None:
                out[nid] = value
        return out

    def old(self, path: str, default: Any = None) -> Any:
        """This device's value persisted at *path* by a previous round."""
        return self.device.state.get(path, default)

    def keep(self, path: str, value: Any) -> None:
        self.device.state[path] = value

    # ------------------------------------------------------------------
    # Neighbor geometry and timing
    # ------------------------------------------------------------------

    def nbr_range_to(self, neighbor_id: int) -> float:
        """Euclidean distance from this device to *neighbor_id*."""
        other = self.neighbor_devices.get(neighbor_id)
        if other is None:
            return math.inf
        return self.device.distance_to(other)

    def nbr_lag_to(self, neighbor_id: int) -> float:
        """Time elapsed since *neighbor_id* published its last export."""
        published = self._snapshot.get(neighbor_id, ({}, None))[1]
        if published is None:
            return math.inf
        return self.current_time - published

    # ------------------------------------------------------------------
    # Network lookups
    # ------------------------------------------------------------------

    def node_count(self, device_id: int) -> int:
        """1 if *device_id* is currently part of the network, else 0."""
        if self.devices is None:
            return int(device_id == self.device.id)
        return int(device_id in self.devices)

    def node_position(self, device_id: int) -> np.ndarray | None:
        """Live position of *device_id*, or ``None`` if it is not present."""
        if device_id == self.device.id:
            return self.device.position
        if self.devices is None or device_id not in self.devices:
            return None
        return self.devices[device_id].position

    def sense(self, name: str) -> Any:
        return self.device.sense(name)

    def mid(self) -> int:
        return self.device.id
