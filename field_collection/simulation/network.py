"""Devices in the plane and their unit-disc neighbor relation.

Devices closer than ``comm_range`` are neighbors.  The relation is only
recomputed by :meth:`Network.update_neighbors`, so engines decide when
movement becomes visible to the programs.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable

import numpy as np

from ..core.device import Device

logger = logging.getLogger(__name__)

Position = tuple[float, float] | np.ndarray


class Network:
    """Mutable set of devices keyed by ID, plus the neighbor relation."""

    def __init__(self, comm_range: float = 1.5) -> None:
        if comm_range <= 0:
            raise ValueError(f"comm_range must be positive, got {comm_range}")
        self.comm_range = comm_range
        self.devices: dict[int, Device] = {}

    def add_device(
        self,
        position: Position,
        sensors: dict[str, Any] | None = None,
        device_id: int | None = None,
    ) -> Device:
        """Add a device (next free ID unless *device_id* is given)."""
        if device_id is None:
            device_id = max(self.devices, default=-1) + 1
        if device_id in self.devices:
            raise ValueError(f"device {device_id} already exists")
        dev = Device(id=device_id, position=np.asarray(position, dtype=float),
                     sensors=dict(sensors or {}))
        self.devices[device_id] = dev
        logger.debug("device %d joined at %s", device_id, dev.position)
        return dev

    def remove_device(self, device_id: int) -> None:
        """Drop a device; unknown IDs are ignored."""
        if self.devices.pop(device_id, None) is None:
            return
        for dev in self.devices.values():
            if device_id in dev.neighbors:
                dev.neighbors.remove(device_id)
        logger.debug("device %d left the network", device_id)

    def move_device(self, device_id: int, position: Position) -> None:
        self.devices[device_id].position = np.asarray(position, dtype=float)

    def positions(self) -> tuple[list[int], np.ndarray]:
        """IDs in ascending order and the matching ``(n, 2)`` position array."""
        ids = sorted(self.devices)
        if not ids:
            return ids, np.empty((0, 2))
        return ids, np.stack([self.devices[i].position for i in ids])

    def update_neighbors(self) -> None:
        """Recompute every neighbor list from the current positions."""
        ids, pts = self.positions()
        if not ids:
            return
        gaps = np.linalg.norm(pts[:, None, :] - pts[None, :, :], axis=-1)
        linked = gaps <= self.comm_range
        np.fill_diagonal(linked, False)
        for row, did in zip(linked, ids):
            self.devices[did].neighbors = [ids[j] for j in np.flatnonzero(row)]
        logger.debug("topology updated: %d devices, %d links",
                     len(ids), int(linked.sum()) // 2)

    def get_distance(self, id_a: int, id_b: int) -> float:
        """Distance between two devices, ``inf`` if either is absent."""
        if id_a not in self.devices or id_b not in self.devices:
            return math.inf
        return self.devices[id_a].distance_to(self.devices[id_b])

    # ── Factory helpers ──────────────────────────────────────────────

    @classmethod
    def grid(
        cls,
        rows: int,
        cols: int,
        spacing: float = 1.0,
        comm_range: float | None = None,
        sensors_fn: Callable[[int, int, int], dict[str, Any]] | None = None,
    ) -> Network:
        """Regular grid, IDs row by row.

        ``comm_range`` defaults to ``1.5 * spacing`` (diagonals included).
        *sensors_fn* maps ``(device_id, row, col)`` to sensor values.
        """
        net = cls(comm_range=comm_range if comm_range is not None else 1.5 * spacing)
        for did in range(rows * cols):
            r, c = divmod(did, cols)
            sensors = sensors_fn(did, r, c) if sensors_fn is not None else None
            net.add_device((c * spacing, r * spacing), sensors, device_id=did)
        net.update_neighbors()
        return net

    @classmethod
    def random(
        cls,
        n: int,
        width: float = 10.0,
        height: float = 10.0,
        comm_range: float = 2.0,
        sensors_fn: Callable[[int], dict[str, Any]] | None = None,
        rng: np.random.Generator | None = None,
    ) -> Network:
        """*n* devices placed uniformly in ``[0, width] x [0, height]``."""
        rng = rng or np.random.default_rng()
        pts = rng.uniform((0.0, 0.0), (width, height), size=(n, 2))
        net = cls(comm_range=comm_range)
        for did, pos in enumerate(pts):
            sensors = sensors_fn(did) if sensors_fn is not None else None
            net.add_device(pos, sensors, device_id=did)
        net.update_neighbors()
        return net
