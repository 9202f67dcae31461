"""Device mobility models."""

from __future__ import annotations

import logging

import numpy as np

from .network import Network

logger = logging.getLogger(__name__)


class RectangleWalk:
    """Random-waypoint walk inside an axis-aligned rectangle.

    Every device travels at constant *speed* toward a waypoint drawn
    uniformly in ``[low, high]``; on arrival it draws the next one.
    """

    def __init__(
        self,
        low: tuple[float, float],
        high: tuple[float, float],
        speed: float,
        rng: np.random.Generator | None = None,
    ) -> None:
        if speed < 0:
            raise ValueError(f"speed must be non-negative, got {speed}")
        self.low = np.asarray(low, dtype=float)
        self.high = np.asarray(high, dtype=float)
        if np.any(self.high < self.low):
            raise ValueError("rectangle upper corner is below the lower one")
        self.speed = speed
        self.rng = rng or np.random.default_rng()
        self._targets: dict[int, np.ndarray] = {}

    def _waypoint(self) -> np.ndarray:
        return self.rng.uniform(self.low, self.high)

    def advance(self, network: Network, dt: float) -> None:
        """Move every device of *network* for *dt* time units."""
        for did, dev in network.devices.items():
            budget = self.speed * dt
            pos = dev.position
            while budget > 0:
                target = self._targets.get(did)
                if target is None:
                    target = self._targets[did] = self._waypoint()
                gap = target - pos
                length = float(np.linalg.norm(gap))
                if length <= budget:
                    pos = target
                    budget -= length
                    self._targets[did] = self._waypoint()
                    if length == 0:
                        break
                else:
                    pos = pos + gap * (budget / length)
                    budget = 0.0
            network.move_device(did, pos)
        # Forget waypoints of devices that left.
        for did in list(self._targets):
            if did not in network.devices:
                del self._targets[did]
        logger.debug("moved %d devices by up to %.3f", len(network.devices), self.speed * dt)
