"""Simulation engines: round execution across the network."""

from __future__ import annotations

import heapq
import logging
import math
from typing import Any, Callable

import numpy as np

from ..core.context import Context
from ..core.device import Device
from .mobility import RectangleWalk
from .network import Network

logger = logging.getLogger(__name__)


class SimulationEngine:
    """Synchronous simulation engine for aggregate programs.

    Each :meth:`step` executes the aggregate program on every device,
    collects exports, and makes them available to neighbors in the next
    round.  All devices share the round timestamps
    ``round_count * delta_time``.
    """

    def __init__(
        self,
        network: Network,
        program: Callable[[Context], Any],
        delta_time: float = 1.0,
        mobility: RectangleWalk | None = None,
    ) -> None:
        if delta_time <= 0:
            raise ValueError(f"delta_time must be positive, got {delta_time}")
        self.network = network
        self.program = program
        self.delta_time = delta_time
        self.mobility = mobility
        self.round_count = 0
        self.time = 0.0
        self.results: dict[int, Any] = {}
        # Per-round history for analysis
        self.history: list[dict[int, Any]] = []

    def _build_context(
        self,
        device: Device,
        current_time: float | None = None,
        next_time: float | None = None,
    ) -> Context:
        neighbor_devices = {
            nid: self.network.devices[nid]
            for nid in device.neighbors
            if nid in self.network.devices
        }
        return Context(
            device=device,
            neighbor_devices=neighbor_devices,
            round_count=self.round_count,
            delta_time=self.delta_time,
            current_time=current_time,
            next_time=next_time,
            devices=self.network.devices,
        )

    def _move(self, dt: float) -> None:
        if self.mobility is not None:
            self.mobility.advance(self.network, dt)
            self.network.update_neighbors()

    def step(self) -> dict[int, Any]:
        """Execute one synchronous round for all devices.

        Returns a dict mapping device IDs to their program outputs.
        """
        if self.round_count > 0:
            self._move(self.delta_time)
        round_results: dict[int, Any] = {}
        new_exports: dict[int, dict[str, Any]] = {}
        t = self.round_count * self.delta_time
        next_t = t + self.delta_time

        for dev in self.network.devices.values():
            ctx = self._build_context(dev, t, next_t)
            result = self.program(ctx)
            new_exports[dev.id] = ctx.get_exports()
            round_results[dev.id] = result

        # Commit exports after all devices have executed (synchronous).
        for did, exports in new_exports.items():
            self.network.devices[did].publish(exports, t, next_t)

        logger.debug("round %d done at t=%.3f on %d devices",
                     self.round_count, t, len(round_results))
        self.round_count += 1
        self.time = next_t
        self.results = round_results
        self.history.append(dict(round_results))
        return round_results

    def run(self, num_rounds: int) -> list[dict[int, Any]]:
        """Run *num_rounds* rounds. Returns full history."""
        for _ in range(num_rounds):
            self.step()
        return self.history

    def get_field(self, key: str | None = None) -> dict[int, Any]:
        """Extract a named sub-field from the latest results.

        If results are dicts, returns ``{id: result[key]}``.
        If *key* is ``None``, returns the raw results.
        """
        if key is None:
            return dict(self.results)
        return {
            did: (r[key] if isinstance(r, dict) else r)
            for did, r in self.results.items()
        }


class AsyncSimulationEngine(SimulationEngine):
    """Asynchronous simulation engine.

    Every device fires on its own schedule: a first round uniformly
    distributed in ``[0, delta_time)``, then intervals drawn from a Weibull
    distribution with mean ``delta_time`` (relative deviation of about
    ``1 / shape``).  Rounds are processed in time order and each device's
    exports become visible as soon as its round completes, so a device may
    run several rounds before a neighbor runs once.

    :meth:`step` advances the simulated clock by ``delta_time``, running
    every round due in that window, and records a snapshot of the latest
    per-device results.
    """

    def __init__(
        self,
        network: Network,
        program: Callable[[Context], Any],
        delta_time: float = 1.0,
        mobility: RectangleWalk | None = None,
        shape: float = 10.0,
        rng: np.random.Generator | None = None,
    ) -> None:
        super().__init__(network, program, delta_time, mobility)
        if shape <= 0:
            raise ValueError(f"shape must be positive, got {shape}")
        self.shape = shape
        self.rng = rng or np.random.default_rng()
        self._scale = delta_time / math.gamma(1.0 + 1.0 / shape)
        self._queue: list[tuple[float, int]] = []
        self._scheduled: dict[int, float] = {}
        self.event_count = 0

    def _interval(self) -> float:
        return float(self._scale * self.rng.weibull(self.shape))

    def _schedule_new_devices(self) -> None:
        for did in self.network.devices:
            if did not in self._scheduled:
                first = self.time + float(self.rng.uniform(0.0, self.delta_time))
                self._scheduled[did] = first
                heapq.heappush(self._queue, (first, did))

    def _fire(self, t: float, did: int) -> None:
        dev = self.network.devices[did]
        next_t = t + self._interval()
        ctx = self._build_context(dev, t, next_t)
        self.results[did] = self.program(ctx)
        dev.publish(ctx.get_exports(), t, next_t)
        self._scheduled[did] = next_t
        heapq.heappush(self._queue, (next_t, did))
        self.event_count += 1

    def run_until(self, end_time: float) -> None:
        """Run every round scheduled at or before *end_time*."""
        self._schedule_new_devices()
        while self._queue and self._queue[0][0] <= end_time:
            t, did = heapq.heappop(self._queue)
            if did not in self.network.devices:
                self._scheduled.pop(did, None)
                continue
            if self._scheduled.get(did) != t:
                continue  # stale entry
            self._fire(t, did)
        self.time = max(self.time, end_time)

    def step(self) -> dict[int, Any]:
        if self.round_count > 0:
            self._move(self.delta_time)
        self.run_until(self.time + self.delta_time)
        for did in list(self.results):
            if did not in self.network.devices:
                del self.results[did]
        logger.debug("window %d done at t=%.3f, %d rounds so far",
                     self.round_count, self.time, self.event_count)
        self.round_count += 1
        self.history.append(dict(self.results))
        return dict(self.results)
