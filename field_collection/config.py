"""Scenario configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

import numpy as np

from .simulation.network import Network
from .simulation.sensors import collection_sensors


@dataclass
class ScenarioConfig:
    """Parameters of a collection scenario.

    Attributes
    ----------
    devices:
        Number of devices, placed uniformly at random in the area.
    width, height:
        Side lengths of the deployment rectangle.
    comm_range:
        Devices closer than this are neighbors.
    speed:
        Device movement speed (``0`` for a static network).
    end_time:
        Simulated time at which the scenario stops.
    switch_time:
        Time at which the source moves from device 0 to device 1.
    algorithm:
        Distance strategy selector passed to ``estimate_distance``.
    delta_time:
        Mean interval between the rounds of a device.
    seed:
        Seed for placement, mobility and round schedules.
    radius, collection_speed, epsilon:
        Parameters of the list-arithmetic collection.
    """

    devices: int = 100
    width: float = 2000.0
    height: float = 200.0
    comm_range: float = 100.0
    speed: float = 30.5
    end_time: float = 500.0
    switch_time: float = 250.0
    algorithm: int = 0
    delta_time: float = 1.0
    seed: int | None = None
    radius: float = 100.0
    collection_speed: float = 0.0
    epsilon: float = 1.0

    def __post_init__(self) -> None:
        if self.devices < 1:
            raise ValueError(f"devices must be at least 1, got {self.devices}")
        for name in ("width", "height", "comm_range", "delta_time", "radius"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("speed", "end_time", "switch_time", "collection_speed", "epsilon"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScenarioConfig:
        """Build a config from *data*, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)


def build_network(cfg: ScenarioConfig, rng: np.random.Generator | None = None) -> Network:
    """Random network over the configured area, device 0 as initial source."""
    return Network.random(
        cfg.devices,
        width=cfg.width,
        height=cfg.height,
        comm_range=cfg.comm_range,
        sensors_fn=collection_sensors(0, 1.0, cfg.algorithm),
        rng=rng or cfg.rng(),
    )
