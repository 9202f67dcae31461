"""Sensor providers for simulation scenarios."""

from __future__ import annotations

from typing import Any


def point_source(source_id: int) -> Any:
    """Sensor factory: marks a single device as the source."""
    def fn(did: int, *_args: Any) -> dict[str, Any]:
        return {"is_source": did == source_id}
    return fn


def collection_sensors(
    source_id: int = 0,
    value: float = 1.0,
    algorithm: int = 0,
) -> Any:
    """Sensor factory for collection scenarios.

    Every device gets the same contributed *value* and distance *algorithm*
    selector; only *source_id* is flagged as source.
    """
    def fn(did: int, *_args: Any) -> dict[str, Any]:
        return {
            "is_source": did == source_id,
            "value": value,
            "algorithm": algorithm,
        }
    return fn
