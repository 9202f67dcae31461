"""G block: distance estimation toward a (possibly moving) source.

Three self-stabilizing strategies are provided, and
:func:`estimate_distance` selects one of them by numeric ID so that a whole
simulation can be switched between strategies through a single sensor.
"""

from __future__ import annotations

import math

from ..core.context import Context
from ..core.primitives import share

# Fixed parameterization of the dispatched strategies.
BIS_PERIOD = 1.0
BIS_SPEED = 50.0
FLEX_EPSILON = 0.2
FLEX_RADIUS = 100.0
FLEX_DISTORTION = 0.1
FLEX_FREQUENCY = 10

ABF = 0
BIS = 1
FLEX = 2


def abf_distance(ctx: Context, source: bool) -> float:
    """Adaptive Bellman-Ford distance estimation.

    Source devices output ``0.0``; others take the minimum
    ``(neighbor_distance + range_to_neighbor)`` across aligned neighbors,
    or ``inf`` when they have none.
    """
    path = ctx.push("abf")
    try:
        def body(prev: float, nbrs: dict[int, float]) -> float:
            if source:
                return 0.0
            if not nbrs:
                return math.inf
            return min(nbrs[n] + ctx.nbr_range_to(n) for n in nbrs)

        return share(ctx, math.inf, body)
    finally:
        ctx.pop()


def bis_distance(ctx: Context, source: bool, period: float, speed: float) -> float:
    """Bounded-information-speed distance estimation.

    Every device keeps a pair ``(distance, time_distance)``.  The second
    component grows by ``speed`` per unit of neighbor lag, so stale
    information is outranked by fresher paths: a neighbor's candidate is
    ranked by the larger of its two components.  The source holds
    ``(0, -speed * period)`` to compensate for one round of lag.
    """
    path = ctx.push("bis")
    try:
        local = (0.0, -speed * period) if source else (math.inf, math.inf)

        def body(
            prev: tuple[float, float],
            nbrs: dict[int, tuple[float, float]],
        ) -> tuple[float, float]:
            if source:
                return local
            best = local
            for n in sorted(nbrs):
                d, t = nbrs[n]
                cand = (d + ctx.nbr_range_to(n), t + speed * ctx.nbr_lag_to(n))
                if (max(cand), cand[0]) < (max(best), best[0]):
                    best = cand
            return best

        return share(ctx, local, body)[0]
    finally:
        ctx.pop()


def flex_distance(
    ctx: Context,
    source: bool,
    epsilon: float,
    radius: float,
    distortion: float,
    frequency: int,
) -> float:
    """FLEX distance estimation.

    Ranges shorter than ``distortion * radius`` are stretched to it, which
    damps jitter from tiny movements.  The estimate jumps to the
    Bellman-Ford constraint when unknown, when it is off by more than a
    factor of two, or every *frequency* rounds; otherwise it only moves
    when its slope toward the steepest neighbor leaves ``1 +/- epsilon``.
    """
    path = ctx.push("flex")
    try:
        floor = distortion * radius

        def body(
            prev: tuple[float, int],
            nbrs: dict[int, tuple[float, int]],
        ) -> tuple[float, int]:
            old, count = prev
            if source:
                return (0.0, 0)
            if not nbrs:
                return (math.inf, 0)
            metric = {n: max(ctx.nbr_range_to(n), floor) for n in nbrs}
            constraint = min(nbrs[n][0] + metric[n] for n in nbrs)
            if not math.isfinite(constraint):
                return (math.inf, 0)
            count = (count + 1) % frequency
            if (
                not math.isfinite(old)
                or count == 0
                or old > 2 * constraint
                or constraint > 2 * old
            ):
                return (constraint, count)
            slopes = [
                ((old - nbrs[n][0]) / metric[n], n)
                for n in sorted(nbrs)
                if metric[n] > 0
            ]
            if not slopes:
                return (constraint, count)
            slope, k = max(slopes)
            if slope > 1 + epsilon:
                return (nbrs[k][0] + (1 + epsilon) * metric[k], count)
            if slope < 1 - epsilon:
                return (nbrs[k][0] + (1 - epsilon) * metric[k], count)
            return (old, count)

        return share(ctx, (math.inf, 0), body)[0]
    finally:
        ctx.pop()


def estimate_distance(ctx: Context, strategy_id: int, is_source: bool) -> float:
    """Distance to the source with the strategy selected by *strategy_id*.

    ``0`` is adaptive Bellman-Ford, ``1`` bounded information speed and
    ``2`` FLEX, each with a fixed parameterization.  Any other ID yields
    ``0.0``.
    """
    path = ctx.push("distance")
    try:
        if strategy_id == ABF:
            return abf_distance(ctx, is_source)
        if strategy_id == BIS:
            return bis_distance(ctx, is_source, BIS_PERIOD, BIS_SPEED)
        if strategy_id == FLEX:
            return flex_distance(
                ctx, is_source,
                FLEX_EPSILON, FLEX_RADIUS, FLEX_DISTORTION, FLEX_FREQUENCY,
            )
        return 0.0
    finally:
        ctx.pop()
