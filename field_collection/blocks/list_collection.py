"""List-arithmetic collection.

A self-stabilizing convergecast for asynchronous networks of moving
devices.  No tree is ever built or repaired: every round, every device
ranks its neighbors by how fast routing through them reduces the remaining
distance per unit of time, picks the best one as parent, and folds in the
accumulators of the neighbors that picked it in their own last round.

Per neighbor ``k`` the device reads:

``nbrdist[k]``
    the neighbor's distance estimate;
``Tu[k]``
    the neighbor's next expected round time, delayed by ``epsilon``;
``Pu[k]``
    the neighbor's distance projected to that time at ``speed``;

and ranks it with

    Vwst(k) = (distance - Pu[k]) / (Tu[k] - t)

provided this device's distance is finite and the neighbor's worst-case
distance ``range + speed * lag`` is still within ``radius``.  Parent is the
maximum of ``(Vwst(k), k)``, this device included: ties go to the larger
ID, and a device that finds no better neighbor is the root of its subtree.
A device whose own distance is not finite is always its own root.
"""

from __future__ import annotations

import math
from typing import Callable, TypeVar

from ..core.context import Context
from ..core.field import fold_hood, map_field, mux_field, with_self
from ..core.primitives import nbr, nbr_lag, nbr_range, share

T = TypeVar("T")


def link_priority(
    distance: float,
    projected: float,
    expected_time: float,
    now: float,
    worst_distance: float,
    radius: float,
) -> float:
    """Rate of distance reduction per unit time through one neighbor.

    Returns ``-inf`` for disqualified links: unknown own distance, neighbor
    possibly out of *radius*, or an expected time not after *now*.
    """
    if not math.isfinite(distance) or not worst_distance < radius:
        return -math.inf
    dt = expected_time - now
    if dt <= 0:
        return -math.inf
    return (distance - projected) / dt


def select_parent(priorities: dict[int, float]) -> int:
    """ID maximizing ``(priority, id)``."""
    return max(priorities, key=lambda k: (priorities[k], k))


def list_arith_collection(
    ctx: Context,
    distance: float,
    value: T,
    radius: float,
    speed: float,
    null: T,
    epsilon: float,
    accumulate: Callable[[T, T], T],
) -> T:
    """Collect *value* from every device toward the source of *distance*.

    *accumulate* must be associative and commutative with identity *null*.
    Returns this device's partial aggregate; at the source, once the network
    has settled, the aggregate over all devices with finite distance.
    """
    path = ctx.push("list_collection")
    try:
        me = ctx.mid()
        t = ctx.current_time
        expected = ctx.next_time + epsilon
        projected = distance + speed * (ctx.next_time - t)

        nbrdist = with_self(nbr(ctx, distance), me, distance)
        tu = with_self(nbr(ctx, expected), me, expected)
        pu = with_self(nbr(ctx, projected), me, projected)
        ranges = nbr_range(ctx)
        lags = nbr_lag(ctx)

        vwst: dict[int, float] = {}
        for k in nbrdist:
            if k == me:
                worst = 0.0
            else:
                worst = ranges.get(k, math.inf) + speed * lags.get(k, math.inf)
            vwst[k] = link_priority(distance, pu[k], tu[k], t, worst, radius)

        threshold = max(vwst.values())
        nbr(ctx, threshold)

        # Unreached devices forward nothing.
        parent = select_parent(vwst) if math.isfinite(distance) else me
        parents = nbr(ctx, parent)

        def body(prev: T, nbrs: dict[int, T]) -> T:
            children = map_field(lambda p: p == me, parents)
            return fold_hood(accumulate, mux_field(children, nbrs, null), value)

        return share(ctx, null, body)
    finally:
        ctx.pop()
