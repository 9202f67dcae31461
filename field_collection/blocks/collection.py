"""C block: collection / aggregation toward the source.

Data flows *inward* along a distance field: every device folds its own
value with the contributions of the neighbors that route through it.  The
three strategies differ in how a device picks where its partial aggregate
goes:

* single-path: one parent, the closest neighbor;
* multi-path: every closer neighbor, with ``divide`` compensating for the
  duplication;
* weighted multi-path: every closer neighbor, each with a weight that
  ``multiply`` applies to the value it receives.
"""

from __future__ import annotations

import math
from typing import Callable, TypeVar

from ..core.context import Context
from ..core.field import fold_hood, map2, map_field, mux_field, with_self
from ..core.primitives import nbr, nbr_field, nbr_range, nbr_uid, share

T = TypeVar("T")


def sp_collection(
    ctx: Context,
    distance: float,
    value: T,
    null: T,
    accumulate: Callable[[T, T], T],
) -> T:
    """Single-path collection.

    The parent is the neighbor (or this device) with the smallest
    ``(distance, id)`` pair; only children that picked this device as their
    parent in their last round contribute.
    """
    path = ctx.push("sp_collection")
    try:
        me = ctx.mid()
        nbrdist = nbr(ctx, distance)
        candidates = with_self(
            map2(lambda d, uid: (d, uid), nbrdist, nbr_uid(ctx)),
            me, (distance, me),
        )
        parent = min(candidates.values())[1]
        parents = nbr(ctx, parent)

        def body(prev: T, nbrs: dict[int, T]) -> T:
            children = map_field(lambda p: p == me, parents)
            return fold_hood(accumulate, mux_field(children, nbrs, null), value)

        return share(ctx, null, body)
    finally:
        ctx.pop()


def mp_collection(
    ctx: Context,
    distance: float,
    value: T,
    null: T,
    accumulate: Callable[[T, T], T],
    divide: Callable[[T, int], T],
) -> T:
    """Multi-path collection.

    Every neighbor farther from the source contributes; the folded result is
    divided by the number of closer neighbors it will be sent to.
    """
    path = ctx.push("mp_collection")
    try:
        nbrdist = nbr(ctx, distance)

        def body(prev: T, nbrs: dict[int, T]) -> T:
            farther = map_field(lambda d: d > distance, nbrdist)
            total = fold_hood(accumulate, mux_field(farther, nbrs, null), value)
            n = sum(1 for d in nbrdist.values() if d < distance)
            return divide(total, max(n, 1))

        return share(ctx, null, body)
    finally:
        ctx.pop()


def collection_weights(
    distance: float,
    nbrdist: dict[int, float],
    ranges: dict[int, float],
    radius: float,
) -> dict[int, float]:
    """Normalized weights toward strictly closer neighbors.

    A neighbor's raw weight grows with the distance it gains and shrinks as
    it approaches the edge of *radius*.  Weights sum to 1 unless no neighbor
    qualifies, in which case the result is empty.
    """
    if not math.isfinite(distance):
        return {}
    raw = {
        n: (distance - d) * max(radius - ranges.get(n, math.inf), 0.0)
        for n, d in nbrdist.items()
        if d < distance
    }
    tot = sum(raw.values())
    if tot <= 0:
        return {}
    return {n: w / tot for n, w in raw.items() if w > 0}


def wmp_collection(
    ctx: Context,
    distance: float,
    radius: float,
    value: T,
    accumulate: Callable[[T, T], T],
    multiply: Callable[[T, float], T],
) -> T:
    """Weighted multi-path collection.

    Each device exports its weight field; a neighbor's carried value reaches
    this device through ``multiply(value, weight_the_neighbor_assigned_me)``.
    """
    path = ctx.push("wmp_collection")
    try:
        nbrdist = nbr(ctx, distance)
        weights = collection_weights(distance, nbrdist, nbr_range(ctx), radius)
        received = nbr_field(ctx, weights, 0.0)

        def body(prev: T, nbrs: dict[int, T]) -> T:
            return fold_hood(accumulate, map2(multiply, nbrs, received, 0.0), value)

        return share(ctx, value, body)
    finally:
        ctx.pop()
