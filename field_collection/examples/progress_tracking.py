"""Progress tracking case study.

Every device contributes its distance from the source plus the time left
before ``END_TIME``; the source tracks the maximum.  The weighted variant
drops links whose weight falls below ``3.5 / neighborhood size``.
"""

from __future__ import annotations

import numpy as np

from ..blocks.collection import mp_collection, sp_collection, wmp_collection
from ..blocks.policies import progress_policy, weighted_progress_policy
from ..core.context import Context
from ..core.primitives import count_hood, mux

END_TIME = 500.0
WEIGHT_RADIUS = 100.0


def progress_value(ctx: Context, source_id: int) -> float:
    """Distance to the live source position plus the remaining time."""
    source_pos = ctx.node_position(source_id)
    if not ctx.node_count(source_id) or source_pos is None:
        source_pos = ctx.device.position
    gap = float(np.linalg.norm(ctx.device.position - source_pos))
    return gap + (END_TIME - ctx.current_time)


def progress_tracking(
    ctx: Context,
    is_source: bool,
    source_id: int,
    dist: float,
) -> dict:
    value = progress_value(ctx, source_id)
    policy = progress_policy()
    weighted = weighted_progress_policy(count_hood(ctx))

    spc = sp_collection(ctx, dist, value, policy.null, policy.combine)
    mpc = mp_collection(ctx, dist, value, policy.null, policy.combine, policy.split)
    wmpc = wmp_collection(ctx, dist, WEIGHT_RADIUS, value, weighted.combine, weighted.gate)
    return {
        "spc_max": mux(ctx, is_source, spc, 0.0),
        "mpc_max": mux(ctx, is_source, mpc, 0.0),
        "wmpc_max": mux(ctx, is_source, wmpc, 0.0),
        "ideal_max": value,
    }
