"""Device counting case study.

Counts the devices reachable from the source with the three generic
collection strategies.  At the source each count should approach the number
of devices; ``ideal_sum`` holds every device's exact contribution so the
ideal total is the sum of that field.
"""

from __future__ import annotations

from ..blocks.collection import mp_collection, sp_collection, wmp_collection
from ..blocks.policies import count_policy
from ..core.context import Context
from ..core.primitives import mux

WEIGHT_RADIUS = 100.0


def device_counting(ctx: Context, is_source: bool, dist: float) -> dict:
    policy = count_policy()
    spc = sp_collection(ctx, dist, 1.0, policy.null, policy.combine)
    mpc = mp_collection(ctx, dist, 1.0, policy.null, policy.combine, policy.split)
    wmpc = wmp_collection(ctx, dist, WEIGHT_RADIUS, 1.0, policy.combine, policy.gate)
    return {
        "spc_sum": mux(ctx, is_source, spc, 0.0),
        "mpc_sum": mux(ctx, is_source, mpc, 0.0),
        "wmpc_sum": mux(ctx, is_source, wmpc, 0.0),
        "ideal_sum": 1.0,
    }
