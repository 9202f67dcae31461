"""Tests for field calculus primitives."""

from __future__ import annotations

import math

import numpy as np

from field_collection.core.device import Device
from field_collection.core.context import Context
from field_collection.core.primitives import (
    rep, nbr, nbr_field, share, foldhood, mux, mid, sense,
    nbr_range, nbr_lag, nbr_uid, count_hood,
)


# ── Helpers ──────────────────────────────────────────────────────────

def _make_device(did: int = 0, pos: tuple = (0, 0), sensors: dict | None = None) -> Device:
    return Device(id=did, position=np.array(pos, dtype=float),
                  sensors=sensors or {})


def _make_ctx(
    device: Device,
    neighbor_devices: dict[int, Device] | None = None,
) -> Context:
    return Context(
        device=device,
        neighbor_devices=neighbor_devices or {},
        round_count=0,
        delta_time=1.0,
    )


def _two_device_setup() -> tuple[Device, Device, Context, Context]:
    """Two devices at distance 1.0 that are neighbors."""
    d0 = _make_device(0, (0, 0))
    d1 = _make_device(1, (1, 0))
    d0.neighbors = [1]
    d1.neighbors = [0]
    ctx0 = _make_ctx(d0, {1: d1})
    ctx1 = _make_ctx(d1, {0: d0})
    return d0, d1, ctx0, ctx1


# ── rep ──────────────────────────────────────────────────────────────

class TestRep:
    def test_first_round_returns_init(self):
        dev = _make_device()
        ctx = _make_ctx(dev)
        result = rep(ctx, 0, lambda x: x + 1)
        assert result == 1

    def test_accumulates_across_rounds(self):
        dev = _make_device()
        r1 = rep(_make_ctx(dev), 0, lambda x: x + 1)
        assert r1 == 1
        # previous state persisted in dev.state
        r2 = rep(_make_ctx(dev), 0, lambda x: x + 1)
        assert r2 == 2

    def test_old_reads_persisted_state(self):
        dev = _make_device()
        ctx = _make_ctx(dev)
        rep(ctx, 10, lambda x: x * 2)
        path = next(iter(ctx.get_exports()))
        assert _make_ctx(dev).old(path) == 20
        assert _make_ctx(dev).old("missing", "default") == "default"


# ── nbr ──────────────────────────────────────────────────────────────

class TestNbr:
    def test_no_neighbors_returns_empty(self):
        dev = _make_device()
        ctx = _make_ctx(dev)
        assert nbr(ctx, 42) == {}

    def test_reads_neighbor_exports(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        nbr(ctx1, 100)
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        ctx0_round2 = Context(d0, {1: d1})
        val0 = nbr(ctx0_round2, 200)
        assert val0 == {1: 100}

    def test_unpublished_neighbor_is_absent(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        nbr(ctx1, 100)
        # d1 never published: d0 sees nothing
        assert nbr(Context(d0, {1: d1}), 200) == {}

    def test_different_call_sites_do_not_mix(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        nbr(ctx1, "first")
        nbr(ctx1, "second")
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        ctx = Context(d0, {1: d1})
        assert nbr(ctx, None) == {1: "first"}
        assert nbr(ctx, None) == {1: "second"}


class TestNbrField:
    def test_reads_entry_addressed_to_self(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        nbr_field(ctx1, {0: 0.25, 7: 0.75}, 0.0)
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        result = nbr_field(Context(d0, {1: d1}), {1: 1.0}, 0.0)
        assert result == {1: 0.25}

    def test_missing_entry_uses_default(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        nbr_field(ctx1, {}, 0.0)
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        assert nbr_field(Context(d0, {1: d1}), {}, -1.0) == {1: -1.0}


# ── share ────────────────────────────────────────────────────────────

class TestShare:
    def test_first_round_uses_init(self):
        dev = _make_device()
        result = share(_make_ctx(dev), 5.0, lambda prev, nbrs: prev + 1)
        assert result == 6.0

    def test_shares_with_neighbors(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        share(ctx1, 10.0, lambda prev, nbrs: prev)
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        ctx0_r2 = Context(d0, {1: d1})
        result = share(ctx0_r2, 0.0,
                       lambda prev, nbrs: sum(nbrs.values()) if nbrs else prev)
        assert result == 10.0


# ── foldhood / count_hood ────────────────────────────────────────────

class TestFoldhood:
    def test_no_neighbors(self):
        dev = _make_device()
        result = foldhood(_make_ctx(dev), 0.0, lambda a, b: a + b, lambda: 5.0)
        assert result == 0.0

    def test_folds_neighbor_values(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        foldhood(ctx1, 0.0, lambda a, b: a + b, lambda: 10.0)
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        result = foldhood(Context(d0, {1: d1}), 0.0, lambda a, b: a + b, lambda: 5.0)
        assert result == 10.0

    def test_count_hood_includes_self(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        assert count_hood(ctx1) == 1
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        assert count_hood(Context(d0, {1: d1})) == 2


# ── Neighbor sensing ─────────────────────────────────────────────────

class TestNeighborSensing:
    def test_range_and_uid(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        assert nbr_range(ctx0) == {1: 1.0}
        assert nbr_uid(ctx0) == {1: 1}

    def test_lag_since_last_export(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        d1.publish({}, 2.0, 3.0)
        ctx = Context(d0, {1: d1}, current_time=3.5)
        assert nbr_lag(ctx) == {1: 1.5}

    def test_lag_of_silent_neighbor_is_infinite(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        assert math.isinf(nbr_lag(ctx0)[1])

    def test_default_times_follow_rounds(self):
        dev = _make_device()
        ctx = Context(dev, {}, round_count=3, delta_time=0.5)
        assert ctx.current_time == 1.5
        assert ctx.next_time == 2.0


# ── mux / mid / sense ────────────────────────────────────────────────

class TestMux:
    def test_true(self):
        assert mux(_make_ctx(_make_device()), True, "yes", "no") == "yes"

    def test_false(self):
        assert mux(_make_ctx(_make_device()), False, "yes", "no") == "no"


class TestMidSense:
    def test_mid(self):
        assert mid(_make_ctx(_make_device(42))) == 42

    def test_sense(self):
        ctx = _make_ctx(_make_device(sensors={"temp": 25.0}))
        assert sense(ctx, "temp") == 25.0
        assert sense(ctx, "missing") is None


class TestNodeLookup:
    def test_position_of_remote_device(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        d5 = _make_device(5, (4, 3))
        ctx = Context(d0, {1: d1}, devices={0: d0, 1: d1, 5: d5})
        assert ctx.node_count(5) == 1
        assert ctx.node_count(9) == 0
        assert np.allclose(ctx.node_position(5), [4.0, 3.0])
        assert ctx.node_position(9) is None

    def test_without_network_only_self_is_known(self):
        dev = _make_device(3, (1, 1))
        ctx = _make_ctx(dev)
        assert ctx.node_count(3) == 1
        assert ctx.node_count(4) == 0
        assert np.allclose(ctx.node_position(3), [1.0, 1.0])


# ── Alignment machinery ──────────────────────────────────────────────

class TestContextPaths:
    def test_sibling_and_nested_paths(self):
        ctx = _make_ctx(_make_device())
        assert ctx.push("distance") == "distance@0"
        assert ctx.push("share") == "distance@0/share@0"
        ctx.pop()
        assert ctx.push("share") == "distance@0/share@1"
        ctx.pop()
        ctx.pop()
        assert ctx.push("distance") == "distance@1"

    def test_snapshot_taken_at_round_start(self):
        d0, d1, ctx0, ctx1 = _two_device_setup()
        nbr(ctx1, 1)
        ctx = Context(d0, {1: d1})
        d1.publish(ctx1.get_exports(), 0.0, 1.0)
        assert nbr(ctx, 0) == {}
        assert math.isinf(ctx.nbr_lag_to(1))
