"""Tests for accumulation policies."""

from __future__ import annotations

import functools

import pytest

from field_collection.blocks.policies import (
    AccumulationPolicy, count_policy, progress_policy, weighted_progress_policy,
    threshold_gate,
)


class TestIdentity:
    @pytest.mark.parametrize("policy", [count_policy(), progress_policy(),
                                        weighted_progress_policy(4)])
    def test_null_is_identity(self, policy: AccumulationPolicy):
        for v in (0.0, 1.0, 3.5, 120.0):
            assert policy.combine(policy.null, v) == v
            assert policy.combine(v, policy.null) == v


class TestCount:
    def test_sum(self):
        p = count_policy()
        assert functools.reduce(p.combine, [1.0, 1.0, 1.0], p.null) == 3.0

    def test_split_compensates_duplication(self):
        p = count_policy()
        shares = [p.split(6.0, 3)] * 3
        assert functools.reduce(p.combine, shares, p.null) == pytest.approx(6.0)

    def test_gate_weights(self):
        p = count_policy()
        assert p.gate(4.0, 0.25) == 1.0
        assert p.gate(4.0, 0.0) == 0.0


class TestProgress:
    def test_max(self):
        p = progress_policy()
        assert functools.reduce(p.combine, [2.0, 7.0, 3.0], p.null) == 7.0

    def test_duplication_is_harmless(self):
        p = progress_policy()
        x = 5.0
        assert p.combine(x, x) == x
        assert p.split(x, 4) == x

    def test_associative_and_commutative(self):
        p = progress_policy()
        a, b, c = 1.0, 9.0, 4.0
        assert p.combine(a, p.combine(b, c)) == p.combine(p.combine(a, b), c)
        assert p.combine(a, b) == p.combine(b, a)


class TestWeightedProgress:
    def test_threshold_depends_on_neighborhood(self):
        # 3.5 / 5 = 0.7
        p = weighted_progress_policy(5)
        assert p.gate(10.0, 0.8) == 10.0
        assert p.gate(10.0, 0.7) == 0.0
        assert p.gate(10.0, 0.5) == 0.0

    def test_sparse_neighborhood_blocks_everything(self):
        # 3.5 / 2 = 1.75 exceeds any normalized weight
        p = weighted_progress_policy(2)
        assert p.gate(10.0, 1.0) == 0.0

    def test_zero_count_is_clamped(self):
        p = weighted_progress_policy(0)
        assert p.gate(10.0, 4.0) == 10.0
        assert p.gate(10.0, 3.5) == 0.0

    def test_gate_is_stateless(self):
        gate = threshold_gate(0.5)
        assert [gate(1.0, 0.9), gate(1.0, 0.1), gate(1.0, 0.9)] == [1.0, 0.0, 1.0]
