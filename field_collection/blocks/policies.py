"""Accumulation policies for the collection blocks.

A policy bundles the plain functions a collection is parameterized with:

``combine(x, y)``
    associative and commutative accumulator;
``split(x, n)``
    compensates a multi-path collection for sending a value to *n* parents;
``gate(x, f)``
    applies a weight *f* in a weighted multi-path collection;
``null``
    identity element of ``combine``.

The max-based policies use ``0.0`` as identity, which only holds for
non-negative values.
"""

from __future__ import annotations

from typing import Callable, NamedTuple


class AccumulationPolicy(NamedTuple):
    combine: Callable[[float, float], float]
    split: Callable[[float, int], float]
    gate: Callable[[float, float], float]
    null: float = 0.0


def adder(x: float, y: float) -> float:
    return x + y


def maximum(x: float, y: float) -> float:
    return max(x, y)


def divider(x: float, n: int) -> float:
    return x / n


def identity_split(x: float, n: int) -> float:
    return x


def multiplier(x: float, f: float) -> float:
    return x * f


def identity_gate(x: float, f: float) -> float:
    return x


def threshold_gate(threshold: float) -> Callable[[float, float], float]:
    """Gate passing *x* only through links weighted above *threshold*."""
    def gate(x: float, f: float) -> float:
        return x if f > threshold else 0.0
    return gate


def count_policy() -> AccumulationPolicy:
    """Sum: every device's contribution counted once."""
    return AccumulationPolicy(adder, divider, multiplier, 0.0)


def progress_policy() -> AccumulationPolicy:
    """Max: duplicates along several paths are harmless."""
    return AccumulationPolicy(maximum, identity_split, identity_gate, 0.0)


def weighted_progress_policy(neighbor_count: int) -> AccumulationPolicy:
    """Max with a gate whose threshold adapts to the local density.

    *neighbor_count* includes the device itself, so it is at least 1.
    """
    threshold = 3.5 / max(neighbor_count, 1)
    return AccumulationPolicy(maximum, identity_split, threshold_gate(threshold), 0.0)
