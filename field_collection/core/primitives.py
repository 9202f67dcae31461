"""Field calculus primitives.

Implements the state, observation and folding constructs the collection
blocks are built on, plus neighbor sensing.  Every function receives an
explicit :class:`Context`; neighbor results are plain ``{id: value}`` dicts.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from .context import Context

T = TypeVar("T")


# ── Core primitives ──────────────────────────────────────────────────

def rep(ctx: Context, init: T, f: Callable[[T], T]) -> T:
    """Evolve a value across rounds: ``f(previous)``, seeded with *init*."""
    path = ctx.push("rep")
    try:
        value = f(ctx.old(path, init))
        ctx.keep(path, value)
        ctx.export(value)
        return value
    finally:
        ctx.pop()


def nbr(ctx: Context, value: T) -> dict[int, T]:
    """Publish *value* and return what aligned neighbors published here."""
    path = ctx.push("nbr")
    try:
        ctx.export(value)
        return ctx.aligned(path)
    finally:
        ctx.pop()


def nbr_field(ctx: Context, field: dict[int, T], default: T) -> dict[int, T]:
    """Neighbor observation of a field.

    Publishes *field* (one entry per addressee) and returns, for each aligned
    neighbor, the entry that neighbor addressed to this device, or *default*
    when it has none.
    """
    path = ctx.push("nbr_field")
    try:
        ctx.export(dict(field))
        me = ctx.mid()
        return {nid: sent.get(me, default) for nid, sent in ctx.aligned(path).items()}
    finally:
        ctx.pop()


def share(ctx: Context, init: T, f: Callable[[T, dict[int, T]], T]) -> T:
    """State evolution that also sees the neighbors' shared values.

    ``f(previous_own_value, neighbor_values)`` returns the new value, which is
    both kept and published.
    """
    path = ctx.push("share")
    try:
        value = f(ctx.old(path, init), ctx.aligned(path))
        ctx.keep(path, value)
        ctx.export(value)
        return value
    finally:
        ctx.pop()


def foldhood(ctx: Context, init: T, acc: Callable[[T, T], T], nbr_expr: Callable[[], T]) -> T:
    """Fold the neighbors' values of *nbr_expr* into *init*, in ID order.

    The device's own value is published but not folded.
    """
    path = ctx.push("fold")
    try:
        ctx.export(nbr_expr())
        result = init
        for value in ctx.aligned(path).values():
            result = acc(result, value)
        return result
    finally:
        ctx.pop()


# ── Derived operators ────────────────────────────────────────────────

def mux(ctx: Context, cond: bool, then_val: T, else_val: T) -> T:
    """Multiplexer; both branches are already evaluated."""
    return then_val if cond else else_val


def mid(ctx: Context) -> int:
    return ctx.mid()


def sense(ctx: Context, name: str) -> Any:
    return ctx.sense(name)


def nbr_range(ctx: Context) -> dict[int, float]:
    """Distance to each current neighbor."""
    return {nid: ctx.nbr_range_to(nid) for nid in ctx.neighbor_devices}


def nbr_lag(ctx: Context) -> dict[int, float]:
    """Age of each neighbor's last export, ``inf`` if it never published."""
    return {nid: ctx.nbr_lag_to(nid) for nid in ctx.neighbor_devices}


def nbr_uid(ctx: Context) -> dict[int, int]:
    return {nid: nid for nid in ctx.neighbor_devices}


def count_hood(ctx: Context) -> int:
    """Number of aligned neighbors, this device included."""
    return foldhood(ctx, 1, lambda a, b: a + b, lambda: 1)
