"""Element-wise operations on neighbor fields.

A neighbor field is a plain ``dict`` mapping neighbor IDs to values.  The
helpers here replace the arithmetic one would write "on fields" with
explicit maps and folds.  Folds visit keys in sorted order, so results do
not depend on dict insertion order.
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")
U = TypeVar("U")
V = TypeVar("V")


def map_field(f: Callable[[T], U], field: dict[int, T]) -> dict[int, U]:
    """Apply *f* to every entry of *field*."""
    return {k: f(v) for k, v in field.items()}


def map2(
    f: Callable[[T, U], V],
    a: dict[int, T],
    b: dict[int, U],
    default: U | None = None,
) -> dict[int, V]:
    """Combine two fields entry by entry over the keys of *a*.

    Keys missing from *b* use *default*; when no default is given they are
    dropped from the result.
    """
    out: dict[int, V] = {}
    for k, x in a.items():
        if k in b:
            out[k] = f(x, b[k])
        elif default is not None:
            out[k] = f(x, default)
    return out


def mux_field(
    cond: dict[int, bool],
    then_field: dict[int, T],
    else_val: T,
) -> dict[int, T]:
    """Pick ``then_field[k]`` where ``cond[k]`` holds, *else_val* elsewhere."""
    return {
        k: then_field[k] if cond.get(k, False) and k in then_field else else_val
        for k in cond
    }


def fold_hood(
    combine: Callable[[T, T], T],
    field: dict[int, T],
    seed: T,
    keys: Iterable[int] | None = None,
    default: T | None = None,
) -> T:
    """Reduce *field* into *seed* with *combine*.

    With *keys*, the fold visits exactly those keys and substitutes
    *default* for absent entries (absent entries are skipped when no default
    is given).
    """
    visit = sorted(field) if keys is None else sorted(keys)
    result = seed
    for k in visit:
        if k in field:
            result = combine(result, field[k])
        elif default is not None:
            result = combine(result, default)
    return result


def with_self(field: dict[int, T], self_id: int, self_value: T) -> dict[int, T]:
    """Return a copy of *field* that also holds this device's own entry."""
    out = dict(field)
    out[self_id] = self_value
    return out
