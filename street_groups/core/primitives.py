"""Field calculus primitives used by the movement routines.

Every function receives an explicit :class:`Context`.  Round-persisted
values live in ``ctx.device.state`` under the call path of the invocation
site, so the runtime owns their storage and lifetime.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, TypeVar

from .context import Context

T = TypeVar("T")

_UNSET = object()


# ── Core primitives ──────────────────────────────────────────────────

def rep(ctx: Context, init: T, f: Callable[[T], T]) -> T:
    """State evolution across rounds.

    On the first round (no prior state), applies *f* to *init*.
    On subsequent rounds, applies *f* to the previous value.
    """
    path = ctx.push("rep")
    try:
        prev = ctx.device.state.get(path, init)
        result = f(prev)
        ctx.device.state[path] = result
        return result
    finally:
        ctx.pop()


def old(ctx: Context, init: T, value: T) -> T:
    """Previous-round value.

    Returns the value stored at this site in the previous round (*init* on
    the first round), then stores *value* for the next one.
    ``old(ctx, True, False)`` is therefore ``True`` only on the first round.
    """
    path = ctx.push("old")
    try:
        prev = ctx.device.state.get(path, init)
        ctx.device.state[path] = value
        return prev
    finally:
        ctx.pop()


def constant(ctx: Context, f: Callable[[], T]) -> T:
    """Sticky value: *f* is evaluated on first use only.

    Every later round returns the very same object without calling *f*.
    """
    path = ctx.push("constant")
    try:
        value = ctx.device.state.get(path, _UNSET)
        if value is _UNSET:
            value = f()
            ctx.device.state[path] = value
        return value
    finally:
        ctx.pop()


def branch(ctx: Context, cond: bool, then_fn: Callable[[], T], else_fn: Callable[[], T]) -> T:
    """Domain restriction.

    Only the matching branch executes, under its own call path, so the two
    branches never share round state.
    """
    tag = "branch_T" if cond else "branch_F"
    ctx.push(tag)
    try:
        return then_fn() if cond else else_fn()
    finally:
        ctx.pop()


def switcher(ctx: Context, key: Hashable, f: Callable[[], T]) -> T:
    """Run *f* in the partition of the network selected by *key*.

    The key is folded into the call path: devices running the same program
    under different keys keep independent round state.  The result of *f*
    is returned unchanged.
    """
    ctx.push(f"switch[{key!r}]")
    try:
        return f()
    finally:
        ctx.pop()


# ── Derived operators ────────────────────────────────────────────────

def mid(ctx: Context) -> int:
    """Current device ID."""
    return ctx.mid()


def storage(ctx: Context, name: str) -> Any:
    """Read a static per-device parameter."""
    return ctx.storage(name)
