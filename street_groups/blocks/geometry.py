"""Geometric building blocks: random targets and bounded steps."""

from __future__ import annotations

import numpy as np

from ..core.context import Context


def random_rectangle(ctx: Context, low, high) -> np.ndarray:
    """A point drawn uniformly in the rectangle from *low* to *high*."""
    low = np.asarray(low, dtype=float)
    high = np.asarray(high, dtype=float)
    return ctx.rng.uniform(low, high)


def follow_target(ctx: Context, target: np.ndarray, max_v: float, period: float) -> float:
    """Set the device velocity towards *target*, capped at *max_v*.

    If the target is within ``max_v * period``, the velocity is the one
    reaching it exactly in one period.  Returns the distance to the target.
    """
    delta = np.asarray(target, dtype=float) - ctx.position
    dist = float(np.linalg.norm(delta))
    if dist == 0.0:
        ctx.device.velocity = np.zeros(2)
        return 0.0
    if dist > max_v * period:
        ctx.device.velocity = delta * (max_v / dist)
    else:
        ctx.device.velocity = delta / period
    return dist
