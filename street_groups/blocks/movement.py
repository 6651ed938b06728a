"""Group movement on streets.

Devices are partitioned into groups by ID alone: every block of
``MAX_GROUP_SIZE`` consecutive IDs forms a group whose leader is the lowest
ID of the block.  Leaders roam between random targets; followers chase their
leader up to a personal offset.  No device ever tells another who its
leader is.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

import numpy as np

from ..config import HI_X, HI_Y, MAX_GROUP_SIZE
from ..core.context import Context
from ..core.primitives import branch, constant, mid, old, rep, storage
from .geometry import follow_target, random_rectangle

logger = logging.getLogger(__name__)


class Role(enum.Enum):
    LEADER = "leader"
    FOLLOWER = "follower"


def leader_of(uid: int, capacity: int = MAX_GROUP_SIZE) -> int:
    """ID of the leader of the group containing *uid*."""
    return uid - (uid % capacity)


def role_of(uid: int, capacity: int = MAX_GROUP_SIZE) -> Role:
    return Role.LEADER if uid == leader_of(uid, capacity) else Role.FOLLOWER


def in_world(point: np.ndarray) -> bool:
    """Whether *point* lies in the world rectangle ``[0, HI_X]x[0, HI_Y]``."""
    return 0 <= point[0] <= HI_X and 0 <= point[1] <= HI_Y


def _teleport(ctx: Context, point: np.ndarray) -> None:
    # NaN means the street map has no walkable space: stay put.
    if not np.isnan(point).any():
        ctx.position = point
        ctx.device.velocity = np.zeros(2)


def reach_on_streets(ctx: Context, target: np.ndarray, max_v: float, period: float) -> float:
    """Move towards *target* following streets.

    The device heads to the next waypoint of a street path towards the
    walkable point closest to *target*, at speed at most *max_v*.  When no
    path exists or *target* lies outside the world, the device stays where
    it is.  Returns the distance to the waypoint; callers treat a value up
    to ``max_v * period`` as having reached the target.
    """
    target = np.asarray(target, dtype=float)
    here = ctx.position
    start = ctx.net.closest_space(here)
    waypoint = ctx.net.path_to(start, ctx.net.closest_space(target))
    ctx.device.storage["debug"] = str((
        "sp:", start, "ob:", ctx.net.closest_obstacle(here),
        "target:", target, "path:", waypoint,
    ))
    if np.isnan(waypoint).any() or not in_world(target):
        waypoint = here.copy()
    return follow_target(ctx, waypoint, max_v, period)


def leader_walk(ctx: Context, first_round: bool, max_v: float, period: float) -> np.ndarray:
    """Roam between random targets in the world; returns the target kept for next round.

    A new target replaces the current one once the distance returned by
    :func:`reach_on_streets` is within ``max_v * period``.  That distance is
    also small when the leader is blocked, so blocked leaders re-target too.
    """
    if first_round:
        _teleport(ctx, ctx.net.closest_space(ctx.position))
    fresh = random_rectangle(ctx, (0, 0), (HI_X, HI_Y))

    def update(target: np.ndarray) -> np.ndarray:
        dist = reach_on_streets(ctx, target, max_v, period)
        return target if dist > max_v * period else fresh

    return rep(ctx, fresh, update)


def follower_walk(
    ctx: Context,
    leader: int,
    first_round: bool,
    max_v: float,
    period: float,
    radius: float,
) -> np.ndarray:
    """Chase *leader* up to a personal random offset; returns the chased target.

    The leader position is the one it had at the start of the round.
    """
    offset = constant(ctx, lambda: random_rectangle(ctx, (-radius, -radius), (radius, radius)))
    leader_pos = ctx.position_of(leader)
    if leader_pos is None:
        logger.debug("Device %d: leader %d not spawned, holding position", mid(ctx), leader)
        target = ctx.position.copy()
    else:
        target = leader_pos + offset
    if first_round:
        _teleport(ctx, ctx.net.closest_space(target))
    else:
        reach_on_streets(ctx, target, max_v, period)
    return target


def group_walk(ctx: Context, capacity: int = MAX_GROUP_SIZE) -> dict[str, Any]:
    """Regulates random movement in groups.

    Reads the ``speed`` (m/s) and ``offset`` (meters) parameters from the
    device storage.  Returns the device role, its leader ID and the target
    it is heading to.
    """
    uid = mid(ctx)
    leader = leader_of(uid, capacity)
    role = role_of(uid, capacity)
    max_v = storage(ctx, "speed") or 0.0
    radius = storage(ctx, "offset") or 0.0
    period = ctx.delta_time
    first_round = old(ctx, True, False)
    target = branch(
        ctx, role is Role.LEADER,
        lambda: leader_walk(ctx, first_round, max_v, period),
        lambda: follower_walk(ctx, leader, first_round, max_v, period, radius),
    )
    return {"role": role, "leader": leader, "target": target}
