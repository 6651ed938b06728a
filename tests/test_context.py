"""Tests for the per-round execution context."""

from __future__ import annotations

import numpy as np

from street_groups.core.context import Context
from street_groups.core.device import Device


def _ctx(positions: dict | None = None) -> tuple[Device, Context]:
    dev = Device(id=1, position=np.array([10.0, 20.0]))
    return dev, Context(dev, positions=positions)


class TestContext:
    def test_position_of_reads_snapshot(self):
        snapshot = {0: np.array([1.0, 2.0]), 1: np.array([10.0, 20.0])}
        _dev, ctx = _ctx(snapshot)
        seen = ctx.position_of(0)
        seen[0] = 99.0  # callers get a copy
        assert np.array_equal(ctx.position_of(0), [1.0, 2.0])

    def test_position_of_missing_device(self):
        _dev, ctx = _ctx({})
        assert ctx.position_of(7) is None

    def test_own_position_is_live(self):
        dev, ctx = _ctx({1: np.array([10.0, 20.0])})
        ctx.position = np.array([5.0, 5.0])
        assert np.array_equal(dev.position, [5.0, 5.0])
        assert np.array_equal(ctx.position_of(1), [5.0, 5.0])

    def test_call_path(self):
        _dev, ctx = _ctx()
        ctx.push("a")
        ctx.push("b")
        assert ctx.call_path == "a@0/b@0"
        ctx.pop()
        ctx.push("b")
        assert ctx.call_path == "a@0/b@1"
        ctx.pop()
        ctx.pop()
        assert ctx.call_path == ""
