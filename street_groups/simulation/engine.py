"""Simulation engine — orchestrates lock-step rounds across the network."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

import numpy as np

from ..config import GroupConfig
from ..core.context import Context
from ..core.device import Device
from .network import Network

logger = logging.getLogger(__name__)


class SimulationEngine:
    """Synchronous simulation engine for aggregate programs.

    Each :meth:`step` spawns the groups whose start time has come, executes
    the program on every device against the positions observed at the start
    of the round, then commits every device's movement at once.
    """

    def __init__(
        self,
        network: Network,
        program: Callable[[Context], Any],
        delta_time: float = 1.0,
        groups: Iterable[GroupConfig] = (),
        seed: int | None = None,
    ) -> None:
        self.network = network
        self.program = program
        self.delta_time = delta_time
        self.rng = np.random.default_rng(seed)
        self.round_count = 0
        self.results: dict[int, Any] = {}
        self.pending: list[GroupConfig] = sorted(groups, key=lambda g: g.start_time)
        # Per-round history for visualization / analysis
        self.history: list[dict[int, Any]] = []
        self.trajectory: list[dict[int, np.ndarray]] = []

    @property
    def time(self) -> float:
        return self.round_count * self.delta_time

    def _spawn_due(self) -> None:
        while self.pending and self.pending[0].start_time <= self.time:
            group = self.pending.pop(0)
            self.network.spawn_group(group, self.rng)

    def _build_context(self, device: Device, positions: dict[int, np.ndarray]) -> Context:
        return Context(
            device=device,
            positions=positions,
            net=self.network,
            rng=self.rng,
            round_count=self.round_count,
            delta_time=self.delta_time,
        )

    def step(self) -> dict[int, Any]:
        """Execute one synchronous round for all devices.

        Returns a dict mapping device IDs to their program outputs.
        """
        self._spawn_due()
        positions = self.network.positions()
        round_results: dict[int, Any] = {}

        for dev in self.network.devices.values():
            ctx = self._build_context(dev, positions)
            round_results[dev.id] = self.program(ctx)

        # Commit movement after all devices have executed (synchronous).
        for dev in self.network.devices.values():
            dev.position = dev.position + dev.velocity * self.delta_time

        self.round_count += 1
        self.results = round_results
        self.history.append(dict(round_results))
        self.trajectory.append(self.network.positions())
        logger.debug("Round %d: %d devices", self.round_count, len(round_results))
        return round_results

    def run(self, num_rounds: int) -> list[dict[int, Any]]:
        """Run *num_rounds* synchronous rounds. Returns full history."""
        for _ in range(num_rounds):
            self.step()
        return self.history

    def get_field(self, key: str | None = None) -> dict[int, Any]:
        """Extract a named sub-field from the latest results.

        If results are dicts, returns ``{id: result[key]}``.
        If *key* is ``None``, returns the raw results.
        """
        if key is None:
            return dict(self.results)
        return {
            did: (r[key] if isinstance(r, dict) else r)
            for did, r in self.results.items()
        }
