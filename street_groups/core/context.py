"""Execution context for a single device round.

The context tracks the current device, the positions every device had at
the start of the round, the street map, the random stream, and a call-path
stack for aligning round-persisted state.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from .device import Device


class Context:
    """Per-round execution context for one device.

    The call stack produces a *call path* string that uniquely identifies each
    primitive invocation site.  Round-persisted state is keyed by the same
    paths, so a value stored by ``rep`` in one branch is never read back by a
    different branch or a different ``switcher`` key.
    """

    def __init__(
        self,
        device: Device,
        positions: dict[int, np.ndarray] | None = None,
        net: Any = None,
        rng: np.random.Generator | None = None,
        round_count: int = 0,
        delta_time: float = 1.0,
    ) -> None:
        self.device = device
        # Snapshot of device positions at the start of this round.
        self.positions: dict[int, np.ndarray] = positions if positions is not None else {}
        self.net = net
        self.rng = rng if rng is not None else np.random.default_rng()
        self.round_count = round_count
        self.delta_time = delta_time

        # Call-path alignment machinery
        self._call_stack: list[str] = []
        self._slot_counters: list[int] = []  # per-level counters

    # ------------------------------------------------------------------
    # Call-path helpers
    # ------------------------------------------------------------------

    def _next_slot(self) -> int:
        """Return and increment the counter at the current stack depth."""
        if not self._slot_counters:
            self._slot_counters.append(0)
        idx = self._slot_counters[-1]
        self._slot_counters[-1] += 1
        return idx

    def push(self, tag: str) -> str:
        """Push *tag* onto the call stack and return the full call path."""
        slot = self._next_slot()
        label = f"{tag}@{slot}"
        self._call_stack.append(label)
        self._slot_counters.append(0)
        return self.call_path

    def pop(self) -> None:
        """Pop the most recent call-stack entry."""
        self._call_stack.pop()
        self._slot_counters.pop()

    @property
    def call_path(self) -> str:
        return "/".join(self._call_stack)

    # ------------------------------------------------------------------
    # Position access
    # ------------------------------------------------------------------

    @property
    def position(self) -> np.ndarray:
        return self.device.position

    @position.setter
    def position(self, value: np.ndarray) -> None:
        """Teleport the device, bypassing any velocity limit."""
        self.device.position = np.array(value, dtype=float)

    def position_of(self, device_id: int) -> np.ndarray | None:
        """Round-start position of *device_id*, or ``None`` if not spawned.

        The device's own entry is its live position, so a teleport earlier in
        the round is visible to the rest of its own program.
        """
        if device_id == self.device.id:
            return self.device.position.copy()
        pos = self.positions.get(device_id)
        return None if pos is None else pos.copy()

    # ------------------------------------------------------------------
    # Storage shortcut
    # ------------------------------------------------------------------

    def storage(self, name: str) -> Any:
        return self.device.get(name)

    def mid(self) -> int:
        return self.device.id
