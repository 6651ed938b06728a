"""Device model for group movement."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass
class Device:
    """A single mobile device in the simulated network.

    Each device has a unique ID, a 2D position and velocity, a storage of
    static per-device parameters (speed, offset radius, debug slot), and
    persistent state for round-local values keyed by call path.
    """

    id: int
    position: np.ndarray  # shape (2,)
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    storage: dict[str, Any] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float)
        self.velocity = np.asarray(self.velocity, dtype=float)

    def get(self, name: str) -> Any:
        return self.storage.get(name)
