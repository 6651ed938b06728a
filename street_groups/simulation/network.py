"""Network of devices moving on a street map.

Manages the collection of spawned devices and forwards spatial queries to
the street map, so that aggregate programs reach both through ``ctx.net``.
"""

from __future__ import annotations

import logging

import numpy as np

from ..config import GroupConfig, HI_X, HI_Y
from ..core.device import Device
from .streets import GridStreetMap, StreetMap

logger = logging.getLogger(__name__)


class Network:
    """A set of devices sharing a street map."""

    def __init__(self, streets: StreetMap | None = None) -> None:
        self.devices: dict[int, Device] = {}
        self.streets: StreetMap = streets if streets is not None else GridStreetMap.open()

    def add_device(
        self,
        position: tuple[float, float] | np.ndarray,
        device_id: int,
        storage: dict | None = None,
    ) -> Device:
        """Add a device and return it."""
        if device_id in self.devices:
            raise ValueError(f"device {device_id} already spawned")
        dev = Device(id=device_id, position=np.asarray(position, dtype=float),
                     storage=dict(storage or {}))
        self.devices[device_id] = dev
        return dev

    def remove_device(self, device_id: int) -> None:
        self.devices.pop(device_id, None)

    def spawn_group(
        self,
        group: GroupConfig,
        rng: np.random.Generator | None = None,
    ) -> list[Device]:
        """Spawn every device of *group* at a random point of the world."""
        rng = rng or np.random.default_rng()
        spawned = []
        for did in group.device_ids:
            pos = (rng.uniform(0, HI_X), rng.uniform(0, HI_Y))
            spawned.append(self.add_device(
                pos, did, {"speed": group.speed_ms, "offset": float(group.group_radius)},
            ))
        logger.info("Spawned group %d: devices %d..%d, speed %.2f m/s, radius %.1f",
                    group.group_id, group.device_ids[0], group.device_ids[-1],
                    group.speed_ms, group.group_radius)
        return spawned

    def positions(self) -> dict[int, np.ndarray]:
        return {did: dev.position.copy() for did, dev in self.devices.items()}

    # ── Street map queries ───────────────────────────────────────────

    def closest_space(self, point: np.ndarray) -> np.ndarray:
        return self.streets.closest_space(np.asarray(point, dtype=float))

    def closest_obstacle(self, point: np.ndarray) -> np.ndarray:
        return self.streets.closest_obstacle(np.asarray(point, dtype=float))

    def path_to(self, source: np.ndarray, dest: np.ndarray) -> np.ndarray:
        return self.streets.path_to(
            np.asarray(source, dtype=float), np.asarray(dest, dtype=float)
        )
