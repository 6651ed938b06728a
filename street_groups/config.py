"""World constants and group spawn configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

#: Width of the world rectangle, in meters.
HI_X = 1200
#: Height of the world rectangle, in meters.
HI_Y = 800
#: Size of the device-ID range reserved for each group.
MAX_GROUP_SIZE = 100


class InvalidGroupConfig(ValueError):
    """Raised when a group record cannot be spawned."""


@dataclass(frozen=True)
class GroupConfig:
    """A group of devices moving together.

    Devices get IDs ``MAX_GROUP_SIZE * group_id + k`` for
    ``k in range(group_size)``; the first one is the group leader.
    """

    group_id: int
    group_size: int
    group_radius: float
    group_speed: float = 0.0  # km/h
    start_time: float = 0.0

    def __post_init__(self) -> None:
        if self.group_id < 0:
            raise InvalidGroupConfig(
                f"group id should be non-negative, got {self.group_id}"
            )
        if not 0 < self.group_size < MAX_GROUP_SIZE:
            raise InvalidGroupConfig(
                f"group size allowed between 1 and {MAX_GROUP_SIZE - 1}, "
                f"got {self.group_size}"
            )
        if self.group_radius < 0:
            raise InvalidGroupConfig(
                f"group radius should be non-negative, got {self.group_radius}"
            )
        if self.group_speed < 0:
            raise InvalidGroupConfig(
                f"group speed should be non-negative, got {self.group_speed}"
            )
        if self.start_time < 0:
            raise InvalidGroupConfig(
                f"start time should be non-negative, got {self.start_time}"
            )

    @property
    def device_ids(self) -> range:
        first = MAX_GROUP_SIZE * self.group_id
        return range(first, first + self.group_size)

    @property
    def speed_ms(self) -> float:
        """Group speed converted from km/h to m/s."""
        return self.group_speed * 1000 / 3600


def load_groups(path: str | Path) -> list[GroupConfig]:
    """Read a YAML list of group records.

    The file holds either a top-level list or a mapping with a ``groups``
    key; each record uses the :class:`GroupConfig` field names.
    """
    data = yaml.safe_load(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get("groups", [])
    if not isinstance(data, list):
        raise InvalidGroupConfig(f"{path}: expected a list of groups")
    groups = []
    for raw in data:
        try:
            groups.append(GroupConfig(**raw))
        except TypeError as exc:
            raise InvalidGroupConfig(f"{path}: bad group record {raw!r}") from exc
    ids = [g.group_id for g in groups]
    if len(ids) != len(set(ids)):
        raise InvalidGroupConfig(f"{path}: duplicate group ids {sorted(ids)}")
    return groups
