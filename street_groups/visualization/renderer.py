"""Matplotlib-based 2D visualization of groups moving on streets."""

from __future__ import annotations

from typing import Any

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.colors as mcolors
from matplotlib.animation import FuncAnimation

from ..blocks.movement import leader_of
from ..config import HI_X, HI_Y
from ..simulation.engine import SimulationEngine
from ..simulation.streets import GridStreetMap


class GroupRenderer:
    """Renders a snapshot or animation of devices colored by group."""

    def __init__(self, engine: SimulationEngine) -> None:
        self.engine = engine

    def _device_positions(self) -> tuple[np.ndarray, np.ndarray, list[int]]:
        ids = sorted(self.engine.network.devices.keys())
        xs = np.array([self.engine.network.devices[i].position[0] for i in ids])
        ys = np.array([self.engine.network.devices[i].position[1] for i in ids])
        return xs, ys, ids

    def _group_colors(self, ids: list[int]) -> list[str]:
        tab_colors = list(mcolors.TABLEAU_COLORS.values())
        leaders = sorted({leader_of(i) for i in ids})
        index = {lid: k for k, lid in enumerate(leaders)}
        return [tab_colors[index[leader_of(i)] % len(tab_colors)] for i in ids]

    def _draw_streets(self, ax: Any) -> None:
        streets = self.engine.network.streets
        if isinstance(streets, GridStreetMap) and streets.mask.any():
            ax.imshow(
                streets.mask, origin="lower", cmap="Greys", alpha=0.6,
                extent=(0, streets.width, 0, streets.height), zorder=0,
            )

    def render_groups(
        self,
        *,
        title: str = "Groups",
        show_trails: bool = True,
        ax: Any = None,
    ) -> Any:
        """Draw devices colored by group; leaders are drawn as stars."""
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(12, 8))

        self._draw_streets(ax)
        xs, ys, ids = self._device_positions()
        colors = self._group_colors(ids)

        if show_trails and self.engine.trajectory:
            for did, color in zip(ids, colors):
                trail = np.array([
                    frame[did] for frame in self.engine.trajectory if did in frame
                ])
                if len(trail) > 1:
                    ax.plot(trail[:, 0], trail[:, 1], color=color,
                            linewidth=0.5, alpha=0.4, zorder=1)

        leaders = np.array([i == leader_of(i) for i in ids], dtype=bool)
        colors_arr = np.array(colors)
        ax.scatter(xs[~leaders], ys[~leaders], c=colors_arr[~leaders], s=30,
                   edgecolors="black", linewidths=0.5, zorder=2)
        ax.scatter(xs[leaders], ys[leaders], c=colors_arr[leaders], s=160,
                   marker="*", edgecolors="black", linewidths=0.8, zorder=3)

        ax.set_xlim(0, HI_X)
        ax.set_ylim(0, HI_Y)
        ax.set_title(title)
        ax.set_aspect("equal")
        return ax

    def animate_groups(
        self,
        num_rounds: int,
        *,
        title: str = "Group Walk",
        interval_ms: int = 100,
    ) -> FuncAnimation:
        """Step the engine *num_rounds* times, redrawing device positions."""
        fig, ax = plt.subplots(1, 1, figsize=(12, 8))
        self._draw_streets(ax)
        xs, ys, ids = self._device_positions()
        sc = ax.scatter(xs, ys, c=self._group_colors(ids), s=30,
                        edgecolors="black", linewidths=0.5, zorder=2)
        ax.set_xlim(0, HI_X)
        ax.set_ylim(0, HI_Y)
        ax.set_aspect("equal")
        title_obj = ax.set_title(f"{title} — Round {self.engine.round_count}")

        def update(frame: int) -> Any:
            self.engine.step()
            xs, ys, ids = self._device_positions()
            sc.set_offsets(np.column_stack([xs, ys]))
            sc.set_facecolors(self._group_colors(ids))
            title_obj.set_text(f"{title} — Round {self.engine.round_count}")
            return (sc, title_obj)

        anim = FuncAnimation(fig, update, frames=num_rounds,
                             interval=interval_ms, blit=False)
        return anim
