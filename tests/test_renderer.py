"""Smoke tests for the matplotlib renderer."""

from __future__ import annotations

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from street_groups.blocks.movement import group_walk
from street_groups.config import GroupConfig
from street_groups.simulation.engine import SimulationEngine
from street_groups.simulation.network import Network
from street_groups.simulation.streets import GridStreetMap
from street_groups.visualization.renderer import GroupRenderer


def _engine() -> SimulationEngine:
    mask = np.zeros((80, 120), dtype=bool)
    mask[30:50, 50:70] = True
    groups = [
        GroupConfig(group_id=0, group_size=4, group_radius=20, group_speed=20),
        GroupConfig(group_id=1, group_size=3, group_radius=5, group_speed=10),
    ]
    return SimulationEngine(Network(GridStreetMap(mask)), group_walk, groups=groups, seed=0)


class TestGroupRenderer:
    def test_render_groups(self):
        engine = _engine()
        engine.run(5)
        ax = GroupRenderer(engine).render_groups(title="t")
        assert ax.get_title() == "t"
        assert ax.get_xlim() == (0.0, 1200.0)
        plt.close("all")

    def test_one_color_per_group(self):
        engine = _engine()
        engine.step()
        colors = GroupRenderer(engine)._group_colors([0, 1, 2, 3, 100, 101, 102])
        assert len(set(colors[:4])) == 1
        assert len(set(colors[4:])) == 1
        assert colors[0] != colors[4]

    def test_animation_steps_engine(self):
        engine = _engine()
        engine.step()
        anim = GroupRenderer(engine).animate_groups(3)
        # the first draw starts the animation and renders frame 0
        anim._fig.canvas.draw()
        assert engine.round_count == 2
        assert anim._fig.axes[0].get_title().endswith("Round 2")
        plt.close(anim._fig)
