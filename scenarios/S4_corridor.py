"""Two facing mirrors close together: a long alternating reflection chain."""

from __future__ import annotations

from mirror_core.builder import build_virtual_images
from mirror_core.scene import make_scene
from scenarios.common import horizontal_mirror, make_config


def build_scene(gap: float = 40.0, radius: float = 5.0):
    top = horizontal_mirror(0, 400.0 - gap / 2.0, 100.0, 1100.0, facing_up=False)
    bottom = horizontal_mirror(1, 400.0 + gap / 2.0, 100.0, 1100.0, facing_up=True)
    return make_scene((500.0, 400.0), (600.0, 400.0), [top, bottom], ball_radius=radius)


def build_sweep_params():
    return [
        {"case_id": "s4_full", "gap": 40.0, "expect_count": 18, "expect_max_depth": 9},
        {"case_id": "s4_cap4", "gap": 40.0, "max_reflections": 4, "expect_count": 8, "expect_max_depth": 4},
    ]


def run_case(params):
    return build_virtual_images(build_scene(params["gap"]), make_config(params))
