"""Three stacked mirrors; the middle one hides the farthest."""

from __future__ import annotations

from mirror_core.builder import build_virtual_images
from mirror_core.scene import make_scene
from scenarios.common import horizontal_mirror, make_config


def build_scene():
    near = horizontal_mirror(0, 100.0, 300.0, 400.0)
    middle = horizontal_mirror(1, 200.0, 200.0, 1000.0)
    far = horizontal_mirror(2, 300.0, 100.0, 1100.0)
    return make_scene((600.0, 150.0), (600.0, 50.0), [near, middle, far], ball_radius=10.0)


def build_sweep_params():
    return [{"case_id": "s5_stacked", "expect_count": 1, "expect_max_depth": 1}]


def run_case(params):
    return build_virtual_images(build_scene(), make_config(params))
