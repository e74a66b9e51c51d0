"""Floor and wall meeting at a right angle."""

from __future__ import annotations

from mirror_core.builder import build_virtual_images
from mirror_core.scene import make_scene
from scenarios.common import horizontal_mirror, make_config, vertical_mirror


def build_scene(ball=(700.0, 500.0), eye=(500.0, 300.0)):
    floor = horizontal_mirror(0, 600.0, 300.0, 900.0, facing_up=True)
    wall = vertical_mirror(1, 900.0, 200.0, 600.0, facing_left=True)
    return make_scene(ball, eye, [floor, wall])


def build_sweep_params():
    return [{"case_id": "s3_corner", "expect_count": 3, "expect_max_depth": 2}]


def run_case(params):
    return build_virtual_images(build_scene(), make_config(params))
