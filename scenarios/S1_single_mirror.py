"""Single mirror facing up, with the Eye in front of or behind it."""

from __future__ import annotations

import numpy as np

from mirror_core.builder import build_virtual_images
from mirror_core.scene import Mirror, make_scene
from scenarios.common import ball_radius, make_config


def build_scene(eye=(600.0, 100.0), ball=(600.0, 300.0), radius: float = 25.0):
    mirror = Mirror.centered(0, np.array([600.0, 400.0]), np.array([0.0, -1.0]), length=250.0)
    return make_scene(ball, eye, [mirror], ball_radius=radius)


def build_sweep_params():
    return [
        {"case_id": "s1_front", "eye": [600.0, 100.0], "expect_count": 1},
        {"case_id": "s1_offset", "eye": [400.0, 100.0], "expect_count": 1},
        {"case_id": "s1_behind", "eye": [600.0, 700.0], "expect_count": 0},
    ]


def run_case(params):
    scene = build_scene(eye=tuple(params["eye"]), radius=ball_radius(params))
    return build_virtual_images(scene, make_config(params))
