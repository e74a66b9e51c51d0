"""Single mirror with a second mirror across the line of sight."""

from __future__ import annotations

from mirror_core.builder import build_virtual_images
from scenarios import S1_single_mirror
from scenarios.common import horizontal_mirror, make_config


def build_scene(blocked: bool = True):
    scene = S1_single_mirror.build_scene()
    if blocked:
        # opaque face toward the Ball so the blocker makes no images of its own
        scene = scene.with_mirror(horizontal_mirror(1, 200.0, 550.0, 650.0, facing_up=True))
    return scene


def build_sweep_params():
    return [
        {"case_id": "s2_blocked", "blocked": True, "expect_count": 0},
        {"case_id": "s2_clear", "blocked": False, "expect_count": 1},
    ]


def run_case(params):
    return build_virtual_images(build_scene(params["blocked"]), make_config(params))
