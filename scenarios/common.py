"""Common scenario helpers."""

from __future__ import annotations

import numpy as np

from mirror_core.builder import BuildConfig
from mirror_core.scene import BALL_RADIUS, Mirror


def horizontal_mirror(mirror_id: int, y: float, x_from: float, x_to: float, facing_up: bool = True) -> Mirror:
    """Horizontal mirror between ``x_from`` and ``x_to``; screen y grows downward."""

    lo, hi = min(x_from, x_to), max(x_from, x_to)
    if facing_up:
        return Mirror.from_endpoints(mirror_id, np.array([hi, y]), np.array([lo, y]))
    return Mirror.from_endpoints(mirror_id, np.array([lo, y]), np.array([hi, y]))


def vertical_mirror(mirror_id: int, x: float, y_from: float, y_to: float, facing_left: bool = True) -> Mirror:
    lo, hi = min(y_from, y_to), max(y_from, y_to)
    if facing_left:
        return Mirror.from_endpoints(mirror_id, np.array([x, lo]), np.array([x, hi]))
    return Mirror.from_endpoints(mirror_id, np.array([x, hi]), np.array([x, lo]))


def make_config(params) -> BuildConfig:
    return BuildConfig(max_reflections=int(params.get("max_reflections", BuildConfig().max_reflections)))


def ball_radius(params) -> float:
    return float(params.get("ball_radius", BALL_RADIUS))
