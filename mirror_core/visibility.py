"""Visibility tests for candidate virtual images.

A candidate is visible when the Eye, looking along the straight line to the
candidate, meets the reflective face of the candidate's source mirror first
and the light feeding that mirror reaches it unobstructed.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np

from mirror_core.geometry import Vector, distance, dot, segment_intersection
from mirror_core.images import ImageTree, VirtualImage
from mirror_core.scene import Mirror, Scene

OCCLUSION_MARGIN = 0.99


def segment_clear(p1: Vector, p2: Vector, blockers: Iterable[Mirror], margin: float = OCCLUSION_MARGIN) -> bool:
    """True if no blocker crosses ``p1 -> p2`` before ``margin`` of its length."""

    limit = distance(p1, p2) * margin
    for m in blockers:
        hit = segment_intersection(p1, p2, m.p1, m.p2)
        if hit is not None and distance(p1, hit) < limit:
            return False
    return True


def rejection_reason(
    candidate: VirtualImage,
    scene: Scene,
    tree: ImageTree,
    margin: float = OCCLUSION_MARGIN,
) -> Optional[str]:
    """Return why ``candidate`` cannot be seen from the Eye, or None if it can."""

    if not scene.bounds.contains_circle(candidate.position, candidate.radius):
        return "bounds"

    mirror = scene.mirror_by_id(candidate.source_mirror_id)
    eye = scene.eye.position
    hit = segment_intersection(eye, candidate.position, mirror.p1, mirror.p2)
    if hit is None:
        return "no-mirror-intersection"

    if not dot(hit - eye, mirror.normal) < 0:
        return "back-side"

    if not distance(eye, hit) < distance(eye, candidate.position):
        return "ordering"

    others = [m for m in scene.mirrors if m.mirror_id != mirror.mirror_id]
    if not segment_clear(eye, hit, others, margin):
        return "occluded"

    if candidate.parent is None:
        if not segment_clear(scene.ball.position, hit, others, margin):
            return "source-blocked"
    else:
        parent = tree[candidate.parent]
        blockers = [m for m in others if m.mirror_id != parent.source_mirror_id]
        if not segment_clear(parent.position, hit, blockers, margin):
            return "source-blocked"
    return None


def is_visible(candidate: VirtualImage, scene: Scene, tree: ImageTree, margin: float = OCCLUSION_MARGIN) -> bool:
    return rejection_reason(candidate, scene, tree, margin) is None


def visible_mirrors(scene: Scene, samples: int = 5, margin: float = OCCLUSION_MARGIN) -> List[Mirror]:
    """Mirrors whose reflective face the Eye can see directly.

    The reflective face is sampled at ``samples + 1`` evenly spaced points; a
    mirror counts when any sample has a clear line of sight and faces the Eye.
    """

    eye = scene.eye.position
    out: List[Mirror] = []
    for mirror in scene.mirrors:
        a, b = mirror.reflective_side()
        others = [m for m in scene.mirrors if m.mirror_id != mirror.mirror_id]
        for t in np.linspace(0.0, 1.0, samples + 1):
            sample = a * (1.0 - t) + b * t
            if not segment_clear(eye, sample, others, margin):
                continue
            if dot(mirror.normal, sample - eye) < 0:
                out.append(mirror)
                break
    return out
