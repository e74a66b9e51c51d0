"""Bounce-point reconstruction for accepted virtual images.

Works backward from the Eye: the line of sight to the deepest image meets
the last mirror of the chain, the line from that hit toward the previous
image meets the previous mirror, and so on back to the Ball.

Example:
    >>> import numpy as np
    >>> from mirror_core.builder import build_virtual_images
    >>> from mirror_core.scene import Mirror, make_scene
    >>> m = Mirror.centered(0, np.array([600.0, 400.0]), np.array([0.0, -1.0]))
    >>> tree = build_virtual_images(make_scene((600, 300), (600, 100), [m]))
    >>> path = ray_path(tree.scene, tree[0])
    >>> [p.tolist() for p in path.physical]
    [[600.0, 300.0], [600.0, 400.0], [600.0, 100.0]]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from mirror_core.geometry import Vector, distance, reflect_point_across_mirror, segment_intersection
from mirror_core.images import HitPoint, ImageTree, VirtualImage
from mirror_core.scene import Scene
from mirror_core.visibility import OCCLUSION_MARGIN, segment_clear


def reconstruct_hit_points(
    candidate: VirtualImage,
    scene: Scene,
    tree: ImageTree,
    margin: float = OCCLUSION_MARGIN,
) -> Optional[List[HitPoint]]:
    """Return the hit points of ``candidate`` ordered Ball side first, or None.

    None means the candidate has no consistent physical path: a chain link
    misses its mirror, or the last leg to the Ball is blocked by a mirror
    outside the chain.
    """

    chain = tree.chain(candidate)
    last = chain[-1]
    mirror = scene.mirror_by_id(last.source_mirror_id)
    hit = segment_intersection(scene.eye.position, last.position, mirror.p1, mirror.p2)
    if hit is None:
        return None
    hits = [HitPoint(hit, mirror.mirror_id, scene.mirror_index(mirror.mirror_id), last.position)]
    if len(chain) == 1:
        return hits

    for image in reversed(chain[:-1]):
        mirror = scene.mirror_by_id(image.source_mirror_id)
        hit = segment_intersection(hits[-1].position, image.position, mirror.p1, mirror.p2)
        if hit is None:
            return None
        hits.append(HitPoint(hit, mirror.mirror_id, scene.mirror_index(mirror.mirror_id), image.position))

    chain_ids = {im.source_mirror_id for im in chain}
    blockers = [m for m in scene.mirrors if m.mirror_id not in chain_ids]
    if not segment_clear(hits[-1].position, scene.ball.position, blockers, margin):
        return None

    hits.reverse()
    return hits


@dataclass
class RayPath:
    physical: List[Vector] = field(default_factory=list)
    # (hit point, virtual point) pairs drawn dashed behind each mirror
    virtual_legs: List[Tuple[Vector, Vector]] = field(default_factory=list)


def ray_path(scene: Scene, image: VirtualImage) -> RayPath:
    """Physical polyline Ball -> hits -> Eye plus the dashed virtual legs."""

    if not image.hit_points:
        return RayPath()
    physical = [scene.ball.position] + [h.position for h in image.hit_points] + [scene.eye.position]
    if image.depth == 1:
        return RayPath(physical, [(image.hit_points[0].position, image.position)])

    legs: List[Tuple[Vector, Vector]] = []
    prev = scene.ball.position
    for hp in image.hit_points:
        mirror = scene.mirror_by_id(hp.mirror_id)
        legs.append((hp.position, reflect_point_across_mirror(prev, mirror)))
        prev = hp.position
    return RayPath(physical, legs)


def path_length(scene: Scene, image: VirtualImage) -> float:
    pts = ray_path(scene, image).physical
    return float(sum(distance(pts[i], pts[i + 1]) for i in range(len(pts) - 1)))


def incidence_angles(scene: Scene, image: VirtualImage) -> List[float]:
    """Angle between the incoming leg and the mirror normal at each hit, in radians."""

    pts = ray_path(scene, image).physical
    out: List[float] = []
    for i, hp in enumerate(image.hit_points):
        k_in = pts[i + 1] - pts[i]
        n = scene.mirror_by_id(hp.mirror_id).normal
        cos_t = abs(np.dot(-k_in, n)) / np.linalg.norm(k_in)
        out.append(float(np.arccos(np.clip(cos_t, 0.0, 1.0))))
    return out
