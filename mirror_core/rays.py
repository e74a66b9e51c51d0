"""Forward ray casting against the scene mirrors.

Example:
    >>> import numpy as np
    >>> from mirror_core.rays import reflect
    >>> d = np.array([1.0, 1.0]) / np.sqrt(2)
    >>> n = np.array([0.0, -1.0])
    >>> np.allclose(reflect(d, n), np.array([1.0, -1.0]) / np.sqrt(2))
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from mirror_core.geometry import Vector, as_vector, distance, dot, normalize, segment_intersection
from mirror_core.scene import Mirror, Scene


@dataclass
class Ray:
    origin: Vector
    direction: Vector
    path_points: List[Vector] = field(default_factory=list)
    # mirrors struck, in order
    mirror_ids: List[int] = field(default_factory=list)


@dataclass
class MirrorHit:
    point: Vector
    mirror: Mirror
    reflected: Vector


def reflect(direction: Vector, normal: Vector) -> Vector:
    """Specular reflection direction with unit normal."""

    d = normalize(as_vector(direction))
    n = normalize(as_vector(normal))
    r = d - 2.0 * np.dot(d, n) * n
    return r / np.linalg.norm(r)


def closest_mirror_hit(
    start: Vector,
    end: Vector,
    mirrors: Sequence[Mirror],
    exclude_id: Optional[int] = None,
    eps: float = 1e-9,
) -> Optional[MirrorHit]:
    """Nearest mirror crossed by ``start -> end`` and the reflected direction there."""

    s = as_vector(start)
    e = as_vector(end)
    best: Optional[MirrorHit] = None
    best_dist = np.inf
    for m in mirrors:
        if m.mirror_id == exclude_id:
            continue
        hit = segment_intersection(s, e, m.p1, m.p2)
        if hit is None:
            continue
        d = distance(s, hit)
        if d <= eps or d >= best_dist:
            continue
        best_dist = d
        best = MirrorHit(hit, m, reflect(e - s, m.normal))
    return best


def trace_ray(
    origin: Vector,
    direction: Vector,
    scene: Scene,
    max_bounces: int = 10,
    reach: float | None = None,
) -> Ray:
    """Follow a ray forward through specular bounces.

    The ray stops after ``max_bounces`` reflections, when it strikes the
    opaque face of a mirror, or when no mirror lies within ``reach``
    (defaults to the scene diagonal).
    """

    o = as_vector(origin)
    d = normalize(as_vector(direction))
    span = reach if reach is not None else float(np.hypot(scene.bounds.width, scene.bounds.height))
    ray = Ray(origin=o, direction=d, path_points=[o])
    last_id: Optional[int] = None
    for _ in range(max_bounces + 1):
        end = o + d * span
        hit = closest_mirror_hit(o, end, scene.mirrors, exclude_id=last_id)
        if hit is None:
            ray.path_points.append(end)
            break
        ray.path_points.append(hit.point)
        ray.mirror_ids.append(hit.mirror.mirror_id)
        if dot(d, hit.mirror.normal) >= 0 or len(ray.mirror_ids) > max_bounces:
            break
        o, d, last_id = hit.point, hit.reflected, hit.mirror.mirror_id
    return ray
