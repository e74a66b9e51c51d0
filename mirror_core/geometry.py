"""Planar vector helpers and segment intersection.

Example:
    >>> import numpy as np
    >>> from mirror_core.geometry import segment_intersection
    >>> hit = segment_intersection(np.array([0.0, 0.0]), np.array([2.0, 2.0]), np.array([0.0, 2.0]), np.array([2.0, 0.0]))
    >>> np.allclose(hit, np.array([1.0, 1.0]))
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from mirror_core.scene import Mirror

Vector = NDArray[np.float64]


def as_vector(p) -> Vector:
    return np.asarray(p, dtype=float).reshape(2)


def dot(v1: Vector, v2: Vector) -> float:
    return float(np.dot(v1, v2))


def normalize(v: Vector) -> Vector:
    vv = np.asarray(v, dtype=float)
    n = np.linalg.norm(vv)
    if n == 0:
        raise ValueError("Cannot normalize zero vector")
    return vv / n


def distance(a: Vector, b: Vector) -> float:
    return float(np.linalg.norm(np.asarray(b, dtype=float) - np.asarray(a, dtype=float)))


def unit_normal(p1: Vector, p2: Vector) -> Vector:
    """Left-hand perpendicular ``(-dy, dx)/length`` of the segment ``p1 -> p2``."""

    d = as_vector(p2) - as_vector(p1)
    return normalize(np.array([-d[1], d[0]]))


def segment_intersection(
    p1: Vector,
    p2: Vector,
    p3: Vector,
    p4: Vector,
    eps: float = 1e-12,
) -> Optional[Vector]:
    """Return the crossing point of segments ``p1-p2`` and ``p3-p4`` or None.

    Parallel or collinear segments (determinant within ``eps`` of zero) have
    no single crossing and return None, as do crossings outside either
    segment (interpolation parameter outside ``[0, 1]``).
    """

    a = as_vector(p1)
    b = as_vector(p2)
    c = as_vector(p3)
    d = as_vector(p4)
    r = b - a
    s = d - c
    den = s[1] * r[0] - s[0] * r[1]
    if abs(den) <= eps:
        return None
    ua = (s[0] * (a[1] - c[1]) - s[1] * (a[0] - c[0])) / den
    ub = (r[0] * (a[1] - c[1]) - r[1] * (a[0] - c[0])) / den
    if ua < 0.0 or ua > 1.0 or ub < 0.0 or ub > 1.0:
        return None
    return a + ua * r


def signed_distance(point: Vector, mirror: "Mirror") -> float:
    """Distance of ``point`` from the mirror line, positive on the reflective side."""

    return dot(as_vector(point) - mirror.p1, mirror.normal)


def reflect_point_across_mirror(point: Vector, mirror: "Mirror") -> Vector:
    """Reflect a point across the infinite line through a mirror."""

    p = as_vector(point)
    return p - 2.0 * signed_distance(p, mirror) * mirror.normal


def point_segment_distance(point: Vector, p1: Vector, p2: Vector) -> float:
    p = as_vector(point)
    a = as_vector(p1)
    seg = as_vector(p2) - a
    length_sq = float(np.dot(seg, seg))
    if length_sq < 1e-12:
        return distance(p, a)
    t = float(np.clip(np.dot(p - a, seg) / length_sq, 0.0, 1.0))
    return distance(p, a + t * seg)
