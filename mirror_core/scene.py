"""Scene entities: the Ball (light source), the Eye (observer) and finite mirrors.

Scenes are immutable snapshots. Editing helpers return new objects so a
reflection pass always reads one consistent scene.

Example:
    >>> import numpy as np
    >>> from mirror_core.scene import Ball, Eye, Mirror, Scene
    >>> m = Mirror.from_endpoints(0, np.array([725.0, 400.0]), np.array([475.0, 400.0]))
    >>> m.normal.tolist()
    [-0.0, -1.0]
    >>> scene = Scene(Ball(np.array([600.0, 300.0]), 25.0), Eye(np.array([600.0, 100.0])), (m,))
    >>> scene.mirror_index(0)
    0
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np

from mirror_core.geometry import Vector, as_vector, distance, dot, normalize, unit_normal

CANVAS_WIDTH = 1200.0
CANVAS_HEIGHT = 800.0
BALL_RADIUS = 25.0
MIRROR_LENGTH = BALL_RADIUS * 10
MIRROR_WIDTH = 4.0
MIN_MIRROR_LENGTH = 1.0
NORMAL_TOLERANCE = 1e-6


@dataclass(frozen=True, eq=False)
class Ball:
    position: Vector
    radius: float = BALL_RADIUS

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_vector(self.position))
        if not self.radius > 0:
            raise ValueError(f"Ball radius must be positive, got {self.radius}")

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])


@dataclass(frozen=True, eq=False)
class Eye:
    position: Vector

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_vector(self.position))

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])


@dataclass(frozen=True, eq=False)
class Mirror:
    """Finite two-sided mirror.

    The centerline ``p1 -> p2`` is the reflecting geometry. ``normal`` is a
    unit vector pointing at the reflective side; the other face is opaque.
    ``width`` only matters for drawing the two faces.
    """

    mirror_id: int
    p1: Vector
    p2: Vector
    normal: Vector
    width: float = MIRROR_WIDTH

    def __post_init__(self) -> None:
        object.__setattr__(self, "p1", as_vector(self.p1))
        object.__setattr__(self, "p2", as_vector(self.p2))
        object.__setattr__(self, "normal", normalize(as_vector(self.normal)))
        if distance(self.p1, self.p2) < MIN_MIRROR_LENGTH:
            raise ValueError(f"Mirror {self.mirror_id} is shorter than {MIN_MIRROR_LENGTH}")
        # either face may be the reflective one
        if abs(abs(dot(self.normal, unit_normal(self.p1, self.p2))) - 1.0) > NORMAL_TOLERANCE:
            raise ValueError(f"Mirror {self.mirror_id} normal is not perpendicular to its segment")

    @classmethod
    def from_endpoints(cls, mirror_id: int, p1: Vector, p2: Vector, width: float = MIRROR_WIDTH) -> "Mirror":
        """Build a mirror whose reflective side is the left of ``p1 -> p2``."""

        if distance(as_vector(p1), as_vector(p2)) < MIN_MIRROR_LENGTH:
            raise ValueError(f"Mirror {mirror_id} is shorter than {MIN_MIRROR_LENGTH}")
        return cls(mirror_id, p1, p2, unit_normal(p1, p2), width)

    @classmethod
    def centered(
        cls,
        mirror_id: int,
        center: Vector,
        normal: Vector,
        length: float = MIRROR_LENGTH,
        width: float = MIRROR_WIDTH,
    ) -> "Mirror":
        """Mirror of ``length`` centered on ``center`` with the given reflective side."""

        n = normalize(as_vector(normal))
        # direction whose left-hand perpendicular is n
        d = np.array([n[1], -n[0]])
        c = as_vector(center)
        return cls.from_endpoints(mirror_id, c - d * length / 2.0, c + d * length / 2.0, width)

    @property
    def length(self) -> float:
        return distance(self.p1, self.p2)

    @property
    def midpoint(self) -> Vector:
        return (self.p1 + self.p2) / 2.0

    def with_endpoints(self, p1: Vector, p2: Vector) -> "Mirror":
        return Mirror.from_endpoints(self.mirror_id, p1, p2, self.width)

    def translated(self, offset: Vector) -> "Mirror":
        o = as_vector(offset)
        return replace(self, p1=self.p1 + o, p2=self.p2 + o)

    def flipped(self) -> "Mirror":
        return replace(self, p1=self.p2, p2=self.p1, normal=-self.normal)

    def reflective_side(self) -> Tuple[Vector, Vector]:
        off = self.normal * self.width / 2.0
        return self.p1 + off, self.p2 + off

    def opaque_side(self) -> Tuple[Vector, Vector]:
        off = self.normal * self.width / 2.0
        return self.p1 - off, self.p2 - off

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.mirror_id,
            "x1": float(self.p1[0]),
            "y1": float(self.p1[1]),
            "x2": float(self.p2[0]),
            "y2": float(self.p2[1]),
            "normal": {"x": float(self.normal[0]), "y": float(self.normal[1])},
            "width": float(self.width),
        }


@dataclass(frozen=True)
class Bounds:
    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT

    def contains_circle(self, center: Vector, radius: float) -> bool:
        c = as_vector(center)
        return bool(
            c[0] - radius >= 0.0
            and c[0] + radius <= self.width
            and c[1] - radius >= 0.0
            and c[1] + radius <= self.height
        )


@dataclass(frozen=True, eq=False)
class Scene:
    """Immutable snapshot read by one reflection pass."""

    ball: Ball
    eye: Eye
    mirrors: Tuple[Mirror, ...] = ()
    bounds: Bounds = field(default_factory=Bounds)

    def __post_init__(self) -> None:
        object.__setattr__(self, "mirrors", tuple(self.mirrors))
        ids = [m.mirror_id for m in self.mirrors]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate mirror ids: {ids}")
        if distance(self.ball.position, self.eye.position) < 1e-9:
            raise ValueError("Eye and Ball must not coincide")

    def mirror_by_id(self, mirror_id: int) -> Mirror:
        for m in self.mirrors:
            if m.mirror_id == mirror_id:
                return m
        raise ValueError(f"Unknown mirror id {mirror_id}")

    def mirror_index(self, mirror_id: int) -> int:
        for i, m in enumerate(self.mirrors):
            if m.mirror_id == mirror_id:
                return i
        raise ValueError(f"Unknown mirror id {mirror_id}")

    def next_mirror_id(self) -> int:
        return max((m.mirror_id for m in self.mirrors), default=-1) + 1

    def with_ball(self, ball: Ball) -> "Scene":
        return replace(self, ball=ball)

    def with_eye(self, eye: Eye) -> "Scene":
        return replace(self, eye=eye)

    def with_mirror(self, mirror: Mirror) -> "Scene":
        """Replace the mirror with the same id, or append it."""

        mirrors = list(self.mirrors)
        for i, m in enumerate(mirrors):
            if m.mirror_id == mirror.mirror_id:
                mirrors[i] = mirror
                break
        else:
            mirrors.append(mirror)
        return replace(self, mirrors=tuple(mirrors))

    def without_mirror(self, mirror_id: int) -> "Scene":
        self.mirror_by_id(mirror_id)
        return replace(self, mirrors=tuple(m for m in self.mirrors if m.mirror_id != mirror_id))

    def add_mirror(self, p1: Vector, p2: Vector, width: float = MIRROR_WIDTH) -> "Scene":
        return self.with_mirror(Mirror.from_endpoints(self.next_mirror_id(), p1, p2, width))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ball": {"x": self.ball.x, "y": self.ball.y, "radius": float(self.ball.radius)},
            "eye": {"x": self.eye.x, "y": self.eye.y},
            "mirrors": [m.to_dict() for m in self.mirrors],
            "bounds": {"width": float(self.bounds.width), "height": float(self.bounds.height)},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scene":
        ball = data["ball"]
        eye = data["eye"]
        mirrors = []
        for i, md in enumerate(data.get("mirrors", [])):
            p1 = np.array([md["x1"], md["y1"]], dtype=float)
            p2 = np.array([md["x2"], md["y2"]], dtype=float)
            mid = int(md.get("id", i))
            width = float(md.get("width") or MIRROR_WIDTH)
            normal: Optional[Dict[str, float]] = md.get("normal")
            if normal is None:
                mirrors.append(Mirror.from_endpoints(mid, p1, p2, width))
            else:
                mirrors.append(Mirror(mid, p1, p2, np.array([normal["x"], normal["y"]], dtype=float), width))
        bounds = data.get("bounds") or {}
        return cls(
            ball=Ball(np.array([ball["x"], ball["y"]], dtype=float), float(ball.get("radius") or BALL_RADIUS)),
            eye=Eye(np.array([eye["x"], eye["y"]], dtype=float)),
            mirrors=tuple(mirrors),
            bounds=Bounds(float(bounds.get("width", CANVAS_WIDTH)), float(bounds.get("height", CANVAS_HEIGHT))),
        )


def make_scene(ball: Iterable[float], eye: Iterable[float], mirrors: Iterable[Mirror] = (), ball_radius: float = BALL_RADIUS) -> Scene:
    return Scene(Ball(np.asarray(list(ball), dtype=float), ball_radius), Eye(np.asarray(list(eye), dtype=float)), tuple(mirrors))
