"""Virtual image records and the per-pass arena that links them.

Images reference their parent by arena index rather than by object, so a
tree is a flat insertion-ordered list and walking from a leaf to the Ball is
a sequence of index lookups.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

import numpy as np

from mirror_core.geometry import Vector
from mirror_core.scene import Ball, Scene


class BallRef:
    """Sentinel for the root of every reflection chain."""

    type = "ball"

    def __repr__(self) -> str:
        return "BALL"


BALL = BallRef()


@dataclass(eq=False)
class HitPoint:
    position: Vector
    mirror_id: int
    mirror_index: int
    # virtual-image position the ray was aimed at when this hit was found
    virtual_image: Vector

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])


@dataclass(eq=False)
class VirtualImage:
    position: Vector
    radius: float
    depth: int
    source_mirror_id: int
    parent: Optional[int] = None
    hit_points: List[HitPoint] = field(default_factory=list)
    index: int = -1

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])


class ImageTree:
    """Arena of accepted virtual images for one scene snapshot."""

    def __init__(self, scene: Scene) -> None:
        self.scene = scene
        self._images: List[VirtualImage] = []

    def add(self, image: VirtualImage) -> VirtualImage:
        image.index = len(self._images)
        self._images.append(image)
        return image

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[VirtualImage]:
        return iter(self._images)

    def __getitem__(self, index: int) -> VirtualImage:
        return self._images[index]

    def parent_of(self, image: VirtualImage) -> Union[VirtualImage, BallRef]:
        if image.parent is None:
            return BALL
        return self._images[image.parent]

    def source_position(self, image: VirtualImage) -> Vector:
        """Position of the object ``image`` is a reflection of."""

        parent = self.parent_of(image)
        return self.scene.ball.position if parent is BALL else parent.position

    def chain(self, image: VirtualImage) -> List[VirtualImage]:
        """Images from the depth-1 ancestor down to ``image`` (source to observer)."""

        out = [image]
        parent = image.parent
        while parent is not None:
            node = self._images[parent]
            out.append(node)
            parent = node.parent
        out.reverse()
        return out

    def by_depth(self, depth: int) -> List[VirtualImage]:
        return [im for im in self._images if im.depth == depth]

    def max_depth(self) -> int:
        return max((im.depth for im in self._images), default=0)

    def positions(self) -> np.ndarray:
        if not self._images:
            return np.zeros((0, 2), dtype=float)
        return np.array([im.position for im in self._images], dtype=float)

    @property
    def ball(self) -> Ball:
        return self.scene.ball
