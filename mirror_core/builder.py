"""Virtual image tree construction.

Example:
    >>> import numpy as np
    >>> from mirror_core.builder import build_virtual_images
    >>> from mirror_core.scene import Mirror, make_scene
    >>> m = Mirror.centered(0, np.array([600.0, 400.0]), np.array([0.0, -1.0]))
    >>> tree = build_virtual_images(make_scene((600, 300), (600, 100), [m]))
    >>> len(tree), tree[0].position.tolist()
    (1, [600.0, 500.0])
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional, Tuple

from mirror_core.geometry import reflect_point_across_mirror, signed_distance
from mirror_core.images import ImageTree, VirtualImage
from mirror_core.reconstruct import reconstruct_hit_points
from mirror_core.scene import Mirror, Scene
from mirror_core.visibility import OCCLUSION_MARGIN, rejection_reason

logger = logging.getLogger(__name__)

MAX_REFLECTIONS = 10
MIN_REFLECTION_SIZE_RATIO = 0.05
SIZE_FACTORS = (1.0, 0.85, 0.70, 0.60, 0.60, 0.60)


@dataclass(frozen=True)
class BuildConfig:
    max_reflections: int = MAX_REFLECTIONS
    min_size_ratio: float = MIN_REFLECTION_SIZE_RATIO
    size_factors: Tuple[float, ...] = SIZE_FACTORS
    occlusion_margin: float = OCCLUSION_MARGIN

    def radius_for_depth(self, ball_radius: float, depth: int) -> float:
        return ball_radius * self.size_factors[min(depth - 1, len(self.size_factors) - 1)]


def _try_image(
    scene: Scene,
    tree: ImageTree,
    mirror: Mirror,
    parent: Optional[VirtualImage],
    depth: int,
    cfg: BuildConfig,
) -> Optional[VirtualImage]:
    """Build, test and store the image of ``parent`` (or the Ball) in ``mirror``."""

    if depth > cfg.max_reflections:
        return None
    obj = scene.ball.position if parent is None else parent.position
    if signed_distance(obj, mirror) <= 0:
        return None

    radius = cfg.radius_for_depth(scene.ball.radius, depth)
    if radius < scene.ball.radius * cfg.min_size_ratio:
        return None

    candidate = VirtualImage(
        position=reflect_point_across_mirror(obj, mirror),
        radius=radius,
        depth=depth,
        source_mirror_id=mirror.mirror_id,
        parent=None if parent is None else parent.index,
    )
    reason = rejection_reason(candidate, scene, tree, cfg.occlusion_margin)
    if reason is not None:
        logger.debug("pruned depth=%d mirror=%d: %s", depth, mirror.mirror_id, reason)
        return None

    hits = reconstruct_hit_points(candidate, scene, tree, cfg.occlusion_margin)
    if hits is None:
        logger.debug("pruned depth=%d mirror=%d: no consistent ray path", depth, mirror.mirror_id)
        return None
    candidate.hit_points = hits
    return tree.add(candidate)


def _expand(scene: Scene, tree: ImageTree, node: VirtualImage, cfg: BuildConfig) -> None:
    for mirror in scene.mirrors:
        if mirror.mirror_id == node.source_mirror_id:
            continue
        child = _try_image(scene, tree, mirror, node, node.depth + 1, cfg)
        if child is not None:
            _expand(scene, tree, child, cfg)


def build_virtual_images(scene: Scene, config: BuildConfig | None = None) -> ImageTree:
    """Compute every visible virtual image of the Ball for one scene snapshot.

    First-order images are collected for all mirrors, then each is expanded
    depth first. The result lists images in insertion order.
    """

    cfg = config or BuildConfig()
    tree = ImageTree(scene)
    first_order = []
    for mirror in scene.mirrors:
        image = _try_image(scene, tree, mirror, None, 1, cfg)
        if image is not None:
            first_order.append(image)
    for image in first_order:
        _expand(scene, tree, image, cfg)
    logger.debug("built %d virtual images (max depth %d)", len(tree), tree.max_depth())
    return tree
