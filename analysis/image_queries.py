"""Queries over a computed image tree.

Use-cases: counting images per reflection order, resolving a pointer
position to an image or mirror, checking a user-built identification chain,
and pairing the images of two passes (before/after a scene edit).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from mirror_core.builder import MAX_REFLECTIONS
from mirror_core.geometry import Vector, as_vector, distance, point_segment_distance
from mirror_core.images import BALL, BallRef, ImageTree, VirtualImage
from mirror_core.reconstruct import path_length
from mirror_core.scene import Mirror, Scene

ChainItem = Union[VirtualImage, BallRef]


def count_by_depth(tree: ImageTree, max_depth: int = MAX_REFLECTIONS) -> Dict[int, int]:
    counts = {d: 0 for d in range(1, max_depth + 1)}
    for im in tree:
        counts[im.depth] = counts.get(im.depth, 0) + 1
    return counts


def image_at(tree: ImageTree, point: Vector) -> Optional[VirtualImage]:
    """Image whose circle contains ``point``; the closest center wins on overlap."""

    p = as_vector(point)
    inside = [im for im in tree if distance(p, im.position) <= im.radius]
    if not inside:
        return None
    return min(inside, key=lambda im: distance(p, im.position))


def mirror_at(scene: Scene, point: Vector, threshold: float = 10.0) -> Optional[Mirror]:
    p = as_vector(point)
    near = [(point_segment_distance(p, m.p1, m.p2), i) for i, m in enumerate(scene.mirrors)]
    near = [x for x in near if x[0] < threshold]
    if not near:
        return None
    return scene.mirrors[min(near)[1]]


def identification_path(tree: ImageTree, image: VirtualImage) -> List[ChainItem]:
    """``image`` followed by its ancestors, ending with the BALL sentinel."""

    out: List[ChainItem] = []
    node: ChainItem = image
    while node is not BALL:
        out.append(node)
        node = tree.parent_of(node)
    out.append(BALL)
    return out


def is_identification_correct(tree: ImageTree, target: VirtualImage, user_path: Sequence[ChainItem]) -> bool:
    """Check a user-selected chain from ``target`` back to the Ball.

    ``user_path`` lists the intermediate images nearest-the-target first and
    must end with BALL; the target itself is not repeated.
    """

    if not user_path or user_path[-1] is not BALL:
        return False
    expected = identification_path(tree, target)[1:-1]
    picked = list(user_path[:-1])
    if len(picked) != len(expected):
        return False
    return all(a is b for a, b in zip(picked, expected))


def image_key(tree: ImageTree, image: VirtualImage) -> Tuple[int, ...]:
    """Mirror ids in bounce order, Ball side first."""

    return tuple(im.source_mirror_id for im in tree.chain(image))


@dataclass
class MatchConfig:
    position_tolerance: float = 1.0
    allow_nearest: bool = True


def match_passes(
    before: ImageTree,
    after: ImageTree,
    config: MatchConfig | None = None,
    key_fn: Callable[[ImageTree, VirtualImage], Tuple] = image_key,
) -> Tuple[List[Tuple[int, int]], List[str]]:
    """Pair images of two passes by bounce sequence, then by position.

    Returns (pairs of (before index, after index), warnings).
    """

    cfg = config or MatchConfig()
    warnings: List[str] = []
    used_after = set()
    after_by_key: Dict[Tuple, List[int]] = {}
    for j, im in enumerate(after):
        after_by_key.setdefault(key_fn(after, im), []).append(j)

    pairs: List[Tuple[int, int]] = []
    for i, im in enumerate(before):
        cand = [j for j in after_by_key.get(key_fn(before, im), []) if j not in used_after]
        chosen = None
        if cand:
            chosen = min(cand, key=lambda j: distance(after[j].position, im.position))
            if distance(after[chosen].position, im.position) > cfg.position_tolerance:
                warnings.append(f"key-match moved: before[{i}] after[{chosen}]")

        if chosen is None and cfg.allow_nearest and len(after):
            free = [j for j in range(len(after)) if j not in used_after]
            if free:
                chosen = min(free, key=lambda j: distance(after[j].position, im.position))
                d = distance(after[chosen].position, im.position)
                if d > cfg.position_tolerance:
                    chosen = None
                else:
                    warnings.append(f"approximate match before[{i}] -> after[{chosen}] with d={d:.3f}")

        if chosen is None:
            warnings.append(f"no match for before[{i}]")
            continue
        used_after.add(chosen)
        pairs.append((i, chosen))

    for j in range(len(after)):
        if j not in used_after:
            warnings.append(f"unmatched after[{j}]")
    return pairs, warnings


def summarize(tree: ImageTree) -> Dict[str, object]:
    lengths = np.array([path_length(tree.scene, im) for im in tree], dtype=float)
    return {
        "count": len(tree),
        "max_depth": tree.max_depth(),
        "by_depth": {d: n for d, n in count_by_depth(tree).items() if n},
        "mean_path_length": float(np.mean(lengths)) if len(lengths) else float("nan"),
        "mirror_sequences": [image_key(tree, im) for im in tree],
    }
