"""Diagnostic figures for scenes and their virtual images."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence
import warnings

import matplotlib.pyplot as plt
import numpy as np

from mirror_core.images import ImageTree
from mirror_core.reconstruct import ray_path
from mirror_core.scene import Scene


def _save(fig: plt.Figure, outdir: str, name: str) -> str:
    Path(outdir).mkdir(parents=True, exist_ok=True)
    png = Path(outdir) / f"{name}.png"
    pdf = Path(outdir) / f"{name}.pdf"
    fig.savefig(png, dpi=150, bbox_inches="tight")
    try:
        fig.savefig(pdf, bbox_inches="tight")
    except PermissionError:
        warnings.warn(
            f"Could not write '{pdf}' (permission denied). Saved PNG only.",
            RuntimeWarning,
            stacklevel=2,
        )
    plt.close(fig)
    return str(png)


def _draw_scene(ax: plt.Axes, scene: Scene) -> None:
    for m in scene.mirrors:
        a, b = m.opaque_side()
        ax.plot([a[0], b[0]], [a[1], b[1]], color="black", lw=2)
        a, b = m.reflective_side()
        ax.plot([a[0], b[0]], [a[1], b[1]], color="tab:blue", lw=2)
        mid = m.midpoint
        ax.annotate(str(m.mirror_id), mid + m.normal * 12, ha="center", va="center", fontsize=7)
    ax.add_patch(plt.Circle(scene.ball.position, scene.ball.radius, color="tab:red"))
    ax.plot(*scene.eye.position, marker="o", color="black", ms=8)
    ax.set_xlim(0, scene.bounds.width)
    # screen coordinates: y grows downward
    ax.set_ylim(scene.bounds.height, 0)
    ax.set_aspect("equal")


def p0_scene_overlay(tree: ImageTree, outdir: str) -> str:
    fig, ax = plt.subplots(figsize=(9, 6))
    _draw_scene(ax, tree.scene)
    if len(tree):
        cmap = plt.get_cmap("viridis")
        top = max(tree.max_depth(), 1)
        for im in tree:
            ax.add_patch(plt.Circle(im.position, im.radius, color=cmap((im.depth - 1) / top), alpha=0.6))
    ax.set_title("P0 scene and virtual images")
    return _save(fig, outdir, "P0")


def p1_ray_path(tree: ImageTree, index: int, outdir: str) -> str:
    image = tree[index]
    path = ray_path(tree.scene, image)
    fig, ax = plt.subplots(figsize=(9, 6))
    _draw_scene(ax, tree.scene)
    pts = np.array(path.physical)
    if len(pts):
        ax.plot(pts[:, 0], pts[:, 1], color="tab:orange", lw=1.5)
    for hit, virtual in path.virtual_legs:
        ax.plot([hit[0], virtual[0]], [hit[1], virtual[1]], color="tab:orange", ls="--", lw=1)
    ax.add_patch(plt.Circle(image.position, image.radius, color="tab:orange", alpha=0.5))
    ax.set_title(f"P1 ray path image={index} depth={image.depth}")
    return _save(fig, outdir, f"P1_{index}")


def p2_depth_histogram(counts: Dict[int, int], outdir: str) -> str:
    fig, ax = plt.subplots()
    depths = sorted(counts)
    ax.bar(depths, [counts[d] for d in depths])
    ax.set_xlabel("reflection order")
    ax.set_ylabel("images")
    ax.set_title("P2 images per order")
    return _save(fig, outdir, "P2")


def p3_count_trend(names: Sequence[str], counts: Sequence[int], outdir: str) -> str:
    fig, ax = plt.subplots()
    ax.plot(names, counts, "o-")
    ax.tick_params(axis="x", labelrotation=45)
    ax.set_title("P3 image count per case")
    return _save(fig, outdir, "P3")
