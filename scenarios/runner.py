"""Scenario sweep runner + auto plot + validation report."""

from __future__ import annotations

from importlib import import_module
import logging
from pathlib import Path
from typing import Dict, List

import numpy as np

from analysis.image_queries import count_by_depth, identification_path, image_key
from mirror_core.builder import BuildConfig
from mirror_core.images import BALL, ImageTree
from mirror_core.reconstruct import path_length
from mirror_io.hdf5_io import CaseData, save_images_hdf5
from plots import scene_plots
from scenarios.common import make_config

logger = logging.getLogger(__name__)

SCENARIO_MODULES = {
    "S1": "scenarios.S1_single_mirror",
    "S2": "scenarios.S2_occluded",
    "S3": "scenarios.S3_l_corner",
    "S4": "scenarios.S4_corridor",
    "S5": "scenarios.S5_stacked",
}


def invariant_failures(tree: ImageTree, config: BuildConfig | None = None) -> List[str]:
    """Structural checks every image tree must satisfy."""

    cfg = config or BuildConfig()
    ball = tree.scene.ball
    eye = tree.scene.eye.position
    out: List[str] = []
    for im in tree:
        if im.depth > cfg.max_reflections:
            out.append(f"image {im.index} depth {im.depth} exceeds {cfg.max_reflections}")
        if im.radius < cfg.min_size_ratio * ball.radius:
            out.append(f"image {im.index} radius {im.radius:.3f} below cutoff")
        if len(im.hit_points) != im.depth:
            out.append(f"image {im.index} has {len(im.hit_points)} hit points for depth {im.depth}")
        chain = identification_path(tree, im)
        if len(chain) != im.depth + 1 or chain[-1] is not BALL or chain[-2].depth != 1:
            out.append(f"image {im.index} parent chain is inconsistent")
        # unfolded path length equals straight distance from the Eye to the image
        expected = float(np.linalg.norm(im.position - eye))
        if not np.isclose(path_length(tree.scene, im), expected, rtol=1e-6):
            out.append(f"image {im.index} path length mismatch")
    return out


def run_all(out_h5: str = "artifacts/mirror_sweep.h5", out_plot_dir: str = "artifacts/plots") -> str:
    payload: Dict[str, Dict[str, CaseData]] = {}
    report_lines: List[str] = [
        "# Validation Report",
        "",
        "- counts: accepted virtual images per case",
        "- invariants: depth cap, size cutoff, one hit point per bounce, parent chain, unfolded path length",
        "",
    ]
    all_counts: List[int] = []
    all_names: List[str] = []
    failures: List[str] = []

    for sid, mod_name in SCENARIO_MODULES.items():
        mod = import_module(mod_name)
        payload[sid] = {}
        report_lines.append(f"## {sid}")
        for p in mod.build_sweep_params():
            case_id = p["case_id"]
            logger.info("running %s:%s", sid, case_id)
            tree = mod.run_case(p)
            payload[sid][case_id] = CaseData(params=p, tree=tree)

            counts = count_by_depth(tree)
            case_dir = str(Path(out_plot_dir) / sid / case_id)
            scene_plots.p0_scene_overlay(tree, case_dir)
            nonzero = {d: n for d, n in counts.items() if n}
            report_lines.append(f"- case `{case_id}`: images={len(tree)}, by_depth={nonzero}")
            if len(tree):
                scene_plots.p2_depth_histogram(counts, case_dir)
                deepest = max(tree, key=lambda im: im.depth)
                scene_plots.p1_ray_path(tree, deepest.index, case_dir)
                report_lines.append(
                    f"  - deepest image id={deepest.index}, depth={deepest.depth}, "
                    f"mirrors={list(image_key(tree, deepest))}, path={path_length(tree.scene, deepest):.2f}"
                )
                report_lines.append(
                    f"  - plots: [P0]({case_dir}/P0.png), [P1]({case_dir}/P1_{deepest.index}.png), [P2]({case_dir}/P2.png)"
                )
            else:
                report_lines.append(f"  - plots: [P0]({case_dir}/P0.png)")

            if "expect_count" in p and len(tree) != p["expect_count"]:
                failures.append(f"{sid}:{case_id} expected {p['expect_count']} images, got {len(tree)}")
            if "expect_max_depth" in p and tree.max_depth() != p["expect_max_depth"]:
                failures.append(f"{sid}:{case_id} expected max depth {p['expect_max_depth']}, got {tree.max_depth()}")
            failures.extend(f"{sid}:{case_id} {msg}" for msg in invariant_failures(tree, make_config(p)))

            all_counts.append(len(tree))
            all_names.append(f"{sid}:{case_id}")

        report_lines.append("")

    Path(out_h5).parent.mkdir(parents=True, exist_ok=True)
    save_images_hdf5(out_h5, payload)
    scene_plots.p3_count_trend(all_names, all_counts, out_plot_dir)

    report_lines.append("## Failure Checks")
    if failures:
        for msg in failures:
            report_lines.append(f"- FAIL: {msg}")
            logger.warning("validation failure: %s", msg)
    else:
        report_lines.append("- PASS: No automatic failure checks triggered.")

    report_path = Path(out_plot_dir).parent / "report.md"
    report_path.write_text("\n".join(report_lines), encoding="utf-8")
    return str(report_path)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    print(run_all())
