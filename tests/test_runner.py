from pathlib import Path

from mirror_core.builder import build_virtual_images
from mirror_io.hdf5_io import load_images_hdf5
from scenarios import S3_l_corner
from scenarios.runner import SCENARIO_MODULES, invariant_failures, run_all


def test_run_all_writes_report(tmp_path: Path):
    h5 = tmp_path / "sweep.h5"
    plots = tmp_path / "plots"
    report = Path(run_all(out_h5=str(h5), out_plot_dir=str(plots)))

    text = report.read_text(encoding="utf-8")
    assert "PASS" in text
    assert "FAIL" not in text
    assert (plots / "P3.png").exists()
    assert (plots / "S3" / "s3_corner" / "P0.png").exists()

    loaded, _ = load_images_hdf5(str(h5))
    assert set(loaded) == set(SCENARIO_MODULES)
    assert len(loaded["S4"]["s4_full"].tree) == 18


def test_invariant_failures_flag_broken_tree():
    tree = build_virtual_images(S3_l_corner.build_scene())
    assert invariant_failures(tree) == []
    tree[2].hit_points = tree[2].hit_points[:1]
    assert any("hit points" in msg for msg in invariant_failures(tree))
