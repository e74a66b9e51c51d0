import os
import tempfile

import numpy as np

from mirror_core.builder import build_virtual_images
from mirror_io.hdf5_io import ENGINE, CaseData, load_images_hdf5, save_images_hdf5, self_test_roundtrip
from scenarios import S1_single_mirror, S3_l_corner


def test_hdf5_schema_roundtrip():
    tree = build_virtual_images(S3_l_corner.build_scene())
    empty = build_virtual_images(S1_single_mirror.build_scene(eye=(600.0, 700.0)))
    payload = {
        "S3": {"corner": CaseData(params={"case_id": "corner", "max_reflections": 10}, tree=tree)},
        "S1": {"behind": CaseData(params={"case_id": "behind"}, tree=empty)},
    }
    with tempfile.TemporaryDirectory() as td:
        fp = os.path.join(td, "images.h5")
        save_images_hdf5(fp, payload)
        loaded, meta = load_images_hdf5(fp)

    assert meta.engine == ENGINE
    case = loaded["S3"]["corner"]
    assert case.params["max_reflections"] == 10
    t2 = case.tree
    assert len(t2) == 3
    assert np.allclose(t2.positions(), tree.positions())
    assert [im.parent for im in t2] == [None, None, 0]
    assert [h.mirror_id for h in t2[2].hit_points] == [0, 1]
    assert np.allclose(t2[2].hit_points[1].virtual_image, tree[2].position)
    assert np.allclose(t2.scene.mirror_by_id(1).normal, [-1.0, 0.0])
    assert len(loaded["S1"]["behind"].tree) == 0


def test_self_test_roundtrip_function():
    with tempfile.TemporaryDirectory() as td:
        fp = os.path.join(td, "selftest.h5")
        assert self_test_roundtrip(fp)
