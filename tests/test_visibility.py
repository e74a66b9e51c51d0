import numpy as np

from mirror_core.builder import build_virtual_images
from mirror_core.images import ImageTree, VirtualImage
from mirror_core.visibility import is_visible, rejection_reason, segment_clear, visible_mirrors
from scenarios import S1_single_mirror, S2_occluded, S3_l_corner
from scenarios.common import vertical_mirror


def _first_order(position, mirror_id=0):
    return VirtualImage(position=np.array(position, dtype=float), radius=25.0, depth=1, source_mirror_id=mirror_id)


def _reason(scene, position):
    return rejection_reason(_first_order(position), scene, ImageTree(scene))


def test_accepts_plain_reflection():
    scene = S1_single_mirror.build_scene(eye=(600.0, 100.0))
    cand = _first_order((600.0, 500.0))
    assert rejection_reason(cand, scene, ImageTree(scene)) is None
    assert is_visible(cand, scene, ImageTree(scene))


def test_rejects_out_of_bounds():
    scene = S1_single_mirror.build_scene()
    assert _reason(scene, (1190.0, 400.0)) == "bounds"


def test_rejects_line_of_sight_missing_mirror():
    scene = S1_single_mirror.build_scene()
    assert _reason(scene, (1000.0, 500.0)) == "no-mirror-intersection"


def test_rejects_opaque_face():
    scene = S1_single_mirror.build_scene(eye=(600.0, 700.0))
    assert _reason(scene, (600.0, 300.0)) == "back-side"


def test_rejects_image_not_behind_mirror():
    scene = S1_single_mirror.build_scene()
    assert _reason(scene, (600.0, 400.0)) == "ordering"


def test_rejects_blocked_line_of_sight():
    scene = S2_occluded.build_scene(blocked=True)
    assert _reason(scene, (600.0, 500.0)) == "occluded"


def test_rejects_blocked_source_leg():
    scene = S1_single_mirror.build_scene(eye=(400.0, 100.0))
    scene = scene.with_mirror(vertical_mirror(1, 580.0, 320.0, 380.0, facing_left=True))
    assert _reason(scene, (600.0, 500.0)) == "source-blocked"


def test_second_order_ignores_parent_mirror_on_source_leg():
    scene = S3_l_corner.build_scene()
    tree = build_virtual_images(scene)
    a1 = tree[0]
    cand = VirtualImage(
        position=np.array([1100.0, 700.0]), radius=21.25, depth=2, source_mirror_id=1, parent=a1.index
    )
    # the leg from A1 to the wall crosses the floor line it was mirrored in
    assert rejection_reason(cand, scene, tree) is None


def test_segment_clear_margin():
    scene = S2_occluded.build_scene(blocked=True)
    blockers = [scene.mirror_by_id(1)]
    assert not segment_clear(np.array([600.0, 100.0]), np.array([600.0, 400.0]), blockers)
    # crossing at the very end of the segment does not count
    assert segment_clear(np.array([600.0, 100.0]), np.array([600.0, 200.0]), blockers)


def test_visible_mirrors():
    ids = [m.mirror_id for m in visible_mirrors(S3_l_corner.build_scene())]
    assert ids == [0, 1]
    ids = [m.mirror_id for m in visible_mirrors(S2_occluded.build_scene(blocked=True))]
    assert ids == [1]
    assert visible_mirrors(S1_single_mirror.build_scene(eye=(600.0, 700.0))) == []
