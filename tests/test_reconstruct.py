import numpy as np

from mirror_core.builder import build_virtual_images
from mirror_core.geometry import reflect_point_across_mirror
from mirror_core.images import VirtualImage
from mirror_core.rays import reflect
from mirror_core.reconstruct import incidence_angles, path_length, ray_path, reconstruct_hit_points
from scenarios import S3_l_corner, S4_corridor
from scenarios.common import vertical_mirror


def _corner():
    scene = S3_l_corner.build_scene()
    return scene, build_virtual_images(scene)


def test_hit_points_obey_reflection_law():
    scene, tree = _corner()
    for im in tree:
        pts = ray_path(scene, im).physical
        for i, hp in enumerate(im.hit_points):
            k_in = pts[i + 1] - pts[i]
            k_out = pts[i + 2] - pts[i + 1]
            r = reflect(k_in, scene.mirror_by_id(hp.mirror_id).normal)
            assert np.allclose(r, k_out / np.linalg.norm(k_out), atol=1e-9)


def test_hit_point_records():
    scene, tree = _corner()
    ab = tree[2]
    assert [h.mirror_index for h in ab.hit_points] == [0, 1]
    # each hit remembers the image its backward ray was aimed at
    assert np.allclose(ab.hit_points[1].virtual_image, ab.position)
    assert np.allclose(ab.hit_points[0].virtual_image, tree[0].position)


def test_path_length_equals_eye_to_image():
    for scene in (S3_l_corner.build_scene(), S4_corridor.build_scene()):
        tree = build_virtual_images(scene)
        for im in tree:
            assert np.isclose(path_length(scene, im), np.linalg.norm(im.position - scene.eye.position))


def test_incidence_equals_exit_angle():
    scene, tree = _corner()
    ab = tree[2]
    pts = ray_path(scene, ab).physical
    angles = incidence_angles(scene, ab)
    assert len(angles) == 2
    for i, hp in enumerate(ab.hit_points):
        k_out = pts[i + 2] - pts[i + 1]
        n = scene.mirror_by_id(hp.mirror_id).normal
        exit_angle = np.arccos(abs(np.dot(k_out, n)) / np.linalg.norm(k_out))
        assert np.isclose(angles[i], exit_angle)


def test_ray_path_virtual_legs():
    scene, tree = _corner()
    a1, ab = tree[0], tree[2]

    p1 = ray_path(scene, a1)
    assert len(p1.physical) == 3
    assert len(p1.virtual_legs) == 1
    assert np.allclose(p1.virtual_legs[0][1], a1.position)

    p2 = ray_path(scene, ab)
    assert np.allclose(p2.physical[0], scene.ball.position)
    assert np.allclose(p2.physical[-1], scene.eye.position)
    assert len(p2.virtual_legs) == 2
    assert np.allclose(p2.virtual_legs[0][1], [700.0, 700.0])
    wall = scene.mirror_by_id(1)
    assert np.allclose(p2.virtual_legs[1][1], reflect_point_across_mirror(np.array([850.0, 600.0]), wall))


def test_broken_chain_link_has_no_path():
    scene, tree = _corner()
    b1 = tree[1]
    floor = scene.mirror_by_id(0)
    cand = VirtualImage(
        position=reflect_point_across_mirror(b1.position, floor),
        radius=21.25,
        depth=2,
        source_mirror_id=0,
        parent=b1.index,
    )
    # the line of sight to the floor image lands beyond the floor's end
    assert reconstruct_hit_points(cand, scene, tree) is None


def test_blocked_final_leg_prunes_image():
    scene = S3_l_corner.build_scene()
    scene = scene.with_mirror(vertical_mirror(2, 775.0, 540.0, 560.0, facing_left=False))
    tree = build_virtual_images(scene)
    assert len(tree) == 2
    assert [im.depth for im in tree] == [1, 1]

    cand = VirtualImage(
        position=np.array([1100.0, 700.0]), radius=21.25, depth=2, source_mirror_id=1, parent=tree[0].index
    )
    assert reconstruct_hit_points(cand, scene, tree) is None
