import numpy as np

from analysis.image_queries import (
    MatchConfig,
    count_by_depth,
    identification_path,
    image_at,
    image_key,
    is_identification_correct,
    match_passes,
    mirror_at,
    summarize,
)
from mirror_core.builder import build_virtual_images
from mirror_core.images import BALL
from scenarios import S3_l_corner


def _corner_tree():
    return build_virtual_images(S3_l_corner.build_scene())


def test_count_by_depth():
    counts = count_by_depth(_corner_tree())
    assert list(counts) == list(range(1, 11))
    assert counts[1] == 2
    assert counts[2] == 1
    assert sum(counts.values()) == 3


def test_image_at():
    tree = _corner_tree()
    assert image_at(tree, (1100.0, 705.0)) is tree[2]
    assert image_at(tree, (1090.0, 500.0)) is tree[1]
    assert image_at(tree, (50.0, 50.0)) is None


def test_mirror_at():
    scene = S3_l_corner.build_scene()
    assert mirror_at(scene, (600.0, 605.0)).mirror_id == 0
    assert mirror_at(scene, (905.0, 400.0)).mirror_id == 1
    assert mirror_at(scene, (100.0, 100.0)) is None


def test_identification_path():
    tree = _corner_tree()
    a1, ab = tree[0], tree[2]
    assert identification_path(tree, ab) == [ab, a1, BALL]
    assert identification_path(tree, a1) == [a1, BALL]


def test_user_identification_check():
    tree = _corner_tree()
    a1, b1, ab = tree[0], tree[1], tree[2]
    assert is_identification_correct(tree, ab, [a1, BALL])
    assert not is_identification_correct(tree, ab, [b1, BALL])
    assert not is_identification_correct(tree, ab, [a1])
    assert not is_identification_correct(tree, ab, [BALL])
    assert is_identification_correct(tree, a1, [BALL])
    assert not is_identification_correct(tree, a1, [a1, BALL])


def test_image_key():
    tree = _corner_tree()
    assert [image_key(tree, im) for im in tree] == [(0,), (1,), (0, 1)]


def test_match_identical_passes():
    before = _corner_tree()
    after = _corner_tree()
    pairs, warns = match_passes(before, after)
    assert pairs == [(0, 0), (1, 1), (2, 2)]
    assert warns == []


def test_match_after_removing_mirror():
    before = _corner_tree()
    after = build_virtual_images(S3_l_corner.build_scene().without_mirror(1))
    pairs, warns = match_passes(before, after)
    assert pairs == [(0, 0)]
    assert "no match for before[1]" in warns
    assert "no match for before[2]" in warns


def test_match_falls_back_to_nearest():
    before = _corner_tree()
    after = _corner_tree()
    pairs, warns = match_passes(before, after, MatchConfig(), key_fn=lambda tree, im: (id(tree), im.index))
    assert pairs == [(0, 0), (1, 1), (2, 2)]
    assert len(warns) == 3
    assert all(w.startswith("approximate match") for w in warns)

    pairs, warns = match_passes(before, after, MatchConfig(allow_nearest=False), key_fn=lambda tree, im: (id(tree), im.index))
    assert pairs == []
    assert any("unmatched after" in w for w in warns)


def test_summarize():
    s = summarize(_corner_tree())
    assert s["count"] == 3
    assert s["max_depth"] == 2
    assert s["by_depth"] == {1: 2, 2: 1}
    assert s["mirror_sequences"] == [(0,), (1,), (0, 1)]
    assert np.isfinite(s["mean_path_length"])
