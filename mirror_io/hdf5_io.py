"""HDF5 schema for virtual-image sweep outputs.

The schema stores multiple scenarios and multiple sweep cases per scenario.

Structure:
    /
      meta                       (attrs: created_at, engine)
      scenarios/{scenario_id}/cases/{case_id}/
          params_json            (scalar utf-8 JSON)
          scene_json             (scalar utf-8 JSON, Scene.to_dict())
          images/
              position           (L,2)
              radius             (L,)
              depth              (L,)
              parent             (L,) int64, -1 for the Ball
              source_mirror_id   (L,)
              hit_points         (L,Dmax,2) nan padded
              hit_virtual        (L,Dmax,2) nan padded
              hit_mirror_ids     (L,Dmax) int64, -1 padded

Example:
    >>> import numpy as np
    >>> from mirror_core.builder import build_virtual_images
    >>> from mirror_core.scene import Mirror, make_scene
    >>> m = Mirror.centered(0, np.array([600.0, 400.0]), np.array([0.0, -1.0]))
    >>> tree = build_virtual_images(make_scene((600, 300), (600, 100), [m]))
    >>> save_images_hdf5("/tmp/images_example.h5", {"S1": {"case0": CaseData(params={}, tree=tree)}})
    >>> loaded, meta = load_images_hdf5("/tmp/images_example.h5")
    >>> len(loaded["S1"]["case0"].tree)
    1
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
from typing import Any, Dict, Mapping, Tuple

import h5py
import numpy as np

from mirror_core.builder import build_virtual_images
from mirror_core.images import HitPoint, ImageTree, VirtualImage
from mirror_core.scene import Mirror, Scene

ENGINE = "mirror-optics"


@dataclass
class CaseData:
    params: Dict[str, Any]
    tree: ImageTree


@dataclass
class Hdf5Meta:
    created_at: str
    engine: str


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Unsupported JSON type: {type(obj)}")


def _read_json(ds: h5py.Dataset) -> Any:
    raw = ds[()]
    return json.loads(raw.decode() if isinstance(raw, bytes) else raw)


def _hit_arrays(tree: ImageTree) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    width = max((len(im.hit_points) for im in tree), default=0)
    pts = np.full((len(tree), width, 2), np.nan, dtype=np.float64)
    virt = np.full((len(tree), width, 2), np.nan, dtype=np.float64)
    ids = np.full((len(tree), width), -1, dtype=np.int64)
    for i, im in enumerate(tree):
        for k, hp in enumerate(im.hit_points):
            pts[i, k] = hp.position
            virt[i, k] = hp.virtual_image
            ids[i, k] = hp.mirror_id
    return pts, virt, ids


def save_images_hdf5(filepath: str, scenarios: Mapping[str, Mapping[str, CaseData]]) -> None:
    """Save image trees to HDF5 using a fixed schema contract."""

    with h5py.File(filepath, "w") as h5:
        meta = h5.create_group("meta")
        meta.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
        meta.attrs["engine"] = ENGINE
        g_scenarios = h5.create_group("scenarios")

        for scenario_id, cases in scenarios.items():
            g_cases = g_scenarios.create_group(str(scenario_id)).create_group("cases")
            for case_id, case in cases.items():
                tree = case.tree
                g_case = g_cases.create_group(str(case_id))
                g_case.create_dataset("params_json", data=json.dumps(case.params, default=_json_default))
                g_case.create_dataset("scene_json", data=json.dumps(tree.scene.to_dict(), default=_json_default))

                g_img = g_case.create_group("images")
                g_img.create_dataset("position", data=tree.positions().reshape(len(tree), 2))
                g_img.create_dataset("radius", data=np.array([im.radius for im in tree], dtype=np.float64))
                g_img.create_dataset("depth", data=np.array([im.depth for im in tree], dtype=np.int32))
                g_img.create_dataset(
                    "parent", data=np.array([-1 if im.parent is None else im.parent for im in tree], dtype=np.int64)
                )
                g_img.create_dataset("source_mirror_id", data=np.array([im.source_mirror_id for im in tree], dtype=np.int64))
                pts, virt, ids = _hit_arrays(tree)
                g_img.create_dataset("hit_points", data=pts)
                g_img.create_dataset("hit_virtual", data=virt)
                g_img.create_dataset("hit_mirror_ids", data=ids)


def load_images_hdf5(filepath: str) -> Tuple[Dict[str, Dict[str, CaseData]], Hdf5Meta]:
    """Load an HDF5 sweep and rebuild scenes and image trees."""

    scenarios: Dict[str, Dict[str, CaseData]] = {}
    with h5py.File(filepath, "r") as h5:
        meta = Hdf5Meta(
            created_at=str(h5["meta"].attrs.get("created_at", "")),
            engine=str(h5["meta"].attrs.get("engine", ENGINE)),
        )
        for scenario_id, g_scenario in h5["scenarios"].items():
            scenarios[scenario_id] = {}
            for case_id, g_case in g_scenario["cases"].items():
                params = _read_json(g_case["params_json"])
                scene = Scene.from_dict(_read_json(g_case["scene_json"]))
                g_img = g_case["images"]
                position = np.asarray(g_img["position"][()], dtype=np.float64)
                radius = np.asarray(g_img["radius"][()], dtype=np.float64)
                depth = np.asarray(g_img["depth"][()], dtype=np.int32)
                parent = np.asarray(g_img["parent"][()], dtype=np.int64)
                source = np.asarray(g_img["source_mirror_id"][()], dtype=np.int64)
                pts = np.asarray(g_img["hit_points"][()], dtype=np.float64)
                virt = np.asarray(g_img["hit_virtual"][()], dtype=np.float64)
                ids = np.asarray(g_img["hit_mirror_ids"][()], dtype=np.int64)

                tree = ImageTree(scene)
                for i in range(len(radius)):
                    hits = [
                        HitPoint(pts[i, k].copy(), int(ids[i, k]), scene.mirror_index(int(ids[i, k])), virt[i, k].copy())
                        for k in range(ids.shape[1])
                        if ids[i, k] != -1
                    ]
                    tree.add(
                        VirtualImage(
                            position=position[i].copy(),
                            radius=float(radius[i]),
                            depth=int(depth[i]),
                            source_mirror_id=int(source[i]),
                            parent=None if parent[i] < 0 else int(parent[i]),
                            hit_points=hits,
                        )
                    )
                scenarios[scenario_id][case_id] = CaseData(params=params, tree=tree)
    return scenarios, meta


def self_test_roundtrip(filepath: str, atol: float = 1e-10) -> bool:
    """Write->read equivalence self-test against a freshly built two-mirror tree."""

    scene = Scene.from_dict(
        {
            "ball": {"x": 700.0, "y": 500.0, "radius": 25.0},
            "eye": {"x": 500.0, "y": 300.0},
            "mirrors": [
                Mirror.from_endpoints(0, np.array([900.0, 600.0]), np.array([300.0, 600.0])).to_dict(),
                Mirror.from_endpoints(1, np.array([900.0, 200.0]), np.array([900.0, 600.0])).to_dict(),
            ],
        }
    )
    tree = build_virtual_images(scene)
    save_images_hdf5(filepath, {"selftest": {"case0": CaseData(params={"seed": 7}, tree=tree)}})
    loaded, _ = load_images_hdf5(filepath)
    t2 = loaded["selftest"]["case0"].tree
    if len(t2) != len(tree):
        return False
    for a, b in zip(tree, t2):
        if a.depth != b.depth or a.parent != b.parent or a.source_mirror_id != b.source_mirror_id:
            return False
        if not np.allclose(a.position, b.position, atol=atol):
            return False
        pa = np.array([h.position for h in a.hit_points])
        pb = np.array([h.position for h in b.hit_points])
        if pa.shape != pb.shape or not np.allclose(pa, pb, atol=atol):
            return False
    return True
