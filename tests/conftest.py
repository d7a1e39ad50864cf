"""Shared fixtures: segment factories and a complete on-disk survey site."""

import io
import json

import numpy as np
import pytest
import rasterio
import trimesh
from PIL import Image
from rasterio.transform import from_origin

from geovision.models import DrillholeSegment


def make_segment(hole_id="DH-01", depth_from=0.0, depth_to=10.0,
                 x=100.0, y=200.0, z=50.0, lithology="BASALT", grade=0.5):
    return DrillholeSegment(hole_id=hole_id, x=x, y=y, z=z,
                            depth_from=depth_from, depth_to=depth_to,
                            lithology=lithology, grade=grade)


class RecordingSink:
    """SceneSink that records calls and keeps the attached renderables."""

    def __init__(self):
        self.nodes = {}
        self.attached = []
        self.detached = []

    def attach(self, renderable):
        assert renderable.name not in self.nodes, f"duplicate attach {renderable.name}"
        assert not renderable.disposed
        self.nodes[renderable.name] = renderable
        self.attached.append(renderable.name)

    def detach(self, renderable):
        self.nodes.pop(renderable.name)
        self.detached.append(renderable.name)


def png_bytes(color=(120, 90, 60), size=(8, 8), mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


LITHOLOGY_RECORDS = [
    {"holeId": "DH-01", "x": 1000.0, "y": 2000.0, "z": 300.0,
     "depthFrom": 0.0, "depthTo": 10.0, "lithology": "BASALT"},
    {"holeId": "DH-01", "x": 1000.0, "y": 2000.0, "z": 300.0,
     "depthFrom": 10.0, "depthTo": 25.0, "lithology": "GRANITE"},
    {"holeId": "DH-02", "x": 1100.0, "y": 2100.0, "z": 320.0,
     "depthFrom": 0.0, "depthTo": 30.0, "lithology": "Mystery Rock"},
]

ASSAY_RECORDS = [
    {"holeId": "DH-01", "x": 1000.0, "y": 2000.0, "z": 300.0,
     "depthFrom": 0.0, "depthTo": 5.0, "grade": 0.2},
    {"holeId": "DH-02", "x": 1100.0, "y": 2100.0, "z": 320.0,
     "depthFrom": 0.0, "depthTo": 12.0, "grade": 0.9},
    {"holeId": "DH-02", "x": 1100.0, "y": 2100.0, "z": 320.0,
     "depthFrom": 12.0, "depthTo": 12.0, "grade": 0.4},
]


def write_site(root, layers=("topography", "geology", "magnetic",
                             "drillholes", "ore_body")):
    """Write a survey site under *root* with the given optional layers."""
    (root / "satellite.png").write_bytes(png_bytes((40, 110, 60)))

    if "topography" in layers:
        elev = np.linspace(250.0, 400.0, 16 * 16, dtype=np.float32).reshape(16, 16)
        with rasterio.open(root / "topography.tif", "w", driver="GTiff",
                           height=16, width=16, count=1, dtype="float32",
                           transform=from_origin(0.0, 16.0, 1.0, 1.0)) as dst:
            dst.write(elev, 1)
    if "geology" in layers:
        (root / "geology_map.png").write_bytes(png_bytes((200, 60, 60)))
    if "magnetic" in layers:
        (root / "magnetic_map.png").write_bytes(png_bytes((60, 60, 200)))
    if "drillholes" in layers:
        (root / "drillholes").mkdir(exist_ok=True)
        (root / "drillholes" / "lithology.json").write_text(json.dumps(LITHOLOGY_RECORDS))
        (root / "drillholes" / "assay.json").write_text(json.dumps(ASSAY_RECORDS))
    if "ore_body" in layers:
        box = trimesh.creation.box(extents=(40.0, 20.0, 40.0))
        box.apply_translation((1050.0, 200.0, 2050.0))
        (root / "ore_body.glb").write_bytes(box.export(file_type="glb"))
    return root


@pytest.fixture
def site_dir(tmp_path):
    return write_site(tmp_path)


@pytest.fixture
def recording_sink():
    return RecordingSink()
