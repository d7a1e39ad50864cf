"""Data classes and enumerations shared across the presentation core."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np
import trimesh

logger = logging.getLogger(__name__)


class LayerKind(str, Enum):
    """The six visual layer categories a step can show."""
    satellite = "satellite"
    topography = "topography"
    geologyMap = "geologyMap"
    magneticMap = "magneticMap"
    drillholes = "drillholes"
    oreBody = "oreBody"


class Dataset(str, Enum):
    """Drillhole record collections."""
    lithology = "lithology"
    assay = "assay"


class ColorMode(str, Enum):
    lithology = "lithology"
    assay = "assay"


class PresentationStep(str, Enum):
    """Presentation steps, declared in canonical order."""
    satellite = "satellite"
    topography = "topography"
    geologyMap = "geologyMap"
    magneticMap = "magneticMap"
    lithologyData = "lithologyData"
    assayData = "assayData"
    oreBody = "oreBody"

    @property
    def label(self) -> str:
        return _STEP_LABELS[self]

    @property
    def layer(self) -> LayerKind:
        if self.dataset is not None:
            return LayerKind.drillholes
        return LayerKind(self.value)

    @property
    def dataset(self) -> Optional[Dataset]:
        """Record collection backing a drillhole step, None otherwise."""
        return _STEP_DATASETS.get(self)

    @property
    def is_drillhole(self) -> bool:
        return self.dataset is not None


_STEP_LABELS = {
    PresentationStep.satellite: "Satellite Imagery",
    PresentationStep.topography: "Topography",
    PresentationStep.geologyMap: "Geology Map",
    PresentationStep.magneticMap: "Magnetic Map",
    PresentationStep.lithologyData: "Drillhole Lithology",
    PresentationStep.assayData: "Drillhole Assays",
    PresentationStep.oreBody: "Ore Body Model",
}

_STEP_DATASETS = {
    PresentationStep.lithologyData: Dataset.lithology,
    PresentationStep.assayData: Dataset.assay,
}

CANONICAL_STEPS = tuple(PresentationStep)


@dataclass(frozen=True)
class DrillholeSegment:
    hole_id: str
    x: float
    y: float
    z: float
    depth_from: float
    depth_to: float
    lithology: Optional[str] = None
    grade: Optional[float] = None

    @property
    def length(self) -> float:
        return self.depth_to - self.depth_from

    @property
    def is_renderable(self) -> bool:
        """Zero or negative spans never produce geometry."""
        return self.length > 0


@dataclass
class DrillholeData:
    """Both drillhole record collections, as loaded."""
    lithology: list = field(default_factory=list)
    assay: list = field(default_factory=list)

    def segments(self, dataset: Dataset) -> list:
        return self.lithology if dataset is Dataset.lithology else self.assay

    def reference_points(self) -> np.ndarray:
        """Reference points of every segment in both collections, (n, 3)."""
        points = [(s.x, s.y, s.z) for s in self.lithology + self.assay]
        return np.array(points, dtype=np.float64).reshape(-1, 3)


class Renderable:
    """A named scene node the engine hands to a SceneSink.

    Geometry is released by ``dispose`` exactly once; later calls are
    ignored.  Step-scoped renderables are disposed when detached, layer
    assets only at teardown.
    """

    def __init__(self, name: str, kind: LayerKind, geometry: trimesh.Trimesh,
                 transform: Optional[np.ndarray] = None,
                 step_scoped: bool = False):
        self.name = name
        self.kind = kind
        self.geometry = geometry
        self.transform = transform
        self.step_scoped = step_scoped
        self.disposed = False

    def dispose(self) -> bool:
        """Release geometry.  Returns False if already disposed."""
        if self.disposed:
            return False
        self.geometry = None
        self.disposed = True
        logger.debug(f"Disposed renderable {self.name}")
        return True

    def __repr__(self):
        state = "disposed" if self.disposed else "live"
        return f"Renderable({self.name!r}, {self.kind.value}, {state})"
