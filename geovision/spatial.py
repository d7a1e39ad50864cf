"""Scene-centre computation and survey → scene coordinate mapping.

Survey records are Z-up (easting, northing, elevation).  The scene is
Y-up, so a survey point (x, y, z) lands at (x - cx, z - cz, y - cy)
once re-centred on the scene centre.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def compute_center(points) -> np.ndarray:
    """Arithmetic mean of a sequence of 3-vectors; zero vector when empty."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(pts) == 0:
        return np.zeros(3, dtype=np.float64)
    center = pts.mean(axis=0)
    logger.info(f"Scene centre from {len(pts)} points: "
                f"({center[0]:.1f}, {center[1]:.1f}, {center[2]:.1f})")
    return center


def to_scene_frame(x: float, y: float, z: float, center) -> tuple:
    """Map a survey point into the centred Y-up scene frame."""
    cx, cy, cz = (float(c) for c in center)
    return (x - cx, z - cz, y - cy)


def translation_matrix(center) -> np.ndarray:
    """4x4 node transform that re-centres a Y-up model on *center*.

    The model's axes are (easting, elevation, northing), so the survey
    centre's Z goes on the vertical axis.
    """
    cx, cy, cz = (float(c) for c in center)
    matrix = np.eye(4, dtype=np.float64)
    matrix[:3, 3] = [-cx, -cz, -cy]
    return matrix
