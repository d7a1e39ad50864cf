"""Configuration constants, resource keys, and scene defaults."""

import os
import pathlib
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure base paths
BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
DATA_DIR = BASE_DIR / "data"
OUTPUT_DIR = pathlib.Path(os.environ.get("GEOVISION_OUTPUT_DIR", BASE_DIR / "output"))

# Base location of the survey resources: an http(s) URL or a local directory.
DATA_SOURCE = os.environ.get("GEOVISION_DATA_SOURCE", str(DATA_DIR))

# ── Resource keys ────────────────────────────────────────────────────────
# Fixed paths relative to DATA_SOURCE.  Each can be overridden with
# GEOVISION_KEY_<NAME>, e.g. GEOVISION_KEY_TOPOGRAPHY=dem/site.tif
_DEFAULT_KEYS = {
    'satellite':  'satellite.png',
    'topography': 'topography.tif',
    'geology':    'geology_map.png',
    'magnetic':   'magnetic_map.png',
    'lithology':  'drillholes/lithology.json',
    'assay':      'drillholes/assay.json',
    'ore_body':   'ore_body.glb',
}

RESOURCE_KEYS = {
    name: os.environ.get(f"GEOVISION_KEY_{name.upper()}", default)
    for name, default in _DEFAULT_KEYS.items()
}

# HTTP timeouts in seconds
PROBE_TIMEOUT = float(os.environ.get("GEOVISION_PROBE_TIMEOUT", "5"))
FETCH_TIMEOUT = float(os.environ.get("GEOVISION_FETCH_TIMEOUT", "30"))
HTTP_USER_AGENT = "GeoVision/1.0"

# ── Scene geometry ───────────────────────────────────────────────────────
PLANE_SIZE = 1000.0            # metres, square footprint of every map layer
TERRAIN_SEGMENTS = 250         # grid cells per side of the topography mesh
DISPLACEMENT_SCALE = 400.0     # metres of relief for a full-range heightmap
DRILLHOLE_RADIUS = 5.0
CYLINDER_SECTIONS = 16

# ── Viewer defaults (handed to the external renderer untouched) ─────────
VIEWER_SETTINGS = {
    'background': '#f0f4f5',
    'fog': {'color': '#f0f4f5', 'near': 1000.0, 'far': 2000.0},
    'camera': {'fov': 75.0, 'near': 0.1, 'far': 2000.0,
               'position': [0.0, 400.0, 500.0]},
    'ambient_light': {'color': '#ffffff', 'intensity': 0.7},
    'directional_light': {'color': '#ffffff', 'intensity': 1.2,
                          'position': [-200.0, 300.0, 200.0]},
    'controls': {'damping': 0.05, 'max_polar_angle': 1.4959965017094252},
}

# ── Materials (RGBA, 0-1) ────────────────────────────────────────────────
LAYER_MATERIALS = {
    'satellite':  {'roughness': 0.9, 'metallic': 0.1},
    'topography': {'color': [0.62, 0.60, 0.52, 1.0], 'roughness': 0.9, 'metallic': 0.1},
    'geologyMap': {'roughness': 0.9, 'metallic': 0.0},
    'magneticMap': {'roughness': 0.9, 'metallic': 0.0},
    'oreBody':    {'color': [0.85, 0.55, 0.20, 0.85], 'roughness': 0.4, 'metallic': 0.3},
    'drillholes': {'roughness': 0.5, 'metallic': 0.0},
}

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)
