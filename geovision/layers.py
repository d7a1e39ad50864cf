"""Build renderable geometry for each visual layer.

Every builder returns a Renderable holding a trimesh mesh with a PBR
material, in the Y-up scene frame (X east, image top toward -Z).
Map layers share a square footprint of PLANE_SIZE metres centred on the origin.
"""

import io
import logging
from dataclasses import dataclass

import numpy as np
import trimesh
from PIL import Image
from rasterio.io import MemoryFile
from rasterio.enums import Resampling
from trimesh.visual.material import PBRMaterial

from .constants import (
    CYLINDER_SECTIONS, DISPLACEMENT_SCALE, DRILLHOLE_RADIUS, LAYER_MATERIALS,
    PLANE_SIZE, TERRAIN_SEGMENTS,
)
from .models import LayerKind, Renderable

logger = logging.getLogger(__name__)

# Integer heightmaps are displacement images: full range → DISPLACEMENT_SCALE.
_INTEGER_RANGES = {'uint8': 255.0, 'uint16': 65535.0}


def _material(kind: LayerKind, **extra) -> PBRMaterial:
    style = LAYER_MATERIALS[kind.value]
    params = {
        'roughnessFactor': style.get('roughness', 0.9),
        'metallicFactor': style.get('metallic', 0.0),
        'doubleSided': True,
    }
    if 'color' in style:
        params['baseColorFactor'] = style['color']
    params.update(extra)
    return PBRMaterial(**params)


def decode_image(payload: bytes) -> Image.Image:
    return Image.open(io.BytesIO(payload)).convert("RGB")


def build_image_plane(kind: LayerKind, payload: bytes,
                      size: float = PLANE_SIZE) -> Renderable:
    """Flat textured quad at Y=0 (satellite, geology and magnetic maps)."""
    image = decode_image(payload)
    h = size / 2.0
    vertices = np.array([
        [-h, 0.0, -h],
        [h, 0.0, -h],
        [h, 0.0, h],
        [-h, 0.0, h],
    ], dtype=np.float64)
    # Wound for +Y normals
    faces = np.array([[3, 2, 1], [3, 1, 0]], dtype=np.int64)
    uv = np.array([[0.0, 1.0], [1.0, 1.0], [1.0, 0.0], [0.0, 0.0]])

    mesh = trimesh.Trimesh(vertices=vertices, faces=faces, process=False)
    mesh.visual = trimesh.visual.TextureVisuals(
        uv=uv, material=_material(kind, baseColorTexture=image))
    logger.info(f"Built {kind.value} plane ({image.width}x{image.height}px texture)")
    return Renderable(kind.value, kind, mesh)


def read_elevation(payload: bytes, samples: int) -> np.ndarray:
    """Elevation raster resampled to a (samples, samples) grid.

    Integer heightmaps (PNG displacement maps) are normalised to 0-1 and
    scaled by DISPLACEMENT_SCALE.  Float rasters (GeoTIFF DEMs) are taken
    as metres and shifted so the lowest point sits at Y = 0.
    """
    with MemoryFile(payload) as memfile:
        with memfile.open() as ds:
            dtype = ds.dtypes[0]
            band = ds.read(1, out_shape=(samples, samples),
                           resampling=Resampling.bilinear, masked=True)
    elev = np.ma.filled(band.astype(np.float64), np.nan)

    if np.isnan(elev).all():
        logger.warning("Elevation raster has no valid samples, using flat terrain")
        return np.zeros((samples, samples), dtype=np.float64)

    floor = float(np.nanmin(elev))
    elev = np.where(np.isnan(elev), floor, elev)
    if dtype in _INTEGER_RANGES:
        return elev / _INTEGER_RANGES[dtype] * DISPLACEMENT_SCALE
    return elev - floor


def build_terrain_grid(elev_2d: np.ndarray, size: float = PLANE_SIZE) -> trimesh.Trimesh:
    """Regular grid mesh over the map footprint; raster row 0 is at -Z."""
    ny, nx = elev_2d.shape
    h = size / 2.0
    grid_x = np.linspace(-h, h, nx)
    grid_z = np.linspace(-h, h, ny)

    xx, zz = np.meshgrid(grid_x, grid_z)        # both (ny, nx)
    verts_3d = np.empty((ny * nx, 3), dtype=np.float64)
    verts_3d[:, 0] = xx.ravel()
    verts_3d[:, 1] = elev_2d.ravel()             # elevation (Y-up)
    verts_3d[:, 2] = zz.ravel()

    # ── Face indices: 2 triangles per grid cell ─────────────────
    iy_g, ix_g = np.meshgrid(np.arange(ny - 1), np.arange(nx - 1), indexing='ij')
    iy_f = iy_g.ravel()
    ix_f = ix_g.ravel()

    v00 = iy_f * nx + ix_f
    v10 = iy_f * nx + (ix_f + 1)
    v01 = (iy_f + 1) * nx + ix_f
    v11 = (iy_f + 1) * nx + (ix_f + 1)

    # Wound for +Y normals: v00→v01→v10  and  v10→v01→v11
    faces = np.vstack([
        np.column_stack([v00, v01, v10]),
        np.column_stack([v10, v01, v11]),
    ])
    return trimesh.Trimesh(vertices=verts_3d, faces=faces, process=False)


def build_topography(payload: bytes, segments: int = TERRAIN_SEGMENTS,
                     size: float = PLANE_SIZE) -> Renderable:
    elev = read_elevation(payload, segments + 1)
    mesh = build_terrain_grid(elev, size)
    mesh.visual = trimesh.visual.TextureVisuals(material=_material(LayerKind.topography))
    logger.info(f"Terrain grid mesh: {len(mesh.vertices)} verts, "
                f"{len(mesh.faces)} faces, relief {elev.max() - elev.min():.0f}m")
    return Renderable(LayerKind.topography.value, LayerKind.topography, mesh)


def build_ore_body(payload: bytes) -> Renderable:
    """Ore-body model from a GLB, merged into one mesh.

    The model keeps its survey coordinates; the engine re-centres it
    with a node transform when attaching.
    """
    mesh = trimesh.load(io.BytesIO(payload), file_type='glb', force='mesh')
    if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
        raise ValueError("Ore-body model contains no triangles")
    if mesh.visual.kind is None:
        mesh.visual = trimesh.visual.TextureVisuals(material=_material(LayerKind.oreBody))
    logger.info(f"Ore-body model: {len(mesh.vertices)} verts, {len(mesh.faces)} faces")
    return Renderable(LayerKind.oreBody.value, LayerKind.oreBody, mesh)


ASSET_BUILDERS = {
    LayerKind.satellite: lambda payload: build_image_plane(LayerKind.satellite, payload),
    LayerKind.topography: build_topography,
    LayerKind.geologyMap: lambda payload: build_image_plane(LayerKind.geologyMap, payload),
    LayerKind.magneticMap: lambda payload: build_image_plane(LayerKind.magneticMap, payload),
    LayerKind.oreBody: build_ore_body,
}


def build_asset(kind: LayerKind, payload: bytes) -> Renderable:
    return ASSET_BUILDERS[kind](payload)


@dataclass(frozen=True)
class CylinderSpec:
    """One drillhole segment, ready to be turned into a vertical cylinder."""
    name: str
    hole_id: str
    center: tuple
    height: float
    color: tuple
    radius: float = DRILLHOLE_RADIUS
    sections: int = CYLINDER_SECTIONS


def build_cylinder(spec: CylinderSpec) -> Renderable:
    # trimesh cylinders run along Z; tip them onto the vertical axis
    transform = trimesh.transformations.rotation_matrix(np.pi / 2, [1, 0, 0])
    transform[:3, 3] = spec.center
    mesh = trimesh.creation.cylinder(radius=spec.radius, height=spec.height,
                                     sections=spec.sections, transform=transform)
    material = _material(LayerKind.drillholes, baseColorFactor=list(spec.color))
    mesh.visual = trimesh.visual.TextureVisuals(material=material)
    return Renderable(spec.name, LayerKind.drillholes, mesh, step_scoped=True)
