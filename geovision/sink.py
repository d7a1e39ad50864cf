"""Scene sinks: the only write surface between the engine and a renderer."""

import logging
import pathlib
from typing import Protocol

import trimesh

from .models import Renderable

logger = logging.getLogger(__name__)


class SceneSink(Protocol):
    """Accepts and removes renderables.  Owns nothing."""

    def attach(self, renderable: Renderable) -> None: ...

    def detach(self, renderable: Renderable) -> None: ...


class TrimeshSceneSink:
    """SceneSink backed by a ``trimesh.Scene``, one node per renderable.

    The scene can be exported as GLB at any time to capture what is
    currently visible.
    """

    def __init__(self):
        self.scene = trimesh.Scene()

    @property
    def node_names(self) -> list:
        return sorted(self.scene.geometry.keys())

    def __contains__(self, name: str) -> bool:
        return name in self.scene.geometry

    def __len__(self) -> int:
        return len(self.scene.geometry)

    def attach(self, renderable: Renderable) -> None:
        if renderable.disposed:
            raise ValueError(f"Cannot attach disposed renderable {renderable.name}")
        if renderable.name in self.scene.geometry:
            raise ValueError(f"Node {renderable.name} is already attached")
        self.scene.add_geometry(renderable.geometry,
                                node_name=renderable.name,
                                geom_name=renderable.name,
                                transform=renderable.transform)

    def detach(self, renderable: Renderable) -> None:
        if renderable.name not in self.scene.geometry:
            logger.warning(f"Detach of unknown node {renderable.name} ignored")
            return
        self.scene.delete_geometry(renderable.name)

    def export(self, output_path) -> str:
        """Write the visible scene to a GLB file.  Returns the path."""
        output_path = pathlib.Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if len(self.scene.geometry) == 0:
            logger.warning(f"Exporting empty scene to {output_path}")
        self.scene.export(str(output_path), file_type='glb')
        logger.info(f"GLB file generated: {output_path} "
                    f"({len(self.scene.geometry)} nodes)")
        return str(output_path)

    def export_bytes(self) -> bytes:
        return self.scene.export(file_type='glb')
