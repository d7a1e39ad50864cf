"""Presentation state machine: current step + colour mode → visible layers.

Every change (navigation, colour mode, data arriving or failing) goes
through the same path: ``plan_transition`` compares the nodes currently
visible with the nodes the new state requires and returns a LayerDiff;
the engine then applies that diff to its SceneSink.

Layer assets (map planes, terrain, ore body) are built once, attached
and detached as the user steps around, and disposed at teardown.
Drillhole cylinders are step-scoped: built on attach, disposed on
detach.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .colors import color_for, legend_for
from .drillholes import group_by_hole
from .layers import CylinderSpec, build_cylinder
from .models import (
    ColorMode, Dataset, DrillholeData, LayerKind, PresentationStep, Renderable,
)
from .sink import SceneSink
from .spatial import compute_center, to_scene_frame, translation_matrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerDiff:
    """Node names to remove, then layer requests to add."""
    detach: tuple = ()
    attach: tuple = ()

    @property
    def empty(self) -> bool:
        return not self.detach and not self.attach


@dataclass
class LoadedData:
    """Everything that has finished loading so far."""
    assets: dict = field(default_factory=dict)       # LayerKind → Renderable
    groups: dict = field(default_factory=dict)       # Dataset → hole groups
    center: np.ndarray = field(default_factory=lambda: np.zeros(3))


def cylinder_name(dataset: Dataset, mode: ColorMode, hole_id: str, index: int) -> str:
    return f"drillhole/{dataset.value}/{mode.value}/{hole_id}/{index}"


def plan_cylinders(groups: dict, dataset: Dataset, mode: ColorMode,
                   center) -> list:
    """One CylinderSpec per renderable segment of *dataset*, coloured by *mode*.

    Cylinders hang below the segment's reference point: the centre sits
    at ``depth_from + length / 2`` under it on the vertical axis.
    """
    specs = []
    for hole_id, segments in groups.items():
        for index, segment in enumerate(segments):
            sx, sy, sz = to_scene_frame(segment.x, segment.y, segment.z, center)
            length = segment.length
            specs.append(CylinderSpec(
                name=cylinder_name(dataset, mode, hole_id, index),
                hole_id=hole_id,
                center=(sx, sy - segment.depth_from - length / 2.0, sz),
                height=length,
                color=color_for(segment, mode),
            ))
    return specs


def required_layers(step: PresentationStep, mode: ColorMode,
                    data: LoadedData) -> list:
    """Layer requests (Renderable assets or CylinderSpecs) for *step*.

    Empty when the step's data has not arrived or failed to load.
    """
    if step.is_drillhole:
        groups = data.groups.get(step.dataset)
        if not groups:
            return []
        return plan_cylinders(groups, step.dataset, mode, data.center)

    asset = data.assets.get(step.layer)
    return [asset] if asset is not None else []


def plan_transition(visible_names, step: PresentationStep, mode: ColorMode,
                    data: LoadedData) -> LayerDiff:
    """Pure diff between what is visible and what the new state needs."""
    visible_names = set(visible_names)
    required = required_layers(step, mode, data)
    required_names = {request.name for request in required}

    detach = tuple(sorted(visible_names - required_names))
    attach = tuple(request for request in required
                   if request.name not in visible_names)
    return LayerDiff(detach=detach, attach=attach)


class PresentationEngine:
    """Owns every renderable and the (step, colour mode) state.

    Navigation saturates at both ends of the step sequence.  Nothing in
    here raises on missing or failed data; the affected step renders
    empty.
    """

    def __init__(self, sink: SceneSink, steps=None):
        self.sink = sink
        self.steps = list(steps) if steps else [PresentationStep.satellite]
        self.step_index = 0
        self.color_mode = ColorMode.lithology
        self.data = LoadedData()
        self.drillholes: Optional[DrillholeData] = None
        self.failures: dict = {}                      # LayerKind → reason
        self.closed = False
        self._visible: dict[str, Renderable] = {}
        self.render()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def step(self) -> PresentationStep:
        return self.steps[self.step_index]

    @property
    def visible_names(self) -> list:
        return sorted(self._visible)

    @property
    def visible_kinds(self) -> set:
        return {r.kind for r in self._visible.values()}

    @property
    def center(self) -> np.ndarray:
        return self.data.center

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def go_next(self) -> LayerDiff:
        return self.go_to(self.step_index + 1)

    def go_prev(self) -> LayerDiff:
        return self.go_to(self.step_index - 1)

    def go_to(self, index: int) -> LayerDiff:
        self.step_index = max(0, min(int(index), len(self.steps) - 1))
        return self.render()

    def set_color_mode(self, mode) -> LayerDiff:
        self.color_mode = ColorMode(mode)
        return self.render()

    def render(self) -> LayerDiff:
        """Bring the sink in line with the current state."""
        if self.closed:
            logger.warning("Presentation is torn down; ignoring render")
            return LayerDiff()

        step = self.step
        diff = plan_transition(self._visible, step, self.color_mode, self.data)
        self._apply(diff)

        if not self._visible:
            reason = self.failures.get(step.layer)
            if reason is not None:
                logger.info(f"Step {step.value} is empty: {reason}")
            else:
                logger.debug(f"Step {step.value} has no data yet")
        return diff

    def _apply(self, diff: LayerDiff) -> None:
        for name in diff.detach:
            renderable = self._visible[name]
            try:
                self.sink.detach(renderable)
            except Exception as e:
                # Still in the sink, so keep tracking it
                logger.error(f"Failed to detach {name}: {e}")
                continue
            del self._visible[name]
            if renderable.step_scoped:
                self._dispose(renderable)

        for request in diff.attach:
            renderable = None
            try:
                if isinstance(request, CylinderSpec):
                    renderable = build_cylinder(request)
                else:
                    renderable = request
                if renderable.kind is LayerKind.oreBody:
                    renderable.transform = translation_matrix(self.data.center)
                self.sink.attach(renderable)
            except Exception as e:
                logger.error(f"Failed to attach {request.name}: {e}")
                if renderable is not None and renderable.step_scoped:
                    self._dispose(renderable)
                continue
            self._visible[renderable.name] = renderable

        if not diff.empty:
            logger.debug(f"Step {self.step.value} ({self.color_mode.value}): "
                         f"-{len(diff.detach)} +{len(diff.attach)} nodes")

    def _dispose(self, renderable: Renderable) -> bool:
        try:
            return renderable.dispose()
        except Exception as e:
            logger.error(f"Failed to dispose {renderable.name}: {e}")
            return False

    # ------------------------------------------------------------------
    # Data arrival
    # ------------------------------------------------------------------

    def asset_loaded(self, asset: Renderable) -> LayerDiff:
        if self.closed:
            self._dispose(asset)
            return LayerDiff()
        if asset.kind in self.data.assets:
            logger.warning(f"{asset.kind.value} asset already loaded; discarding duplicate")
            self._dispose(asset)
            return LayerDiff()
        self.data.assets[asset.kind] = asset
        self.failures.pop(asset.kind, None)
        logger.info(f"Layer ready: {asset.kind.value}")
        return self.render()

    def asset_failed(self, kind: LayerKind, reason) -> LayerDiff:
        self.failures[LayerKind(kind)] = str(reason)
        logger.warning(f"Layer {LayerKind(kind).value} failed to load: {reason}")
        return self.render()

    def drillholes_loaded(self, data: DrillholeData) -> LayerDiff:
        if self.closed:
            return LayerDiff()
        if self.drillholes is not None:
            logger.warning("Drillhole data already loaded; ignoring reload")
            return LayerDiff()
        self.drillholes = data
        self.data.groups = {
            Dataset.lithology: group_by_hole(data.lithology),
            Dataset.assay: group_by_hole(data.assay),
        }
        self.data.center = compute_center(data.reference_points())
        self.failures.pop(LayerKind.drillholes, None)
        return self.render()

    def drillholes_failed(self, reason) -> LayerDiff:
        self.failures[LayerKind.drillholes] = str(reason)
        logger.warning(f"Drillhole data failed to load: {reason}")
        return self.render()

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    def legend(self) -> list:
        """Legend for the drillhole set on display; empty on other steps."""
        step = self.step
        if not step.is_drillhole:
            return []
        groups = self.data.groups.get(step.dataset, {})
        segments = [s for hole in groups.values() for s in hole]
        if not segments:
            return []
        return legend_for(self.color_mode, segments)

    def layer_status(self, kind: LayerKind) -> str:
        if kind in self.failures:
            return "failed"
        if kind is LayerKind.drillholes:
            return "loaded" if self.drillholes is not None else "pending"
        return "loaded" if kind in self.data.assets else "pending"

    def snapshot(self) -> dict:
        step = self.step
        return {
            'steps': [s.value for s in self.steps],
            'step_index': self.step_index,
            'step': step.value,
            'label': step.label,
            'color_mode': self.color_mode.value,
            'color_mode_active': step.is_drillhole,
            'status': self.layer_status(step.layer),
            'visible_layers': sorted(k.value for k in self.visible_kinds),
            'node_count': len(self._visible),
            'legend': self.legend(),
        }

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def teardown(self) -> int:
        """Detach everything and dispose every owned renderable once.

        Returns the number of renderables disposed by this call.
        """
        if self.closed:
            return 0
        disposed = 0
        for name in list(self._visible):
            renderable = self._visible.pop(name)
            try:
                self.sink.detach(renderable)
            except Exception as e:
                logger.error(f"Failed to detach {name}: {e}")
            if self._dispose(renderable):
                disposed += 1
        for asset in self.data.assets.values():
            if self._dispose(asset):
                disposed += 1
        self.data.assets.clear()
        self.closed = True
        logger.info(f"Presentation torn down ({disposed} renderables released)")
        return disposed
