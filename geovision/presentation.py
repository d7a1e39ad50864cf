"""SitePresentation: thin orchestrator that wires catalog, loaders and engine."""

import asyncio
import logging
from typing import Optional

from .catalog import LayerCatalog
from .constants import DATA_SOURCE, RESOURCE_KEYS
from .drillholes import DrillholeIndex
from .engine import PresentationEngine
from .layers import build_asset
from .models import LayerKind, PresentationStep
from .resources import ResourceStore
from .sink import SceneSink, TrimeshSceneSink

logger = logging.getLogger(__name__)

# Layer asset → resource name in RESOURCE_KEYS
_ASSET_RESOURCES = {
    LayerKind.satellite: 'satellite',
    LayerKind.topography: 'topography',
    LayerKind.geologyMap: 'geology',
    LayerKind.magneticMap: 'magnetic',
    LayerKind.oreBody: 'ore_body',
}


class SitePresentation:
    """Start-up sequence for one survey site.

    ``open()`` probes the optional layers, builds the engine on the
    resulting step sequence and starts every load in the background.
    Navigation is available as soon as ``open()`` returns; layers
    appear as their loads complete.
    """

    def __init__(self, source: str = DATA_SOURCE, sink: Optional[SceneSink] = None,
                 keys: dict = None, store: Optional[ResourceStore] = None):
        self.store = store or ResourceStore(source)
        self.sink = sink if sink is not None else TrimeshSceneSink()
        self.keys = dict(RESOURCE_KEYS, **(keys or {}))
        self.catalog = LayerCatalog(self.store, self.keys)
        self.drillhole_index = DrillholeIndex(self.store, self.keys)
        self.engine: Optional[PresentationEngine] = None
        self._tasks: list = []
        self._drillholes_settled = asyncio.Event()

    async def open(self) -> PresentationEngine:
        """Discover steps, create the engine and schedule all loads."""
        steps = await self.catalog.build_steps()
        self.engine = PresentationEngine(self.sink, steps)

        if PresentationStep.lithologyData in steps:
            self._tasks.append(asyncio.create_task(self._load_drillholes()))
        else:
            self._drillholes_settled.set()

        kinds = {step.layer for step in steps if not step.is_drillhole}
        for kind in _ASSET_RESOURCES:
            if kind in kinds:
                self._tasks.append(asyncio.create_task(self._load_asset(kind)))
        return self.engine

    async def wait_until_loaded(self) -> None:
        """Wait for every background load to finish (successfully or not)."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def _load_drillholes(self) -> None:
        try:
            data = await self.drillhole_index.load()
        except Exception as e:
            self.engine.drillholes_failed(e)
        else:
            self.engine.drillholes_loaded(data)
        finally:
            self._drillholes_settled.set()

    async def _load_asset(self, kind: LayerKind) -> None:
        key = self.keys[_ASSET_RESOURCES[kind]]
        try:
            payload = await asyncio.to_thread(self.store.fetch, key)
            asset = await asyncio.to_thread(build_asset, kind, payload)
        except Exception as e:
            self.engine.asset_failed(kind, e)
            return

        # The ore body is centred on the drillhole centre, so it is only
        # published once that centre is final.
        if kind is LayerKind.oreBody:
            await self._drillholes_settled.wait()
        self.engine.asset_loaded(asset)

    def close(self) -> None:
        """Cancel unfinished loads and release everything the engine owns."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.info(f"Cancelled {len(pending)} unfinished layer loads")
        if self.engine is not None:
            self.engine.teardown()
        self.store.close()
