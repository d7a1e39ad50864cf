"""Discover which optional survey layers exist and order the steps."""

import asyncio
import logging

from .constants import RESOURCE_KEYS
from .models import PresentationStep
from .resources import ResourceStore

logger = logging.getLogger(__name__)

# Optional steps in canonical order, with the resource names whose
# presence they require.  The two drillhole steps share one requirement.
_OPTIONAL_STEPS = (
    (PresentationStep.topography, ('topography',)),
    (PresentationStep.geologyMap, ('geology',)),
    (PresentationStep.magneticMap, ('magnetic',)),
    (PresentationStep.lithologyData, ('lithology', 'assay')),
    (PresentationStep.assayData, ('lithology', 'assay')),
    (PresentationStep.oreBody, ('ore_body',)),
)


class LayerCatalog:
    """Probe each optional resource once and build the step sequence.

    A probe that fails (network error, bad status) counts as absent.
    Probes are not retried.
    """

    def __init__(self, store: ResourceStore, keys: dict = None):
        self.store = store
        self.keys = dict(RESOURCE_KEYS, **(keys or {}))
        self.presence: dict[str, bool] = {}

    async def _probe(self, name: str) -> bool:
        key = self.keys[name]
        try:
            present = await asyncio.to_thread(self.store.exists, key)
        except Exception as e:
            logger.warning(f"Probe for {name} ({key}) failed, treating as absent: {e}")
            return False
        logger.info(f"Probe {name}: {'present' if present else 'absent'}")
        return present

    async def build_steps(self) -> list:
        names = sorted({n for _, required in _OPTIONAL_STEPS for n in required})
        results = await asyncio.gather(*(self._probe(n) for n in names))
        self.presence = dict(zip(names, results))

        steps = [PresentationStep.satellite]
        for step, required in _OPTIONAL_STEPS:
            if all(self.presence[n] for n in required):
                steps.append(step)

        logger.info(f"Presentation steps: {', '.join(s.value for s in steps)}")
        return steps
