import asyncio
import logging
from typing import Optional

from geovision.engine import PresentationEngine
from geovision.presentation import SitePresentation

from backend import config

logger = logging.getLogger(__name__)


class PresentationManager:
    """Holds the single active presentation served by the API.

    The presentation is opened on first use; its layer loads keep
    running in the background while requests navigate.
    """

    def __init__(self, source: str = config.DATA_SOURCE) -> None:
        self.source = source
        self.presentation: Optional[SitePresentation] = None
        self._lock = asyncio.Lock()

    async def get_engine(self) -> PresentationEngine:
        async with self._lock:
            if self.presentation is None:
                logger.info(f"Opening presentation for {self.source}")
                presentation = SitePresentation(self.source)
                await presentation.open()
                self.presentation = presentation
        return self.presentation.engine

    async def wait_until_loaded(self) -> None:
        await self.get_engine()
        await self.presentation.wait_until_loaded()

    async def export_scene(self) -> bytes:
        await self.get_engine()
        # The scene is only touched on the event-loop thread
        return self.presentation.sink.export_bytes()

    async def close(self) -> None:
        async with self._lock:
            if self.presentation is not None:
                self.presentation.close()
                self.presentation = None


# Singleton instance used across the application
presentation_manager = PresentationManager()


def get_manager() -> PresentationManager:
    return presentation_manager
