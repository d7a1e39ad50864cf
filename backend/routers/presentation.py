import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from geovision.constants import VIEWER_SETTINGS

from backend.models import ColorModeRequest, PresentationState
from backend.session import PresentationManager, get_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/presentation", tags=["presentation"])


@router.get("", response_model=PresentationState)
async def get_state(wait: bool = False,
                    manager: PresentationManager = Depends(get_manager)):
    """Current step, colour mode and visible layers.

    With ``wait=true`` the response is held until every layer load has
    finished, so ``status`` is final.
    """
    if wait:
        await manager.wait_until_loaded()
    engine = await manager.get_engine()
    return PresentationState(**engine.snapshot())


@router.post("/next", response_model=PresentationState)
async def go_next(manager: PresentationManager = Depends(get_manager)):
    """Advance one step; stays put on the last step."""
    engine = await manager.get_engine()
    engine.go_next()
    return PresentationState(**engine.snapshot())


@router.post("/prev", response_model=PresentationState)
async def go_prev(manager: PresentationManager = Depends(get_manager)):
    """Go back one step; stays put on the first step."""
    engine = await manager.get_engine()
    engine.go_prev()
    return PresentationState(**engine.snapshot())


@router.post("/step/{index}", response_model=PresentationState)
async def go_to_step(index: int, manager: PresentationManager = Depends(get_manager)):
    """Jump to a step by its position in the sequence."""
    engine = await manager.get_engine()
    if not 0 <= index < len(engine.steps):
        raise HTTPException(status_code=404, detail="Step not found")
    engine.go_to(index)
    return PresentationState(**engine.snapshot())


@router.post("/color-mode", response_model=PresentationState)
async def set_color_mode(request: ColorModeRequest,
                         manager: PresentationManager = Depends(get_manager)):
    """Switch drillhole colouring between lithology and assay grade."""
    engine = await manager.get_engine()
    engine.set_color_mode(request.mode)
    return PresentationState(**engine.snapshot())


@router.get("/legend")
async def get_legend(manager: PresentationManager = Depends(get_manager)):
    """Legend entries for the drillhole set on display."""
    engine = await manager.get_engine()
    return engine.legend()


@router.get("/viewer")
async def get_viewer_settings():
    """Camera, lighting and fog defaults for the external renderer."""
    return VIEWER_SETTINGS


@router.get("/scene.glb")
async def get_scene(manager: PresentationManager = Depends(get_manager)):
    """The currently visible scene as binary glTF."""
    engine = await manager.get_engine()
    if not engine.visible_names:
        raise HTTPException(status_code=404, detail="Nothing visible at this step")
    data = await manager.export_scene()
    return Response(content=data, media_type="model/gltf-binary")
