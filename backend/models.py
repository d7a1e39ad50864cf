from pydantic import BaseModel
from typing import List

from geovision.models import ColorMode


class ColorModeRequest(BaseModel):
    mode: ColorMode


class LegendEntry(BaseModel):
    label: str
    color: str


class PresentationState(BaseModel):
    steps: List[str]
    step_index: int
    step: str
    label: str
    color_mode: str
    color_mode_active: bool
    status: str              # "pending", "loaded" or "failed"
    visible_layers: List[str]
    node_count: int
    legend: List[LegendEntry] = []
