"""GeoVision package: layered 3D presentation of a geological survey site."""

from geovision.models import ColorMode, DrillholeSegment, PresentationStep
from geovision.engine import PresentationEngine
from geovision.presentation import SitePresentation
