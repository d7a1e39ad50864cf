"""Segment colouring per colour mode, and legend derivation."""

import colorsys
import math

from .models import ColorMode

# Solid lithology colours (RGBA, 0-1)
LITHOLOGY_PALETTE = {
    'BASALT':       (0.73, 0.98, 0.06, 1.0),   # yellow-green
    'ANDESITE':     (0.55, 0.47, 0.40, 1.0),   # brown-grey
    'GRANITE':      (0.93, 0.68, 0.70, 1.0),   # pink
    'DIORITE':      (0.60, 0.64, 0.55, 1.0),   # grey-green
    'GABBRO':       (0.25, 0.33, 0.28, 1.0),   # dark green
    'PORPHYRY':     (0.80, 0.36, 0.36, 1.0),   # brick red
    'BRECCIA':      (0.96, 0.87, 0.70, 1.0),   # wheat
    'SANDSTONE':    (0.93, 0.79, 0.45, 1.0),   # sand
    'SHALE':        (0.40, 0.40, 0.45, 1.0),   # slate
    'LIMESTONE':    (0.78, 0.85, 0.90, 1.0),   # pale blue
    'SCHIST':       (0.45, 0.55, 0.70, 1.0),   # steel blue
    'QUARTZ VEIN':  (0.98, 0.98, 0.96, 1.0),   # off-white
    'CHERT':        (0.63, 0.32, 0.18, 1.0),   # sienna
}

UNKNOWN_LITHOLOGY_COLOR = (0.467, 0.631, 0.671, 1.0)   # #77A1AB
MISSING_GRADE_COLOR = (0.55, 0.55, 0.55, 1.0)          # neutral grey

# Assay ramp: hue 0.7 (blue) at grade 0 → hue 0.0 (red) at grade 1
ASSAY_LOW_HUE = 0.7
ASSAY_HIGH_HUE = 0.0
ASSAY_SATURATION = 0.8
ASSAY_LIGHTNESS = 0.5
ASSAY_LEGEND_STOPS = (0.0, 0.25, 0.5, 0.75, 1.0)


def _lithology_key(lithology):
    if lithology is None:
        return None
    return str(lithology).strip().upper()


def lithology_color(lithology) -> tuple:
    return LITHOLOGY_PALETTE.get(_lithology_key(lithology), UNKNOWN_LITHOLOGY_COLOR)


def grade_color(grade) -> tuple:
    if grade is None or math.isnan(grade):
        return MISSING_GRADE_COLOR
    t = min(max(float(grade), 0.0), 1.0)
    hue = ASSAY_LOW_HUE + (ASSAY_HIGH_HUE - ASSAY_LOW_HUE) * t
    r, g, b = colorsys.hls_to_rgb(hue, ASSAY_LIGHTNESS, ASSAY_SATURATION)
    return (round(r, 4), round(g, 4), round(b, 4), 1.0)


def color_for(segment, mode: ColorMode) -> tuple:
    """Display colour of *segment* under *mode*.  Never fails."""
    if ColorMode(mode) is ColorMode.assay:
        return grade_color(segment.grade)
    return lithology_color(segment.lithology)


def to_hex(color) -> str:
    r, g, b = (int(round(c * 255)) for c in color[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def legend_for(mode: ColorMode, segments) -> list:
    """Legend entries ``{'label', 'color'}`` for the segments on display.

    Lithology mode lists the rock types present, in palette order, plus
    "Unknown" when anything fell outside the palette.  Assay mode lists
    fixed gradient stops, plus "No grade" when any grade is missing.
    """
    segments = list(segments)
    if ColorMode(mode) is ColorMode.assay:
        entries = [{'label': f"{stop:.2f}", 'color': to_hex(grade_color(stop))}
                   for stop in ASSAY_LEGEND_STOPS]
        if any(s.grade is None or math.isnan(s.grade) for s in segments):
            entries.append({'label': "No grade", 'color': to_hex(MISSING_GRADE_COLOR)})
        return entries

    present = {_lithology_key(s.lithology) for s in segments}
    entries = [{'label': name.title(), 'color': to_hex(color)}
               for name, color in LITHOLOGY_PALETTE.items() if name in present]
    if any(key not in LITHOLOGY_PALETTE for key in present):
        entries.append({'label': "Unknown", 'color': to_hex(UNKNOWN_LITHOLOGY_COLOR)})
    return entries
