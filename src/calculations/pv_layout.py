"""
PV array layout calculations

Converts panel dimensions into pixel footprints for arrays placed on pitched
roof masks and derives roof slope direction from two picked points.
"""

import math
from typing import List, Optional, Tuple

from .geometry import Point, meters_to_pixels, normalize_degrees, oriented_rect_corners, rotate_point

PORTRAIT = "portrait"


def slope_azimuth(highest, lowest) -> float:
    """Downhill direction from the highest to the lowest point, in [0, 360).

    0 points along +x, 90 along +y (screen down).
    """
    return normalize_degrees(math.degrees(math.atan2(lowest[1] - highest[1], lowest[0] - highest[0])))


def compass_bearing(azimuth: float) -> float:
    """Display bearing with screen-up as 0 degrees, clockwise."""
    return normalize_degrees(azimuth + 90.0)


def panel_cell_size(panel_width_m: float, panel_length_m: float, orientation,
                    pitch_degrees: float, ratio: Optional[float]) -> Tuple[float, float]:
    """Pixel (width, height) of one panel cell in plan view.

    Panel length is foreshortened by cos(pitch) since the roof slopes away
    from the viewer. Landscape swaps the two sides.
    """
    width_px = meters_to_pixels(panel_width_m, ratio)
    length_px = meters_to_pixels(panel_length_m, ratio) * math.cos(math.radians(pitch_degrees or 0.0))
    if getattr(orientation, 'value', orientation) == PORTRAIT:
        return width_px, length_px
    return length_px, width_px


def array_footprint(rows: int, columns: int, orientation, panel_width_m: float,
                    panel_length_m: float, pitch_degrees: float,
                    ratio: Optional[float]) -> Tuple[float, float]:
    """Pixel (width, height) of a rows x columns array before rotation"""
    cell_w, cell_h = panel_cell_size(panel_width_m, panel_length_m, orientation, pitch_degrees, ratio)
    return columns * cell_w, rows * cell_h


def panel_cells(anchor, rows: int, columns: int, cell_w: float, cell_h: float,
                rotation: float) -> List[List[Point]]:
    """Corner lists for every panel in an array centred on anchor"""
    total_w, total_h = columns * cell_w, rows * cell_h
    cells = []
    for r in range(rows):
        for c in range(columns):
            local_x = c * cell_w - total_w / 2.0 + cell_w / 2.0
            local_y = r * cell_h - total_h / 2.0 + cell_h / 2.0
            center = (anchor[0] + local_x, anchor[1] + local_y)
            corners = oriented_rect_corners(center, cell_w, cell_h, 0.0)
            # rotate the whole array about its anchor
            cells.append([rotate_point(p, rotation, anchor) for p in corners])
    return cells


def array_wattage(panel_count: int, wattage: float) -> float:
    """Peak watts for a number of identical panels"""
    return panel_count * (wattage or 0.0)


def array_capacity_kwp(panel_count: int, wattage: float) -> float:
    """Installed capacity in kWp"""
    return array_wattage(panel_count, wattage) / 1000.0
