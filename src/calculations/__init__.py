"""
Markup calculations: geometry, scale conversion and PV layout
"""

from .errors import (
    MarkupError, ScaleNotSetError, InvalidLengthError, InvalidGeometryError, DetailsValidationError
)
from .geometry import (
    Point, distance, polyline_length, polygon_area, point_in_polygon,
    pixels_to_meters, meters_to_pixels, compute_polygon_metrics, nearest_alignment_candidates
)
from .pv_layout import slope_azimuth, compass_bearing, array_footprint, array_wattage, array_capacity_kwp
from .result_types import CalculationResult, ResultStatus

__all__ = [
    'MarkupError',
    'ScaleNotSetError',
    'InvalidLengthError',
    'InvalidGeometryError',
    'DetailsValidationError',
    'Point',
    'distance',
    'polyline_length',
    'polygon_area',
    'point_in_polygon',
    'pixels_to_meters',
    'meters_to_pixels',
    'compute_polygon_metrics',
    'nearest_alignment_candidates',
    'slope_azimuth',
    'compass_bearing',
    'array_footprint',
    'array_wattage',
    'array_capacity_kwp',
    'CalculationResult',
    'ResultStatus'
]
