"""
Scale Manager - Calibrate drawing scale from a reference line
"""

import math
from enum import Enum
from typing import Optional

from PySide6.QtCore import QObject, Signal

from calculations.debug_logger import debug_logger
from calculations.errors import InvalidLengthError
from calculations.geometry import (
    as_point, distance, pixels_to_meters, meters_to_pixels, area_px_to_m2,
)
from models.design_state import ScaleInfo


class CalibrationPhase(Enum):
    AWAITING_REFERENCE_LINE = "awaiting_reference_line"
    LINE_DRAWN = "line_drawn"
    AWAITING_REAL_LENGTH = "awaiting_real_length"
    CALIBRATED = "calibrated"


RECALIBRATION_WARNING = (
    "Recalibrating changes the scale for new measurements only; "
    "lengths and areas already recorded keep their values."
)


def parse_real_length(value) -> float:
    """Accept a positive finite number or numeric string"""
    if isinstance(value, bool):
        raise InvalidLengthError(f"Real length must be a number, got {value!r}")
    try:
        length = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise InvalidLengthError(f"Real length must be a number, got {value!r}")
    if not math.isfinite(length) or length <= 0:
        raise InvalidLengthError(f"Real length must be greater than zero, got {value!r}")
    return length


class ScaleManager(QObject):
    """Turns a reference line plus its real length into a meters-per-pixel ratio.

    AWAITING_REFERENCE_LINE -> LINE_DRAWN -> AWAITING_REAL_LENGTH -> CALIBRATED.
    Drawing a new reference line while calibrated starts a recalibration; the
    previous ratio stays in effect until a new length is accepted, and is
    replaced as a whole when it is.
    """

    scale_changed = Signal(object)  # ScaleInfo
    phase_changed = Signal(object)  # CalibrationPhase
    recalibration_warning = Signal(str)

    def __init__(self, scale_info: Optional[ScaleInfo] = None):
        super().__init__()
        self._scale_info = ScaleInfo()
        self.phase = CalibrationPhase.AWAITING_REFERENCE_LINE
        self.line_start = None
        self.line_end = None
        self.pixel_distance = None
        self.sync(scale_info or ScaleInfo())

    @property
    def scale_info(self) -> ScaleInfo:
        return self._scale_info

    @property
    def ratio(self) -> Optional[float]:
        return self._scale_info.ratio if self._scale_info.is_set else None

    @property
    def is_calibrated(self) -> bool:
        return self._scale_info.is_set

    @property
    def line_in_progress(self) -> bool:
        return self.line_start is not None and self.line_end is None

    def _set_phase(self, phase: CalibrationPhase):
        if phase != self.phase:
            debug_logger.log_transition("ScaleManager", self.phase, phase)
            self.phase = phase
            self.phase_changed.emit(phase)

    def sync(self, scale_info: ScaleInfo):
        """Adopt scale info from the design state (load, undo, redo)"""
        self._scale_info = scale_info
        self.line_start = self.line_end = None
        self.pixel_distance = None
        self._set_phase(
            CalibrationPhase.CALIBRATED if scale_info.is_set
            else CalibrationPhase.AWAITING_REFERENCE_LINE
        )

    def begin_reference_line(self, point):
        """First click of the reference line"""
        self.line_start = as_point(point)
        self.line_end = None
        self.pixel_distance = None
        self._set_phase(CalibrationPhase.AWAITING_REFERENCE_LINE)

    def complete_reference_line(self, point) -> float:
        """Second click; returns the pixel distance of the reference line"""
        if self.line_start is None:
            raise InvalidLengthError("Reference line has no start point")
        end = as_point(point)
        pixel_distance = distance(self.line_start, end)
        if pixel_distance <= 0:
            raise InvalidLengthError("Reference line has zero length")
        self.line_end = end
        self.pixel_distance = pixel_distance
        self._set_phase(CalibrationPhase.LINE_DRAWN)
        if self.is_calibrated:
            debug_logger.warning("ScaleManager", "Recalibration started",
                                 {'ratio': self.ratio, 'pixel_distance': pixel_distance})
            self.recalibration_warning.emit(RECALIBRATION_WARNING)
        return pixel_distance

    def request_real_length(self):
        """Open the real-length prompt for a drawn reference line"""
        if self.phase == CalibrationPhase.LINE_DRAWN:
            self._set_phase(CalibrationPhase.AWAITING_REAL_LENGTH)

    def submit_real_length(self, value) -> ScaleInfo:
        """Accept the real length of the reference line; rejection leaves the phase as is"""
        if self.phase not in (CalibrationPhase.LINE_DRAWN, CalibrationPhase.AWAITING_REAL_LENGTH):
            raise InvalidLengthError("No reference line is waiting for a real length")
        self.request_real_length()
        real_length = parse_real_length(value)
        info = ScaleInfo(
            pixel_distance=self.pixel_distance,
            real_distance_m=real_length,
            ratio=real_length / self.pixel_distance,
        )
        self._scale_info = info
        self.line_start = self.line_end = None
        self._set_phase(CalibrationPhase.CALIBRATED)
        debug_logger.info("ScaleManager", "Scale calibrated", {
            'pixel_distance': info.pixel_distance,
            'real_distance_m': info.real_distance_m,
            'ratio': info.ratio
        })
        self.scale_changed.emit(info)
        return info

    def cancel(self):
        """Abandon an in-progress reference line or length prompt"""
        if self.phase == CalibrationPhase.CALIBRATED and self.line_start is None:
            return
        self.sync(self._scale_info)

    def pixels_to_real(self, pixels):
        """Convert pixels to meters"""
        return pixels_to_meters(pixels, self.ratio)

    def real_to_pixels(self, meters):
        """Convert meters to pixels"""
        return meters_to_pixels(meters, self.ratio)

    def calculate_distance(self, a, b):
        """Real-world distance between two document points"""
        return self.pixels_to_real(distance(a, b))

    def calculate_area(self, area_pixels):
        return area_px_to_m2(area_pixels, self.ratio)

    def format_distance(self, meters):
        """Format distance with appropriate units"""
        if meters >= 1:
            return f"{meters:.2f} m"
        return f"{meters * 100:.1f} cm"

    def format_area(self, area):
        return f"{area:.2f} m²"
