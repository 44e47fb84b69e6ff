"""
PV Tools - Roof mask capture with pitch/direction, and snapped array placement
"""

from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from calculations.debug_logger import debug_logger
from calculations.errors import ScaleNotSetError
from calculations.geometry import (
    OrientedRect, Point, SnapCandidate, SnapKind, as_point, distance_to_polyline,
    nearest_alignment_candidates, oriented_rect_corners, point_in_polygon,
)
from calculations.pv_layout import array_footprint, slope_azimuth
from models.design_state import DesignState, PVArrayItem, PVPanelConfig, RoofMask
from .drawing_tools import ArrayConfigDetails, MultiPointTool, RoofPitchDetails, ToolType

ToleranceFn = Callable[[SnapKind], float]


class RoofPhase(Enum):
    IDLE = "idle"
    DRAW_ROOF_MASK = "draw_roof_mask"
    PROMPT_PITCH = "prompt_pitch"
    SET_DIRECTION = "set_direction"


class RoofMaskWorkflow(QObject):
    """Polygon capture, then pitch form, then highest/lowest point picks.

    Nothing is committed until the second direction click; cancelling at any
    earlier point discards the mask entirely.
    """

    phase_changed = Signal(object)  # RoofPhase
    notice = Signal(str)
    pitch_requested = Signal()
    mask_completed = Signal(object)  # RoofMask

    def __init__(self, close_tolerance: float = 10.0):
        super().__init__()
        self.capture = MultiPointTool(ToolType.ROOF_MASK, close_tolerance)
        self.phase = RoofPhase.IDLE
        self.pending_points: Tuple[Point, ...] = ()
        self.pending_area_m2: Optional[float] = None
        self.pitch_degrees: Optional[float] = None
        self.highest_point: Optional[Point] = None

    @property
    def active(self) -> bool:
        return self.phase != RoofPhase.IDLE

    def _set_phase(self, phase: RoofPhase):
        if phase != self.phase:
            debug_logger.log_transition("RoofMaskWorkflow", self.phase, phase)
            self.phase = phase
            self.phase_changed.emit(phase)

    def start(self):
        self.cancel()
        self._set_phase(RoofPhase.DRAW_ROOF_MASK)

    def click(self, point, ratio: Optional[float] = None, close_tolerance: Optional[float] = None):
        if self.phase == RoofPhase.IDLE:
            self._set_phase(RoofPhase.DRAW_ROOF_MASK)
        if self.phase != RoofPhase.DRAW_ROOF_MASK:
            return
        self._captured(self.capture.click(point, ratio, close_tolerance))

    def finish(self, ratio: Optional[float] = None):
        if self.phase == RoofPhase.DRAW_ROOF_MASK:
            self._captured(self.capture.finish(ratio))

    def double_click(self, point, ratio: Optional[float] = None):
        if self.phase == RoofPhase.DRAW_ROOF_MASK:
            self._captured(self.capture.double_click(point, ratio))

    def _captured(self, geometry):
        if geometry is None:
            return
        self.pending_points = geometry.points
        self.pending_area_m2 = geometry.area_m2
        self._set_phase(RoofPhase.PROMPT_PITCH)
        self.pitch_requested.emit()

    def submit_pitch(self, form: Mapping[str, Any]) -> Optional[float]:
        """Accept the pitch form; raises DetailsValidationError and stays put when invalid"""
        if self.phase != RoofPhase.PROMPT_PITCH:
            return None
        self.pitch_degrees = RoofPitchDetails.from_form(form).pitch_degrees
        self._set_phase(RoofPhase.SET_DIRECTION)
        return self.pitch_degrees

    def is_near_mask(self, point, tolerance: float) -> bool:
        return (point_in_polygon(point, self.pending_points)
                or distance_to_polyline(point, self.pending_points, closed=True) <= tolerance)

    def direction_click(self, point, id_factory: Callable[[], str],
                        tolerance: float = 10.0) -> Optional[RoofMask]:
        """Pick the highest then the lowest point; the second pick completes the mask"""
        if self.phase != RoofPhase.SET_DIRECTION:
            return None
        point = as_point(point)
        if not self.is_near_mask(point, tolerance):
            self.notice.emit("Click inside the roof mask to set its direction.")
            return None
        if self.highest_point is None:
            self.highest_point = point
            return None
        if point == self.highest_point:
            self.notice.emit("The lowest point must differ from the highest point.")
            return None
        mask = RoofMask(
            id=id_factory(),
            points=self.pending_points,
            pitch_degrees=self.pitch_degrees,
            azimuth_degrees=slope_azimuth(self.highest_point, point),
            area_m2=self.pending_area_m2,
        )
        debug_logger.info("RoofMaskWorkflow", "Roof mask completed", {
            'points': mask.points,
            'pitch': mask.pitch_degrees,
            'azimuth': mask.azimuth_degrees
        })
        self._reset()
        self.mask_completed.emit(mask)
        return mask

    def cancel(self):
        """Abandon the mask at whatever step it has reached"""
        if self.phase != RoofPhase.IDLE:
            debug_logger.debug("RoofMaskWorkflow", "Roof mask cancelled", {'phase': self.phase})
        self._reset()

    def _reset(self):
        self.capture.cancel()
        self.pending_points = ()
        self.pending_area_m2 = None
        self.pitch_degrees = None
        self.highest_point = None
        self._set_phase(RoofPhase.IDLE)


def array_rect(array: PVArrayItem, state: DesignState, source_id: Optional[str] = None) -> OrientedRect:
    """Plan-view rectangle of a placed (or candidate) array"""
    config = state.pv_panel_config
    mask = state.find_roof_mask(array.roof_mask_id) or state.roof_mask_at(array.anchor_point)
    pitch = mask.pitch_degrees if mask is not None else 0.0
    width, height = array_footprint(
        array.rows, array.columns, array.orientation,
        config.width_m, config.length_m, pitch, state.ratio,
    )
    return OrientedRect(source_id or array.id, array.anchor_point, width, height, array.rotation_degrees)


class ArrayPlacementTool(QObject):
    """Places configured PV arrays on roof masks with optional alignment snapping"""

    preview_changed = Signal()
    notice = Signal(str)

    def __init__(self):
        super().__init__()
        self.config: Optional[ArrayConfigDetails] = None
        self.preview_anchor: Optional[Point] = None
        self.snap: Optional[SnapCandidate] = None

    @property
    def configured(self) -> bool:
        return self.config is not None

    def configure(self, form: Mapping[str, Any], panel_config: Optional[PVPanelConfig]) -> Optional[ArrayConfigDetails]:
        """Accept the array form; rejected with a notice while no panel is configured"""
        if panel_config is None:
            self._reject("Configure the PV panel (length, width, wattage) first.", "no panel config")
            return None
        self.config = ArrayConfigDetails.from_form(form)
        debug_logger.debug("ArrayPlacement", "Array configured", {
            'rows': self.config.rows,
            'columns': self.config.columns,
            'orientation': self.config.orientation
        })
        return self.config

    def clear(self):
        self.config = None
        self.preview_anchor = None
        self.snap = None
        self.preview_changed.emit()

    def _candidate(self, anchor, rotation, mask_id='') -> PVArrayItem:
        return PVArrayItem(
            id='preview',
            roof_mask_id=mask_id,
            rows=self.config.rows,
            columns=self.config.columns,
            orientation=self.config.orientation,
            anchor_point=anchor,
            rotation_degrees=rotation,
        )

    def resolve_anchor(self, point, state: DesignState, rotation: float,
                       snapping: bool, tolerance_fn: ToleranceFn) -> Tuple[Point, Optional[SnapCandidate]]:
        """Raw point, or the best alignment candidate when snapping finds one"""
        point = as_point(point)
        if not snapping or not state.pv_arrays or self.config is None:
            return point, None
        if state.pv_panel_config is None or state.ratio is None:
            return point, None
        rect = array_rect(self._candidate(point, rotation), state)
        existing = [array_rect(a, state) for a in state.pv_arrays]
        candidates = nearest_alignment_candidates(
            point, rect.width, rect.height, rotation, existing, tolerance_fn
        )
        if not candidates:
            return point, None
        best = candidates[0]
        return best.point, best

    def move(self, point, state: DesignState, rotation: float,
             snapping: bool, tolerance_fn: ToleranceFn):
        """Update the preview position"""
        if self.config is None:
            return
        self.preview_anchor, self.snap = self.resolve_anchor(point, state, rotation, snapping, tolerance_fn)
        self.preview_changed.emit()

    def preview_corners(self, state: DesignState, rotation: float) -> List[Point]:
        if self.config is None or self.preview_anchor is None:
            return []
        rect = array_rect(self._candidate(self.preview_anchor, rotation), state)
        return oriented_rect_corners(rect.center, rect.width, rect.height, rotation)

    def place(self, point, state: DesignState, rotation: float, snapping: bool,
              tolerance_fn: ToleranceFn, id_factory: Callable[[], str]) -> Optional[PVArrayItem]:
        """Build a PVArrayItem anchored inside a roof mask, or reject with a notice"""
        if self.config is None:
            self._reject("Configure the array (rows, columns, orientation) first.", "no array config")
            return None
        if state.pv_panel_config is None:
            self._reject("Configure the PV panel (length, width, wattage) first.", "no panel config")
            return None
        if state.ratio is None:
            raise ScaleNotSetError("Set the drawing scale before placing PV arrays.")
        anchor, snap = self.resolve_anchor(point, state, rotation, snapping, tolerance_fn)
        mask = state.roof_mask_at(anchor)
        if mask is None:
            self._reject("PV arrays must be placed inside a roof mask.", "anchor outside roof masks",
                         {'x': anchor.x, 'y': anchor.y})
            return None
        array = PVArrayItem(
            id=id_factory(),
            roof_mask_id=mask.id,
            rows=self.config.rows,
            columns=self.config.columns,
            orientation=self.config.orientation,
            anchor_point=anchor,
            rotation_degrees=rotation,
        )
        debug_logger.debug("ArrayPlacement", "Array placed", {
            'roof_mask_id': mask.id,
            'snapped': snap.kind if snap else None
        })
        return array

    def _reject(self, message, reason, data=None):
        debug_logger.log_rejection("ArrayPlacement", reason, data)
        self.notice.emit(message)
