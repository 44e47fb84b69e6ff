"""
Drawing Tools - Multi-point capture for lines, zones, containment and roof masks
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from calculations.debug_logger import debug_logger
from calculations.errors import DetailsValidationError, InvalidGeometryError
from calculations.geometry import (
    Point, as_point, distance, polygon_area, polygon_area_m2, polyline_length,
    polyline_length_m,
)
from data.equipment_catalog import ContainmentType, PanelOrientation, VoltageClass, requires_size


class ToolType(Enum):
    """Available markup tools"""
    SELECT = "select"
    PAN = "pan"
    SCALE = "scale"
    LINE_MV = "line_mv"
    LINE_LV = "line_lv"
    LINE_DC = "line_dc"
    ZONE = "zone"
    CABLE_TRAY = "cable_tray"
    TELKOM_BASKET = "telkom_basket"
    SECURITY_BASKET = "security_basket"
    SLEEVES = "sleeves"
    POWERSKIRTING = "powerskirting"
    P2000_TRUNKING = "p2000_trunking"
    P8000_TRUNKING = "p8000_trunking"
    P9000_TRUNKING = "p9000_trunking"
    CONDUIT_20MM = "conduit_20mm"
    CONDUIT_25MM = "conduit_25mm"
    CONDUIT_32MM = "conduit_32mm"
    CONDUIT_40MM = "conduit_40mm"
    CONDUIT_50MM = "conduit_50mm"
    EQUIPMENT = "equipment"
    ROOF_MASK = "roof_mask"
    ROOF_DIRECTION = "roof_direction"
    PV_ARRAY = "pv_array"


LINE_TOOLS = {
    ToolType.LINE_MV: VoltageClass.MV,
    ToolType.LINE_LV: VoltageClass.LV,
    ToolType.LINE_DC: VoltageClass.DC,
}

CONTAINMENT_TOOLS = {tool: ContainmentType[tool.name] for tool in ToolType if tool.name in ContainmentType.__members__}

CLOSED_SHAPE_TOOLS = frozenset({ToolType.ZONE, ToolType.ROOF_MASK})

MULTI_POINT_TOOLS = frozenset(LINE_TOOLS) | frozenset(CONTAINMENT_TOOLS) | CLOSED_SHAPE_TOOLS

PLACEMENT_TOOLS = frozenset({ToolType.EQUIPMENT, ToolType.PV_ARRAY})


def tool_requires_scale(tool_type: ToolType) -> bool:
    """Tools whose output carries real-world measurements"""
    if tool_type in PLACEMENT_TOOLS:
        return True
    return tool_type in MULTI_POINT_TOOLS and tool_type != ToolType.ROOF_MASK


class ToolPhase(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    PENDING_DETAILS = "pending_details"
    COMMITTED = "committed"


# --- Detail form payloads ---------------------------------------------------

def _required(form: Mapping[str, Any], key: str):
    value = form.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise DetailsValidationError(key, "is required")
    return value


def _as_number(key: str, value, cast=float):
    if isinstance(value, bool):
        raise DetailsValidationError(key, "must be a number")
    try:
        number = cast(value)
    except (TypeError, ValueError):
        raise DetailsValidationError(key, "must be a number")
    if cast is int and isinstance(value, float) and not value.is_integer():
        raise DetailsValidationError(key, "must be a whole number")
    return number


def _optional_number(form, key, default=0.0, cast=float):
    value = form.get(key)
    if value is None or value == '':
        return default
    return _as_number(key, value, cast)


@dataclass(frozen=True)
class CableDetails:
    """Cable run metadata captured after an LV line is drawn"""
    cable_type: str
    termination_count: int = 0
    start_height_m: float = 0.0
    end_height_m: float = 0.0
    label: str = ''
    from_label: str = ''
    to_label: str = ''

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> 'CableDetails':
        return cls(
            cable_type=str(_required(form, 'cable_type')).strip(),
            termination_count=_optional_number(form, 'termination_count', 0, int),
            start_height_m=_optional_number(form, 'start_height_m'),
            end_height_m=_optional_number(form, 'end_height_m'),
            label=str(form.get('label') or ''),
            from_label=str(form.get('from_label') or ''),
            to_label=str(form.get('to_label') or ''),
        )


@dataclass(frozen=True)
class ContainmentDetails:
    size: str

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> 'ContainmentDetails':
        return cls(size=str(_required(form, 'size')).strip())


@dataclass(frozen=True)
class RoofPitchDetails:
    pitch_degrees: float

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> 'RoofPitchDetails':
        pitch = _as_number('pitch_degrees', _required(form, 'pitch_degrees'))
        if not 0 <= pitch <= 90:
            raise DetailsValidationError('pitch_degrees', "must be between 0 and 90")
        return cls(pitch_degrees=pitch)


@dataclass(frozen=True)
class ArrayConfigDetails:
    rows: int
    columns: int
    orientation: PanelOrientation

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> 'ArrayConfigDetails':
        rows = _as_number('rows', _required(form, 'rows'), int)
        columns = _as_number('columns', _required(form, 'columns'), int)
        if rows < 1:
            raise DetailsValidationError('rows', "must be at least 1")
        if columns < 1:
            raise DetailsValidationError('columns', "must be at least 1")
        try:
            orientation = PanelOrientation(_required(form, 'orientation'))
        except ValueError:
            raise DetailsValidationError('orientation', "must be 'portrait' or 'landscape'")
        return cls(rows=rows, columns=columns, orientation=orientation)


def details_class_for(tool_type: ToolType):
    """Form payload type a tool needs before committing, or None"""
    if tool_type == ToolType.LINE_LV:
        return CableDetails
    if tool_type in CONTAINMENT_TOOLS and requires_size(CONTAINMENT_TOOLS[tool_type]):
        return ContainmentDetails
    return None


@dataclass(frozen=True)
class CapturedGeometry:
    """Completed capture handed to whoever builds the entity"""
    tool_type: ToolType
    points: Tuple[Point, ...]
    path_length_px: float
    path_length_m: Optional[float] = None
    area_px: float = 0.0
    area_m2: Optional[float] = None
    details: Any = None


class MultiPointTool(QObject):
    """Click-to-append capture shared by every polyline and polygon tool.

    IDLE -> CAPTURING -> COMMITTED, or CAPTURING -> PENDING_DETAILS -> COMMITTED
    for tools that need a detail form. Escape returns to IDLE from anywhere
    without emitting anything.
    """

    finished = Signal(object)  # CapturedGeometry
    updated = Signal()
    details_requested = Signal(object)  # CapturedGeometry awaiting details

    def __init__(self, tool_type: ToolType, close_tolerance: float = 10.0):
        super().__init__()
        if tool_type not in MULTI_POINT_TOOLS:
            raise ValueError(f"{tool_type} is not a multi-point tool")
        self.tool_type = tool_type
        self.close_tolerance = close_tolerance
        self.phase = ToolPhase.IDLE
        self.points = []
        self.pending: Optional[CapturedGeometry] = None

    @property
    def is_closed_shape(self) -> bool:
        return self.tool_type in CLOSED_SHAPE_TOOLS

    @property
    def min_points(self) -> int:
        return 3 if self.is_closed_shape else 2

    @property
    def active(self) -> bool:
        return self.phase in (ToolPhase.CAPTURING, ToolPhase.PENDING_DETAILS)

    def _set_phase(self, phase: ToolPhase):
        if phase != self.phase:
            debug_logger.log_transition(f"DrawingTool[{self.tool_type.value}]", self.phase, phase)
            self.phase = phase

    def click(self, point, ratio: Optional[float] = None, close_tolerance: Optional[float] = None):
        """Append a vertex, or close the shape near its first vertex.

        Returns CapturedGeometry when the click completed the capture.
        """
        if self.phase == ToolPhase.PENDING_DETAILS:
            return None
        point = as_point(point)
        if self.phase in (ToolPhase.IDLE, ToolPhase.COMMITTED):
            self.points = []
        tolerance = self.close_tolerance if close_tolerance is None else close_tolerance
        if (self.is_closed_shape and len(self.points) > 2
                and distance(point, self.points[0]) <= tolerance):
            return self._complete(ratio)
        if self.points and self.points[-1] == point:
            return None
        self.points.append(point)
        self._set_phase(ToolPhase.CAPTURING)
        self.updated.emit()
        return None

    def double_click(self, point, ratio: Optional[float] = None):
        """Finish, adding the double-clicked point if it is new"""
        if self.phase != ToolPhase.CAPTURING:
            return None
        point = as_point(point)
        if self.points and self.points[-1] != point:
            if not (self.is_closed_shape and distance(point, self.points[0]) <= self.close_tolerance):
                self.points.append(point)
        return self.finish(ratio)

    def finish(self, ratio: Optional[float] = None):
        """Explicit finish (Enter); ignored until enough points exist"""
        if self.phase != ToolPhase.CAPTURING or len(self.points) < self.min_points:
            return None
        return self._complete(ratio)

    def _measure(self, ratio) -> CapturedGeometry:
        points = tuple(self.points)
        if len(points) < self.min_points:
            raise InvalidGeometryError(f"{self.tool_type.value} needs at least {self.min_points} points")
        if self.is_closed_shape:
            area_px = polygon_area(points)
            return CapturedGeometry(
                self.tool_type, points, polyline_length(points + points[:1]),
                area_px=area_px,
                area_m2=polygon_area_m2(points, ratio) if ratio else None,
            )
        return CapturedGeometry(
            self.tool_type, points, polyline_length(points),
            path_length_m=polyline_length_m(points, ratio) if ratio else None,
        )

    def _complete(self, ratio):
        geometry = self._measure(ratio)
        if details_class_for(self.tool_type) is not None:
            self.pending = geometry
            self._set_phase(ToolPhase.PENDING_DETAILS)
            self.details_requested.emit(geometry)
            return None
        return self._commit(geometry)

    def _commit(self, geometry: CapturedGeometry) -> CapturedGeometry:
        self.points = []
        self.pending = None
        self._set_phase(ToolPhase.COMMITTED)
        self.finished.emit(geometry)
        return geometry

    def submit_details(self, form: Mapping[str, Any]) -> CapturedGeometry:
        """Complete a pending capture; invalid forms raise and keep it pending"""
        if self.phase != ToolPhase.PENDING_DETAILS or self.pending is None:
            raise DetailsValidationError('form', "no drawing is waiting for details")
        details = details_class_for(self.tool_type).from_form(form)
        pending = self.pending
        return self._commit(CapturedGeometry(
            pending.tool_type, pending.points, pending.path_length_px,
            pending.path_length_m, pending.area_px, pending.area_m2, details,
        ))

    def cancel_details(self):
        if self.phase == ToolPhase.PENDING_DETAILS:
            self.cancel()

    def escape(self):
        """Abort from any phase without emitting anything"""
        self.cancel()

    def cancel(self):
        """Discard in-progress points and any pending geometry"""
        self.points = []
        self.pending = None
        self._set_phase(ToolPhase.IDLE)


class DrawingToolManager(QObject):
    """Manages the active tool and the multi-point tool instances"""

    tool_changed = Signal(object)  # ToolType
    element_created = Signal(object)  # CapturedGeometry

    def __init__(self, close_tolerance: float = 10.0):
        super().__init__()
        self.close_tolerance = close_tolerance
        self.current_tool_type = ToolType.SELECT
        self._tools = {}

    def tool(self, tool_type: ToolType) -> MultiPointTool:
        if tool_type not in self._tools:
            tool = MultiPointTool(tool_type, self.close_tolerance)
            tool.finished.connect(self.element_created)
            self._tools[tool_type] = tool
        return self._tools[tool_type]

    @property
    def current_tool(self) -> Optional[MultiPointTool]:
        if self.current_tool_type in MULTI_POINT_TOOLS:
            return self.tool(self.current_tool_type)
        return None

    def set_tool(self, tool_type: ToolType):
        """Switch tools, abandoning any capture in progress"""
        current = self.current_tool
        if current is not None:
            current.cancel()
        self.current_tool_type = tool_type
        self.tool_changed.emit(tool_type)

    def cancel_current_tool(self):
        current = self.current_tool
        if current is not None:
            current.cancel()

    def register(self, tool: MultiPointTool):
        """Use an externally owned capture tool for its tool type"""
        tool.finished.connect(self.element_created)
        self._tools[tool.tool_type] = tool
