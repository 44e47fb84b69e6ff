"""
Commands dispatched to the MarkupController

Pointer coordinates are screen pixels; everything else is document space.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from .drawing_tools import ToolType


# --- tool / input -----------------------------------------------------------

@dataclass(frozen=True)
class SelectTool:
    tool_type: ToolType
    equipment_type: Any = None


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float
    button: str = 'left'


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    x: float
    y: float
    button: str = 'left'


@dataclass(frozen=True)
class DoubleClick:
    x: float
    y: float


@dataclass(frozen=True)
class Wheel:
    x: float
    y: float
    delta: float


@dataclass(frozen=True)
class KeyPress:
    """Qt key code and keyboard modifiers"""
    key: Any
    modifiers: Any = 0


@dataclass(frozen=True)
class SetPageSize:
    """Background drawing and canvas dimensions; resets the view to fit"""
    page_width: float
    page_height: float
    canvas_width: float
    canvas_height: float


@dataclass(frozen=True)
class ResetView:
    pass


@dataclass(frozen=True)
class RotatePlacement:
    pass


@dataclass(frozen=True)
class ToggleSnapping:
    enabled: Optional[bool] = None


# --- detail forms -----------------------------------------------------------

@dataclass(frozen=True)
class SubmitDetails:
    """Cable or containment-size form for a pending drawing"""
    form: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CancelDetails:
    pass


@dataclass(frozen=True)
class SubmitRealLength:
    value: Any


@dataclass(frozen=True)
class SubmitRoofPitch:
    form: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfigureArray:
    form: Mapping[str, Any] = field(default_factory=dict)


# --- design edits -----------------------------------------------------------

@dataclass(frozen=True)
class SetPanelConfig:
    length_m: float
    width_m: float
    wattage: float


@dataclass(frozen=True)
class SetDesignPurpose:
    purpose: Any


@dataclass(frozen=True)
class PlaceEquipment:
    """Place at a document point, bypassing the pointer"""
    equipment_type: Any
    x: float
    y: float
    rotation_degrees: Optional[float] = None


@dataclass(frozen=True)
class PlacePVArray:
    x: float
    y: float


@dataclass(frozen=True)
class CompleteGeometry:
    """Run a multi-point tool over document points and finish it"""
    tool_type: ToolType
    points: Sequence[Any]
    details: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class SelectItem:
    item_id: Optional[str]


@dataclass(frozen=True)
class DeleteSelected:
    """confirmed=None asks the controller's confirmation callback"""
    confirmed: Optional[bool] = None


@dataclass(frozen=True)
class UpdateLineDetails:
    line_id: str
    form: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateRoofPitch:
    mask_id: str
    form: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MoveZoneVertex:
    zone_id: str
    index: int
    x: float
    y: float


@dataclass(frozen=True)
class UpsertTask:
    title: str
    task_id: Optional[str] = None
    status: Any = None
    linked_item_id: Optional[str] = None
    assigned_to: Optional[str] = None


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


@dataclass(frozen=True)
class LoadDesign:
    """A DesignState or its persisted dict form"""
    design: Any
