"""
Equipment Placement - Cursor-following preview and true-to-scale placement
"""

from typing import Callable, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from calculations.debug_logger import debug_logger
from calculations.errors import DetailsValidationError
from calculations.geometry import (
    Point, as_point, is_valid_rotation, is_valid_rotation_step, meters_to_pixels, normalize_degrees,
    oriented_rect_corners,
)
from data.equipment_catalog import EquipmentType, real_size_for
from models.design_state import EquipmentItem, ScaleInfo

NO_SCALE_NOTICE = "Set the drawing scale before placing equipment."


class EquipmentPlacementTool(QObject):
    """Tool for placing equipment symbols at real-world size"""

    preview_changed = Signal()
    notice = Signal(str)

    def __init__(self, equipment_type=EquipmentType.DISTRIBUTION_BOARD, rotation_step: float = 45.0):
        super().__init__()
        if not is_valid_rotation_step(rotation_step):
            raise ValueError(f"Rotation step must be a multiple of 45 dividing 360, got {rotation_step}")
        self.equipment_type = EquipmentType(equipment_type)
        self.rotation_step = rotation_step
        self.rotation_degrees = 0.0
        self.anchor_point: Optional[Point] = None

    def set_equipment_type(self, equipment_type):
        """Set the type of equipment to place"""
        self.equipment_type = EquipmentType(equipment_type)
        self.preview_changed.emit()

    def move(self, point):
        """Preview follows the pointer"""
        self.anchor_point = as_point(point)
        self.preview_changed.emit()

    def rotate(self, step: Optional[float] = None) -> float:
        """Advance rotation by one step, wrapping at 360"""
        step = self.rotation_step if step is None else step
        if not is_valid_rotation_step(step):
            raise ValueError(f"Rotation step must be a multiple of 45 dividing 360, got {step}")
        self.rotation_degrees = normalize_degrees(self.rotation_degrees + step)
        self.preview_changed.emit()
        return self.rotation_degrees

    def reset_rotation(self):
        if self.rotation_degrees != 0.0:
            self.rotation_degrees = 0.0
            self.preview_changed.emit()

    def clear_preview(self):
        self.anchor_point = None
        self.preview_changed.emit()

    def real_size(self) -> Tuple[float, float]:
        return real_size_for(self.equipment_type)

    def footprint(self, ratio: Optional[float]) -> Tuple[float, float]:
        """Pixel (width, height) of the symbol; raises ScaleNotSetError without a ratio"""
        width_m, height_m = self.real_size()
        return meters_to_pixels(width_m, ratio), meters_to_pixels(height_m, ratio)

    def footprint_corners(self, ratio: Optional[float], anchor=None) -> List[Point]:
        anchor = as_point(anchor) if anchor is not None else self.anchor_point
        if anchor is None:
            return []
        width, height = self.footprint(ratio)
        return oriented_rect_corners(anchor, width, height, self.rotation_degrees)

    def place(self, point, scale_info: ScaleInfo, id_factory: Callable[[], str],
              rotation_degrees: Optional[float] = None) -> Optional[EquipmentItem]:
        """Create an EquipmentItem at point; None with a notice when uncalibrated.

        rotation_degrees overrides the preview rotation for this item only and
        must be a multiple of 45.
        """
        if rotation_degrees is None:
            rotation_degrees = self.rotation_degrees
        elif not is_valid_rotation(rotation_degrees):
            raise DetailsValidationError('rotation_degrees', "must be a multiple of 45")
        if not scale_info.is_set:
            debug_logger.log_rejection("EquipmentPlacement", "scale not set",
                                       {'equipment_type': self.equipment_type})
            self.notice.emit(NO_SCALE_NOTICE)
            return None
        width_m, height_m = self.real_size()
        item = EquipmentItem(
            id=id_factory(),
            equipment_type=self.equipment_type,
            anchor_point=as_point(point),
            rotation_degrees=normalize_degrees(rotation_degrees),
            real_width_m=width_m,
            real_height_m=height_m,
        )
        debug_logger.debug("EquipmentPlacement", "Placed equipment", {
            'equipment_type': item.equipment_type,
            'rotation': item.rotation_degrees
        })
        return item


def equipment_footprint_px(item: EquipmentItem, ratio: Optional[float]) -> Tuple[float, float]:
    """Rendered pixel size of a placed item"""
    return meters_to_pixels(item.real_width_m, ratio), meters_to_pixels(item.real_height_m, ratio)
