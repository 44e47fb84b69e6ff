"""
Standard equipment and containment libraries for floor-plan markup
"""

from .equipment_catalog import (
    EquipmentType, ContainmentType, VoltageClass, PanelOrientation,
    EQUIPMENT_REAL_SIZES, STANDARD_CONTAINMENT_SIZES, real_size_for, requires_size
)

__all__ = [
    'EquipmentType',
    'ContainmentType',
    'VoltageClass',
    'PanelOrientation',
    'EQUIPMENT_REAL_SIZES',
    'STANDARD_CONTAINMENT_SIZES',
    'real_size_for',
    'requires_size'
]
