"""
Drawing components: markup tools, calibration, history and the controller
"""

from .scale_manager import ScaleManager, CalibrationPhase
from .drawing_tools import DrawingToolManager, MultiPointTool, ToolType
from .equipment_placement import EquipmentPlacementTool
from .pv_tools import ArrayPlacementTool, RoofMaskWorkflow
from .history import HistoryManager
from .viewport import Viewport
from .markup_controller import MarkupController

__all__ = [
    'ScaleManager',
    'CalibrationPhase',
    'DrawingToolManager',
    'MultiPointTool',
    'ToolType',
    'EquipmentPlacementTool',
    'ArrayPlacementTool',
    'RoofMaskWorkflow',
    'HistoryManager',
    'Viewport',
    'MarkupController'
]
