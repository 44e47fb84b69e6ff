"""
Design state, persistence and serialization for floor-plan markup
"""

from .database import Base, initialize_database, get_session, session_scope, close_database
from .design_state import (
	DesignState, DesignPurpose, EntityKind, ScaleInfo, PVPanelConfig, EquipmentItem,
	SupplyLine, SupplyZone, Containment, RoofMask, PVArrayItem, Task, TaskStatus
)
from .serialization import design_state_to_dict, design_state_from_dict
from .design import SavedDesign, DesignRepository

__all__ = [
	'Base',
	'initialize_database',
	'get_session',
	'session_scope',
	'close_database',
	'DesignState',
	'DesignPurpose',
	'EntityKind',
	'ScaleInfo',
	'PVPanelConfig',
	'EquipmentItem',
	'SupplyLine',
	'SupplyZone',
	'Containment',
	'RoofMask',
	'PVArrayItem',
	'Task',
	'TaskStatus',
	'design_state_to_dict',
	'design_state_from_dict',
	'SavedDesign',
	'DesignRepository'
]
