"""
Design state - immutable value types for a floor-plan markup session

Every entity is a frozen dataclass and every collection is a tuple, so two
states compare equal exactly when their contents match. Cross-entity links
are plain id strings.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Iterator, Optional, Tuple, Union

from calculations.errors import InvalidGeometryError
from calculations.geometry import Point, as_point, point_in_polygon
from data.equipment_catalog import ContainmentType, EquipmentType, PanelOrientation, VoltageClass


class EntityKind(Enum):
	"""Tag for every kind of entity held in a DesignState"""
	EQUIPMENT = "equipment"
	LINE = "line"
	ZONE = "zone"
	CONTAINMENT = "containment"
	ROOF_MASK = "roofMask"
	PV_ARRAY = "pvArray"
	TASK = "task"


class TaskStatus(Enum):
	TODO = "To Do"
	IN_PROGRESS = "In Progress"
	DONE = "Done"


class DesignPurpose(Enum):
	"""What the markup session is for; selects the available tools"""
	BUDGET_MARKUP = "Budget mark-up"
	PV_DESIGN = "PV design"
	LINE_SHOP_MEASUREMENTS = "Line shop measurements"


def _points(values, minimum, owner):
	pts = tuple(as_point(p) for p in values)
	if len(pts) < minimum:
		raise InvalidGeometryError(f"{owner} requires at least {minimum} points, got {len(pts)}")
	return pts


@dataclass(frozen=True)
class ScaleInfo:
	"""Calibration result; ratio is meters per pixel and None until calibrated"""
	pixel_distance: Optional[float] = None
	real_distance_m: Optional[float] = None
	ratio: Optional[float] = None

	@property
	def is_set(self) -> bool:
		return self.ratio is not None and self.ratio > 0

	@classmethod
	def unset(cls) -> 'ScaleInfo':
		return cls()


@dataclass(frozen=True)
class PVPanelConfig:
	length_m: float
	width_m: float
	wattage: float


@dataclass(frozen=True)
class EquipmentItem:
	kind: ClassVar[EntityKind] = EntityKind.EQUIPMENT

	id: str
	equipment_type: EquipmentType
	anchor_point: Point
	rotation_degrees: float
	real_width_m: float
	real_height_m: float
	name: str = ''

	def __post_init__(self):
		object.__setattr__(self, 'equipment_type', EquipmentType(self.equipment_type))
		object.__setattr__(self, 'anchor_point', as_point(self.anchor_point))


@dataclass(frozen=True)
class SupplyLine:
	"""Cable run; total_length is derived and recomputed on every construction"""
	kind: ClassVar[EntityKind] = EntityKind.LINE

	id: str
	points: Tuple[Point, ...]
	path_length: float
	voltage_class: VoltageClass
	start_height_m: float = 0.0
	end_height_m: float = 0.0
	cable_type: str = ''
	termination_count: int = 0
	label: str = ''
	from_label: str = ''
	to_label: str = ''
	total_length: float = field(init=False)

	def __post_init__(self):
		object.__setattr__(self, 'points', _points(self.points, 2, 'Supply line'))
		object.__setattr__(self, 'voltage_class', VoltageClass(self.voltage_class))
		object.__setattr__(
			self, 'total_length',
			self.path_length + self.start_height_m + self.end_height_m
		)


@dataclass(frozen=True)
class Containment:
	kind: ClassVar[EntityKind] = EntityKind.CONTAINMENT

	id: str
	containment_type: ContainmentType
	size: str
	points: Tuple[Point, ...]
	length: float

	def __post_init__(self):
		object.__setattr__(self, 'containment_type', ContainmentType(self.containment_type))
		object.__setattr__(self, 'points', _points(self.points, 2, 'Containment'))


@dataclass(frozen=True)
class SupplyZone:
	kind: ClassVar[EntityKind] = EntityKind.ZONE

	id: str
	points: Tuple[Point, ...]
	area_m2: float
	name: str = ''

	def __post_init__(self):
		object.__setattr__(self, 'points', _points(self.points, 3, 'Supply zone'))


@dataclass(frozen=True)
class RoofMask:
	kind: ClassVar[EntityKind] = EntityKind.ROOF_MASK

	id: str
	points: Tuple[Point, ...]
	pitch_degrees: float
	azimuth_degrees: float
	area_m2: Optional[float] = None

	def __post_init__(self):
		object.__setattr__(self, 'points', _points(self.points, 3, 'Roof mask'))

	def contains(self, point) -> bool:
		return point_in_polygon(point, self.points)


@dataclass(frozen=True)
class PVArrayItem:
	kind: ClassVar[EntityKind] = EntityKind.PV_ARRAY

	id: str
	roof_mask_id: str
	rows: int
	columns: int
	orientation: PanelOrientation
	anchor_point: Point
	rotation_degrees: float = 0.0

	def __post_init__(self):
		object.__setattr__(self, 'orientation', PanelOrientation(self.orientation))
		object.__setattr__(self, 'anchor_point', as_point(self.anchor_point))

	@property
	def panel_count(self) -> int:
		return self.rows * self.columns


@dataclass(frozen=True)
class Task:
	kind: ClassVar[EntityKind] = EntityKind.TASK

	id: str
	title: str
	status: TaskStatus = TaskStatus.TODO
	linked_item_id: Optional[str] = None
	assigned_to: Optional[str] = None

	def __post_init__(self):
		object.__setattr__(self, 'status', TaskStatus(self.status))


Entity = Union[EquipmentItem, SupplyLine, SupplyZone, Containment, RoofMask, PVArrayItem, Task]

# Attribute on DesignState holding each kind of entity
COLLECTION_FOR_KIND = {
	EntityKind.EQUIPMENT: 'equipment',
	EntityKind.LINE: 'lines',
	EntityKind.ZONE: 'zones',
	EntityKind.CONTAINMENT: 'containment',
	EntityKind.ROOF_MASK: 'roof_masks',
	EntityKind.PV_ARRAY: 'pv_arrays',
	EntityKind.TASK: 'tasks',
}

ENTITY_CLASSES = {
	EntityKind.EQUIPMENT: EquipmentItem,
	EntityKind.LINE: SupplyLine,
	EntityKind.ZONE: SupplyZone,
	EntityKind.CONTAINMENT: Containment,
	EntityKind.ROOF_MASK: RoofMask,
	EntityKind.PV_ARRAY: PVArrayItem,
	EntityKind.TASK: Task,
}

if set(COLLECTION_FOR_KIND) != set(EntityKind) or set(ENTITY_CLASSES) != set(EntityKind):
	raise RuntimeError("Every EntityKind needs a collection and an entity class")


@dataclass(frozen=True)
class DesignState:
	"""The complete markup session; the unit of undo/redo"""
	equipment: Tuple[EquipmentItem, ...] = ()
	lines: Tuple[SupplyLine, ...] = ()
	zones: Tuple[SupplyZone, ...] = ()
	containment: Tuple[Containment, ...] = ()
	roof_masks: Tuple[RoofMask, ...] = ()
	pv_arrays: Tuple[PVArrayItem, ...] = ()
	tasks: Tuple[Task, ...] = ()
	scale_info: ScaleInfo = field(default_factory=ScaleInfo)
	design_purpose: Optional[DesignPurpose] = None
	pv_panel_config: Optional[PVPanelConfig] = None

	def __post_init__(self):
		for attr in COLLECTION_FOR_KIND.values():
			object.__setattr__(self, attr, tuple(getattr(self, attr)))
		if self.design_purpose is not None:
			object.__setattr__(self, 'design_purpose', DesignPurpose(self.design_purpose))

	@property
	def ratio(self) -> Optional[float]:
		return self.scale_info.ratio if self.scale_info.is_set else None

	def collection(self, kind: EntityKind) -> tuple:
		return getattr(self, COLLECTION_FOR_KIND[kind])

	def with_collection(self, kind: EntityKind, items) -> 'DesignState':
		return replace(self, **{COLLECTION_FOR_KIND[kind]: tuple(items)})

	def entities(self) -> Iterator[Entity]:
		for kind in EntityKind:
			yield from self.collection(kind)

	def find_entity(self, entity_id) -> Optional[Entity]:
		"""Look up any entity by id; None when it no longer exists"""
		if entity_id is None:
			return None
		for entity in self.entities():
			if entity.id == entity_id:
				return entity
		return None

	def find_roof_mask(self, mask_id) -> Optional[RoofMask]:
		return next((m for m in self.roof_masks if m.id == mask_id), None)

	def roof_mask_at(self, point) -> Optional[RoofMask]:
		"""Topmost (most recently drawn) roof mask containing point"""
		for mask in reversed(self.roof_masks):
			if mask.contains(point):
				return mask
		return None

	def tasks_for(self, item_id) -> Tuple[Task, ...]:
		return tuple(t for t in self.tasks if t.linked_item_id == item_id)
