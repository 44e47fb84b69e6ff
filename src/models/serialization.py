"""
JSON codec for DesignState

Saving always emits the full camelCase shape. Loading is tolerant: missing
collections become empty, snake_case and legacy key names are accepted, and
malformed entities are skipped with a log record rather than failing the load.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from calculations.errors import InvalidGeometryError
from calculations.geometry import as_point, normalize_degrees
from .design_state import (
	Containment, DesignPurpose, DesignState, EquipmentItem, PVArrayItem,
	PVPanelConfig, RoofMask, ScaleInfo, SupplyLine, SupplyZone, Task,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _point_dict(point) -> Dict[str, float]:
	return {'x': point.x, 'y': point.y}


def _points(points) -> List[Dict[str, float]]:
	return [_point_dict(p) for p in points]


def _pick(data: Dict[str, Any], *keys, default=_MISSING):
	"""First present key wins; raises KeyError when required and absent"""
	for key in keys:
		if key in data and data[key] is not None:
			return data[key]
	if default is _MISSING:
		raise KeyError(keys[0])
	return default


# --- save -------------------------------------------------------------------

def equipment_to_dict(item: EquipmentItem) -> Dict[str, Any]:
	return {
		'id': item.id,
		'equipmentType': item.equipment_type.value,
		'anchorPoint': _point_dict(item.anchor_point),
		'rotationDegrees': item.rotation_degrees,
		'realWidthM': item.real_width_m,
		'realHeightM': item.real_height_m,
		'name': item.name,
	}


def line_to_dict(line: SupplyLine) -> Dict[str, Any]:
	return {
		'id': line.id,
		'points': _points(line.points),
		'pathLength': line.path_length,
		'startHeightM': line.start_height_m,
		'endHeightM': line.end_height_m,
		'totalLength': line.total_length,
		'voltageClass': line.voltage_class.value,
		'cableType': line.cable_type,
		'terminationCount': line.termination_count,
		'label': line.label,
		'from': line.from_label,
		'to': line.to_label,
	}


def zone_to_dict(zone: SupplyZone) -> Dict[str, Any]:
	return {'id': zone.id, 'points': _points(zone.points), 'areaM2': zone.area_m2, 'name': zone.name}


def containment_to_dict(item: Containment) -> Dict[str, Any]:
	return {
		'id': item.id,
		'containmentType': item.containment_type.value,
		'size': item.size,
		'points': _points(item.points),
		'length': item.length,
	}


def roof_mask_to_dict(mask: RoofMask) -> Dict[str, Any]:
	return {
		'id': mask.id,
		'points': _points(mask.points),
		'pitchDegrees': mask.pitch_degrees,
		'azimuthDegrees': mask.azimuth_degrees,
		'areaM2': mask.area_m2,
	}


def pv_array_to_dict(array: PVArrayItem) -> Dict[str, Any]:
	return {
		'id': array.id,
		'roofMaskId': array.roof_mask_id,
		'rows': array.rows,
		'columns': array.columns,
		'orientation': array.orientation.value,
		'anchorPoint': _point_dict(array.anchor_point),
		'rotationDegrees': array.rotation_degrees,
	}


def task_to_dict(task: Task) -> Dict[str, Any]:
	return {
		'id': task.id,
		'title': task.title,
		'status': task.status.value,
		'linkedItemId': task.linked_item_id,
		'assignedTo': task.assigned_to,
	}


def design_state_to_dict(state: DesignState) -> Dict[str, Any]:
	"""Full persisted shape of a design"""
	scale = state.scale_info
	config = state.pv_panel_config
	return {
		'equipment': [equipment_to_dict(e) for e in state.equipment],
		'lines': [line_to_dict(l) for l in state.lines],
		'zones': [zone_to_dict(z) for z in state.zones],
		'containment': [containment_to_dict(c) for c in state.containment],
		'roofMasks': [roof_mask_to_dict(m) for m in state.roof_masks],
		'pvArrays': [pv_array_to_dict(a) for a in state.pv_arrays],
		'tasks': [task_to_dict(t) for t in state.tasks],
		'scaleInfo': {
			'pixelDistance': scale.pixel_distance,
			'realDistanceMeters': scale.real_distance_m,
			'ratioMetersPerPixel': scale.ratio,
		},
		'designPurpose': state.design_purpose.value if state.design_purpose else None,
		'pvPanelConfig': (
			{'length': config.length_m, 'width': config.width_m, 'wattage': config.wattage}
			if config else None
		),
	}


# --- load -------------------------------------------------------------------

def equipment_from_dict(data: Dict[str, Any]) -> EquipmentItem:
	return EquipmentItem(
		id=str(data['id']),
		equipment_type=_pick(data, 'equipmentType', 'equipment_type', 'type'),
		anchor_point=as_point(_pick(data, 'anchorPoint', 'anchor_point', 'position')),
		rotation_degrees=float(_pick(data, 'rotationDegrees', 'rotation_degrees', 'rotation', default=0.0)),
		real_width_m=float(_pick(data, 'realWidthM', 'real_width_m', default=0.5)),
		real_height_m=float(_pick(data, 'realHeightM', 'real_height_m', default=0.5)),
		name=str(_pick(data, 'name', default='')),
	)


def line_from_dict(data: Dict[str, Any]) -> SupplyLine:
	# totalLength is never trusted from storage; the model re-derives it
	return SupplyLine(
		id=str(data['id']),
		points=[as_point(p) for p in data['points']],
		path_length=float(_pick(data, 'pathLength', 'path_length', 'length')),
		voltage_class=_pick(data, 'voltageClass', 'voltage_class', 'type'),
		start_height_m=float(_pick(data, 'startHeightM', 'start_height_m', 'startHeight', default=0.0)),
		end_height_m=float(_pick(data, 'endHeightM', 'end_height_m', 'endHeight', default=0.0)),
		cable_type=str(_pick(data, 'cableType', 'cable_type', default='')),
		termination_count=int(_pick(data, 'terminationCount', 'termination_count', default=0)),
		label=str(_pick(data, 'label', 'name', default='')),
		from_label=str(_pick(data, 'from', 'from_label', default='')),
		to_label=str(_pick(data, 'to', 'to_label', default='')),
	)


def zone_from_dict(data: Dict[str, Any]) -> SupplyZone:
	return SupplyZone(
		id=str(data['id']),
		points=[as_point(p) for p in data['points']],
		area_m2=float(_pick(data, 'areaM2', 'area_m2', 'area')),
		name=str(_pick(data, 'name', default='')),
	)


def containment_from_dict(data: Dict[str, Any]) -> Containment:
	ctype = _pick(data, 'containmentType', 'containment_type', 'type')
	return Containment(
		id=str(data['id']),
		containment_type=ctype,
		size=str(_pick(data, 'size', default=ctype)),
		points=[as_point(p) for p in data['points']],
		length=float(data['length']),
	)


def roof_mask_from_dict(data: Dict[str, Any]) -> RoofMask:
	azimuth = _pick(data, 'azimuthDegrees', 'azimuth_degrees', default=None)
	if azimuth is None:
		# Legacy masks stored a compass bearing (screen-up = 0)
		azimuth = normalize_degrees(float(_pick(data, 'direction')) - 90.0)
	area = _pick(data, 'areaM2', 'area_m2', 'area', default=None)
	return RoofMask(
		id=str(data['id']),
		points=[as_point(p) for p in data['points']],
		pitch_degrees=float(_pick(data, 'pitchDegrees', 'pitch_degrees', 'pitch')),
		azimuth_degrees=float(azimuth),
		area_m2=float(area) if area is not None else None,
	)


def pv_array_from_dict(data: Dict[str, Any]) -> PVArrayItem:
	return PVArrayItem(
		id=str(data['id']),
		roof_mask_id=str(_pick(data, 'roofMaskId', 'roof_mask_id')),
		rows=int(data['rows']),
		columns=int(data['columns']),
		orientation=_pick(data, 'orientation', default='portrait'),
		anchor_point=as_point(_pick(data, 'anchorPoint', 'anchor_point', 'position')),
		rotation_degrees=float(_pick(data, 'rotationDegrees', 'rotation_degrees', 'rotation', default=0.0)),
	)


def task_from_dict(data: Dict[str, Any]) -> Task:
	return Task(
		id=str(data['id']),
		title=str(_pick(data, 'title', default='')),
		status=_pick(data, 'status', default='To Do'),
		linked_item_id=_pick(data, 'linkedItemId', 'linked_item_id', default=None),
		assigned_to=_pick(data, 'assignedTo', 'assigned_to', default=None),
	)


def _load_collection(data: Dict[str, Any], keys, loader: Callable) -> tuple:
	raw = _pick(data, *keys, default=[])
	if not isinstance(raw, list):
		logger.warning("Ignoring %s: expected a list, got %s", keys[0], type(raw).__name__)
		return ()
	items = []
	for entry in raw:
		try:
			items.append(loader(entry))
		except (KeyError, TypeError, ValueError, InvalidGeometryError) as e:
			logger.warning("Skipping malformed %s entry: %s", keys[0], e)
	return tuple(items)


def _scale_from_dict(raw: Optional[Dict[str, Any]]) -> ScaleInfo:
	if not isinstance(raw, dict):
		return ScaleInfo()
	ratio = _pick(raw, 'ratioMetersPerPixel', 'ratio', default=None)
	pixel = _pick(raw, 'pixelDistance', 'pixel_distance', default=None)
	real = _pick(raw, 'realDistanceMeters', 'realDistance', 'real_distance_m', default=None)
	try:
		return ScaleInfo(
			pixel_distance=float(pixel) if pixel is not None else None,
			real_distance_m=float(real) if real is not None else None,
			ratio=float(ratio) if ratio is not None else None,
		)
	except (TypeError, ValueError) as e:
		logger.warning("Discarding malformed scale info: %s", e)
		return ScaleInfo()


def _panel_config_from_dict(raw) -> Optional[PVPanelConfig]:
	if not isinstance(raw, dict):
		return None
	try:
		return PVPanelConfig(
			length_m=float(_pick(raw, 'length', 'length_m')),
			width_m=float(_pick(raw, 'width', 'width_m')),
			wattage=float(raw['wattage']),
		)
	except (KeyError, TypeError, ValueError) as e:
		logger.warning("Discarding malformed PV panel config: %s", e)
		return None


def _purpose_from_value(raw) -> Optional[DesignPurpose]:
	if raw is None:
		return None
	try:
		return DesignPurpose(raw)
	except ValueError:
		try:
			return DesignPurpose[str(raw).upper()]
		except KeyError:
			logger.warning("Unknown design purpose %r", raw)
			return None


def design_state_from_dict(data: Optional[Dict[str, Any]]) -> DesignState:
	"""Build a DesignState from persisted data without ever raising on bad content"""
	data = data if isinstance(data, dict) else {}
	return DesignState(
		equipment=_load_collection(data, ('equipment',), equipment_from_dict),
		lines=_load_collection(data, ('lines',), line_from_dict),
		zones=_load_collection(data, ('zones',), zone_from_dict),
		containment=_load_collection(data, ('containment',), containment_from_dict),
		roof_masks=_load_collection(data, ('roofMasks', 'roof_masks'), roof_mask_from_dict),
		pv_arrays=_load_collection(data, ('pvArrays', 'pv_arrays'), pv_array_from_dict),
		tasks=_load_collection(data, ('tasks',), task_from_dict),
		scale_info=_scale_from_dict(_pick(data, 'scaleInfo', 'scale_info', default=None)),
		design_purpose=_purpose_from_value(_pick(data, 'designPurpose', 'design_purpose', default=None)),
		pv_panel_config=_panel_config_from_dict(_pick(data, 'pvPanelConfig', 'pv_panel_config', default=None)),
	)
