"""
Pure updater functions over DesignState

Each function takes the current state and returns a new one. None of them
mutate their input; the history manager decides whether a result becomes a
new undo step or overwrites the current one.
"""

from dataclasses import replace
from typing import Optional

from calculations.geometry import Point, as_point, polygon_area_m2
from .design_state import (
	DesignState, EntityKind, PVArrayItem, RoofMask, ScaleInfo, SupplyLine, Task,
)


def add_entity(state: DesignState, entity) -> DesignState:
	"""Append entity to the collection for its kind"""
	return state.with_collection(entity.kind, state.collection(entity.kind) + (entity,))


def replace_entity(state: DesignState, entity) -> DesignState:
	"""Swap the entity with the same id; unknown ids leave state unchanged"""
	items = state.collection(entity.kind)
	if not any(item.id == entity.id for item in items):
		return state
	return state.with_collection(
		entity.kind, (entity if item.id == entity.id else item for item in items)
	)


def cascade_ids(state: DesignState, entity_id) -> set:
	"""Ids removed when entity_id is deleted, including dependents"""
	removed = {entity_id}
	if state.find_roof_mask(entity_id) is not None:
		removed.update(a.id for a in state.pv_arrays if a.roof_mask_id == entity_id)
	removed.update(t.id for t in state.tasks if t.linked_item_id in removed)
	return removed


def remove_entity_cascade(state: DesignState, entity_id) -> DesignState:
	"""Remove an entity and everything that references it.

	Deleting a roof mask also removes the PV arrays standing on it; tasks
	linked to any removed entity go with it.
	"""
	if state.find_entity(entity_id) is None:
		return state
	removed = cascade_ids(state, entity_id)
	for kind in EntityKind:
		items = state.collection(kind)
		kept = tuple(item for item in items if item.id not in removed)
		if len(kept) != len(items):
			state = state.with_collection(kind, kept)
	return state


def _translate(point, dx, dy) -> Point:
	return Point(point[0] + dx, point[1] + dy)


def move_entity(state: DesignState, entity_id, dx: float, dy: float) -> DesignState:
	"""Translate an entity by (dx, dy) document pixels.

	A PV array never leaves its roof mask: a move that would put its anchor
	outside returns state unchanged. Moving a roof mask carries its arrays.
	"""
	entity = state.find_entity(entity_id)
	if entity is None or (dx == 0 and dy == 0):
		return state
	if hasattr(entity, 'anchor_point'):
		moved = replace(entity, anchor_point=_translate(entity.anchor_point, dx, dy))
	elif hasattr(entity, 'points'):
		moved = replace(entity, points=tuple(_translate(p, dx, dy) for p in entity.points))
	else:
		return state

	if isinstance(moved, PVArrayItem):
		mask = state.find_roof_mask(moved.roof_mask_id)
		if mask is None or not mask.contains(moved.anchor_point):
			return state
	state = replace_entity(state, moved)
	if isinstance(moved, RoofMask):
		arrays = tuple(
			replace(a, anchor_point=_translate(a.anchor_point, dx, dy)) if a.roof_mask_id == moved.id else a
			for a in state.pv_arrays
		)
		state = state.with_collection(EntityKind.PV_ARRAY, arrays)
	return state


def move_zone_vertex(state: DesignState, zone_id, index: int, point) -> DesignState:
	"""Move one vertex of a supply zone and recompute its area"""
	zone = next((z for z in state.zones if z.id == zone_id), None)
	if zone is None or not 0 <= index < len(zone.points):
		return state
	points = list(zone.points)
	points[index] = as_point(point)
	area = polygon_area_m2(points, state.ratio) if state.ratio else zone.area_m2
	return replace_entity(state, replace(zone, points=tuple(points), area_m2=area))


def update_line_details(state: DesignState, line_id, **details) -> DesignState:
	"""Edit cable fields of a supply line; total_length is re-derived"""
	line = next((l for l in state.lines if l.id == line_id), None)
	if line is None:
		return state
	allowed = {
		'cable_type', 'termination_count', 'start_height_m', 'end_height_m',
		'label', 'from_label', 'to_label', 'path_length',
	}
	changes = {k: v for k, v in details.items() if k in allowed and v is not None}
	updated: SupplyLine = replace(line, **changes)
	return replace_entity(state, updated)


def set_roof_pitch(state: DesignState, mask_id, pitch_degrees: float) -> DesignState:
	mask: Optional[RoofMask] = state.find_roof_mask(mask_id)
	if mask is None:
		return state
	return replace_entity(state, replace(mask, pitch_degrees=float(pitch_degrees)))


def upsert_task(state: DesignState, task: Task) -> DesignState:
	"""Add a task or replace the task with the same id"""
	if any(t.id == task.id for t in state.tasks):
		return replace_entity(state, task)
	return add_entity(state, task)


def set_scale_info(state: DesignState, scale_info: ScaleInfo) -> DesignState:
	return replace(state, scale_info=scale_info)


def set_pv_panel_config(state: DesignState, config) -> DesignState:
	return replace(state, pv_panel_config=config)


def set_design_purpose(state: DesignState, purpose) -> DesignState:
	return replace(state, design_purpose=purpose)


def add_pv_array(state: DesignState, array: PVArrayItem) -> DesignState:
	"""Append an array only if its anchor lies inside its roof mask"""
	mask = state.find_roof_mask(array.roof_mask_id)
	if mask is None or not mask.contains(array.anchor_point):
		return state
	return add_entity(state, array)
