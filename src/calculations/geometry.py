"""
Geometry utilities for markup tools

Pure helpers for distances, polyline lengths, polygon areas, hit-testing and
alignment snapping. All coordinates are document pixels; functions that return
real-world units take the calibrated ratio (meters per pixel) and raise
ScaleNotSetError when it is missing.
"""

import math
from enum import Enum
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from .errors import ScaleNotSetError


class Point(NamedTuple):
	"""A point in document pixel space"""
	x: float
	y: float


def as_point(value) -> Point:
	"""Coerce a Point, (x, y) pair or {'x', 'y'} mapping into a Point."""
	if isinstance(value, Point):
		return value
	if isinstance(value, dict):
		return Point(float(value['x']), float(value['y']))
	x, y = value
	return Point(float(x), float(y))


def distance(a, b) -> float:
	return math.hypot(b[0] - a[0], b[1] - a[1])


def polyline_length(points: Sequence) -> float:
	"""Sum of segment lengths in pixels."""
	if len(points) < 2:
		return 0.0
	return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def polygon_area(points: Sequence) -> float:
	"""Compute the area in pixel^2 using the shoelace formula.
	Returns absolute area.
	"""
	if len(points) < 3:
		return 0.0
	area2 = 0.0
	for i in range(len(points)):
		x1, y1 = points[i][0], points[i][1]
		x2, y2 = points[(i + 1) % len(points)][0], points[(i + 1) % len(points)][1]
		area2 += (x1 * y2) - (x2 * y1)
	return abs(area2) / 2.0


def polygon_perimeter(points: Sequence) -> float:
	"""Compute closed polygon perimeter in pixels."""
	if len(points) < 2:
		return 0.0
	return polyline_length(list(points) + [points[0]])


def polygon_centroid(points: Sequence) -> Point:
	"""Vertex average, used for labels and direction arrows."""
	if not points:
		return Point(0.0, 0.0)
	n = float(len(points))
	return Point(sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def point_in_polygon(point, polygon: Sequence) -> bool:
	"""Ray-casting, odd-crossing rule.

	Edges are tested half-open ((yi > py) != (yj > py)) with a strict x
	comparison, so for an axis-aligned square the left and top edges (smaller
	x / y) count as inside while the right and bottom edges count as outside.
	"""
	if len(polygon) < 3:
		return False
	px, py = point[0], point[1]
	inside = False
	j = len(polygon) - 1
	for i in range(len(polygon)):
		xi, yi = polygon[i][0], polygon[i][1]
		xj, yj = polygon[j][0], polygon[j][1]
		if (yi > py) != (yj > py):
			x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
			if px < x_cross:
				inside = not inside
		j = i
	return inside


def point_segment_distance(point, a, b) -> float:
	"""Shortest distance from point to the segment a-b."""
	ax, ay = a[0], a[1]
	dx, dy = b[0] - ax, b[1] - ay
	length_sq = dx * dx + dy * dy
	if length_sq == 0:
		return distance(point, a)
	t = ((point[0] - ax) * dx + (point[1] - ay) * dy) / length_sq
	t = max(0.0, min(1.0, t))
	return math.hypot(point[0] - (ax + t * dx), point[1] - (ay + t * dy))


def distance_to_polyline(point, points: Sequence, closed: bool = False) -> float:
	"""Shortest distance from point to any segment of a polyline."""
	if not points:
		return math.inf
	if len(points) == 1:
		return distance(point, points[0])
	segments = list(zip(points, points[1:]))
	if closed:
		segments.append((points[-1], points[0]))
	return min(point_segment_distance(point, a, b) for a, b in segments)


def normalize_degrees(angle: float) -> float:
	"""Map any angle into [0, 360)."""
	angle = math.fmod(angle, 360.0)
	if angle < 0:
		angle += 360.0
	# fmod(-1e-17) + 360 rounds to 360.0
	return 0.0 if angle >= 360.0 else angle


ROTATION_INCREMENT = 45.0


def is_valid_rotation(degrees: float) -> bool:
	"""Placement rotations are whole multiples of 45 degrees"""
	return math.isfinite(degrees) and normalize_degrees(degrees) % ROTATION_INCREMENT == 0


def is_valid_rotation_step(step: float) -> bool:
	"""A step that stays on the 45 degree grid and returns to 0 after 360"""
	return step > 0 and step % ROTATION_INCREMENT == 0 and 360.0 % step == 0


def rotate_point(point, degrees: float, origin=(0.0, 0.0)) -> Point:
	"""Rotate point about origin; positive degrees turn clockwise on screen (y down)."""
	rad = math.radians(degrees)
	cos_a, sin_a = math.cos(rad), math.sin(rad)
	dx, dy = point[0] - origin[0], point[1] - origin[1]
	return Point(origin[0] + dx * cos_a - dy * sin_a, origin[1] + dx * sin_a + dy * cos_a)


def oriented_rect_corners(center, width: float, height: float, degrees: float) -> List[Point]:
	"""Corners of a width x height rectangle centred on center and rotated."""
	hw, hh = width / 2.0, height / 2.0
	local = [(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)]
	return [rotate_point((center[0] + lx, center[1] + ly), degrees, center) for lx, ly in local]


def point_in_oriented_rect(point, center, width: float, height: float, degrees: float) -> bool:
	"""Inclusive hit-test against a rotated rectangle."""
	local = rotate_point(point, -degrees, center)
	return abs(local.x - center[0]) <= width / 2.0 and abs(local.y - center[1]) <= height / 2.0


# --- Real-world conversions -------------------------------------------------

def require_ratio(ratio: Optional[float]) -> float:
	"""Return ratio or raise ScaleNotSetError when the drawing is uncalibrated."""
	if ratio is None or ratio <= 0:
		raise ScaleNotSetError()
	return float(ratio)


def pixels_to_meters(pixels: float, ratio: Optional[float]) -> float:
	return pixels * require_ratio(ratio)


def meters_to_pixels(meters: float, ratio: Optional[float]) -> float:
	return meters / require_ratio(ratio)


def area_px_to_m2(area_px: float, ratio: Optional[float]) -> float:
	ratio = require_ratio(ratio)
	return area_px * ratio * ratio


def polyline_length_m(points: Sequence, ratio: Optional[float]) -> float:
	return pixels_to_meters(polyline_length(points), ratio)


def polygon_area_m2(points: Sequence, ratio: Optional[float]) -> float:
	return area_px_to_m2(polygon_area(points), ratio)


def compute_polygon_metrics(points: Sequence, ratio: Optional[float]) -> dict:
	"""Compute real-world area and perimeter for a polygon.

	- points: sequence of Points or {'x', 'y'} mappings
	- ratio: meters per pixel

	Returns: {'area_m2': float, 'perimeter_m': float}
	"""
	pts = [as_point(p) for p in points]
	ratio = require_ratio(ratio)
	return {
		'area_m2': area_px_to_m2(polygon_area(pts), ratio),
		'perimeter_m': pixels_to_meters(polygon_perimeter(pts), ratio),
	}


# --- Alignment snapping -----------------------------------------------------

class SnapKind(Enum):
	"""Alignment candidate kinds, in tie-break priority order"""
	CORNER = "corner"
	EDGE = "edge"


_KIND_PRIORITY = {SnapKind.CORNER: 0, SnapKind.EDGE: 1}

# Relative rotations closer than this to a multiple of 90 count as aligned
_ANGLE_EPSILON = 1e-6


class OrientedRect(NamedTuple):
	"""An existing shape that can be snapped against"""
	source_id: str
	center: Point
	width: float
	height: float
	rotation: float


class SnapCandidate(NamedTuple):
	point: Point
	kind: SnapKind
	distance: float
	source_id: str


def _frame_axes(degrees: float) -> Tuple[Tuple[float, float], Tuple[float, float]]:
	rad = math.radians(degrees)
	return (math.cos(rad), math.sin(rad)), (-math.sin(rad), math.cos(rad))


def _aligned_dims(rect: OrientedRect, rotation: float) -> Optional[Tuple[float, float]]:
	"""Dimensions of rect in the frame of `rotation`, or None when not axis-aligned to it."""
	relative = normalize_degrees(rect.rotation - rotation) % 180.0
	if relative < _ANGLE_EPSILON or relative > 180.0 - _ANGLE_EPSILON:
		return rect.width, rect.height
	if abs(relative - 90.0) < _ANGLE_EPSILON:
		return rect.height, rect.width
	return None


def nearest_alignment_candidates(
		new_anchor,
		new_width: float,
		new_height: float,
		new_rotation: float,
		existing: Iterable[OrientedRect],
		tolerance_fn: Callable[[SnapKind], float]) -> List[SnapCandidate]:
	"""Rank snap positions for a new rectangle placed against existing ones.

	For every side of every existing rectangle that shares the new
	rectangle's orientation (modulo 90 degrees) the new rectangle is pushed
	flush against that side. If the parallel coordinate is within the corner
	tolerance of a corner alignment it is pulled onto that corner, giving a
	CORNER candidate; otherwise, when the two sides overlap, the raw parallel
	coordinate is kept, giving an EDGE candidate. A candidate qualifies when its
	distance from the raw anchor is within tolerance_fn(kind).

	Returns qualifying candidates sorted by distance, corner before edge on ties.
	"""
	anchor = as_point(new_anchor)
	u_axis, v_axis = _frame_axes(new_rotation)
	a_u = anchor.x * u_axis[0] + anchor.y * u_axis[1]
	a_v = anchor.x * v_axis[0] + anchor.y * v_axis[1]
	corner_tol = tolerance_fn(SnapKind.CORNER)
	edge_tol = tolerance_fn(SnapKind.EDGE)

	found = {}
	for rect in existing:
		dims = _aligned_dims(rect, new_rotation)
		if dims is None:
			continue
		width, height = dims
		c_u = rect.center[0] * u_axis[0] + rect.center[1] * u_axis[1]
		c_v = rect.center[0] * v_axis[0] + rect.center[1] * v_axis[1]

		# (perpendicular centre, perpendicular extent, parallel centre, parallel extent, anchor perp, anchor par, is_u)
		sides = []
		for sign in (1.0, -1.0):
			sides.append((c_u + sign * (width + new_width) / 2.0, c_v, height, new_height, a_u, a_v, True))
			sides.append((c_v + sign * (height + new_height) / 2.0, c_u, width, new_width, a_v, a_u, False))

		for perp_target, par_center, par_extent, new_par_extent, a_perp, a_par, is_u in sides:
			par_targets = [
				par_center + s1 * par_extent / 2.0 + s2 * new_par_extent / 2.0
				for s1 in (1.0, -1.0) for s2 in (1.0, -1.0)
			]
			nearest_par = min(par_targets, key=lambda t: (abs(a_par - t), t))
			if abs(a_par - nearest_par) <= corner_tol:
				kind = SnapKind.CORNER
				par_value = nearest_par
				dist = math.hypot(a_perp - perp_target, a_par - nearest_par)
				limit = corner_tol
			elif abs(a_par - par_center) < (par_extent + new_par_extent) / 2.0:
				kind = SnapKind.EDGE
				par_value = a_par
				dist = abs(a_perp - perp_target)
				limit = edge_tol
			else:
				continue
			if dist > limit:
				continue

			u_val, v_val = (perp_target, par_value) if is_u else (par_value, perp_target)
			point = Point(
				u_val * u_axis[0] + v_val * v_axis[0],
				u_val * u_axis[1] + v_val * v_axis[1],
			)
			key = (round(point.x, 6), round(point.y, 6), kind)
			if key not in found or dist < found[key].distance:
				found[key] = SnapCandidate(point, kind, dist, rect.source_id)

	return sorted(found.values(), key=lambda c: (round(c.distance, 9), _KIND_PRIORITY[c.kind]))
