# -*- coding: utf-8 -*-
"""Planar and geodesic geometry helpers for cross sections.

Two distance conventions coexist and are kept apart on purpose:

- :func:`planar_distance` is Euclidean in whatever space the points live
  in (meters for UTM, raw degrees for WGS84). Block intersections use it.
- :func:`geodesic_distance_meters` is the Haversine great-circle distance
  between WGS84 points. Pit intersections and terrain profiles use it.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import NamedTuple

from shapely.geometry import LineString as ShapelyLineString

from minemodel_lib.constants import EARTH_RADIUS_M
from minemodel_lib.models import Coordinate

Point = Sequence[float]


class Intersection(NamedTuple):
    """A point on the section line and its planar distance from the start."""

    point: Coordinate
    distance: float


class Projection(NamedTuple):
    projected_point: Coordinate
    distance: float


# -----------------------------------------------------------------------------
# Distances
# -----------------------------------------------------------------------------


def planar_distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points, in their own units."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def geodesic_distance_meters(a: Point, b: Point) -> float:
    """Haversine distance in meters between two ``(lng, lat)`` points."""
    lng1, lat1 = a[0], a[1]
    lng2, lat2 = b[0], b[1]
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


# -----------------------------------------------------------------------------
# Segments and Polygons
# -----------------------------------------------------------------------------


def _segment_parameters(
    p1: Point, p2: Point, p3: Point, p4: Point
) -> tuple[float, float] | None:
    x1, y1 = p1[0], p1[1]
    x2, y2 = p2[0], p2[1]
    x3, y3 = p3[0], p3[1]
    x4, y4 = p4[0], p4[1]

    den = (y4 - y3) * (x2 - x1) - (x4 - x3) * (y2 - y1)
    if den == 0:
        # Parallel or coincident
        return None

    ua = ((x4 - x3) * (y1 - y3) - (y4 - y3) * (x1 - x3)) / den
    ub = ((x2 - x1) * (y1 - y3) - (y2 - y1) * (x1 - x3)) / den
    if 0 <= ua <= 1 and 0 <= ub <= 1:
        return ua, ub
    return None


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """True when segment ``p1-p2`` crosses or touches segment ``p3-p4``."""
    return _segment_parameters(p1, p2, p3, p4) is not None


def find_segment_intersection(
    p1: Point, p2: Point, p3: Point, p4: Point
) -> Coordinate | None:
    """Crossing point of segments ``p1-p2`` and ``p3-p4``, or None."""
    params = _segment_parameters(p1, p2, p3, p4)
    if params is None:
        return None
    ua = params[0]
    return (p1[0] + ua * (p2[0] - p1[0]), p1[1] + ua * (p2[1] - p1[1]))


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Ray-casting containment test against a ring."""
    x, y = point[0], point[1]
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def line_intersects_polygon(
    line_start: Point, line_end: Point, polygon: Sequence[Point]
) -> bool:
    """True when the segment crosses an edge or an endpoint lies inside."""
    for a, b in zip(polygon, polygon[1:]):
        if segments_intersect(line_start, line_end, a, b):
            return True
    return point_in_polygon(line_start, polygon) or point_in_polygon(
        line_end, polygon
    )


def calculate_intersection_points(
    line_start: Point, line_end: Point, polygon: Sequence[Point]
) -> list[Intersection]:
    """Edge crossings of a segment with a closed ring.

    When fewer than two crossings exist, a line endpoint lying inside the
    ring is added as a synthetic crossing (distance 0 for the start, full
    line length for the end). Distances are planar.
    """
    intersections: list[Intersection] = []
    for a, b in zip(polygon, polygon[1:]):
        crossing = find_segment_intersection(line_start, line_end, a, b)
        if crossing is not None:
            intersections.append(
                Intersection(crossing, planar_distance(line_start, crossing))
            )

    if len(intersections) < 2:
        if point_in_polygon(line_start, polygon):
            intersections.append(Intersection((line_start[0], line_start[1]), 0.0))
        if point_in_polygon(line_end, polygon):
            intersections.append(
                Intersection(
                    (line_end[0], line_end[1]),
                    planar_distance(line_start, line_end),
                )
            )

    return intersections


def polygon_centroid(polygon: Sequence[Point]) -> Coordinate:
    """Vertex average of a ring, ignoring an explicit closing vertex."""
    points = list(polygon)
    if len(points) > 1 and tuple(points[0][:2]) == tuple(points[-1][:2]):
        points = points[:-1]
    count = len(points)
    return (
        sum(p[0] for p in points) / count,
        sum(p[1] for p in points) / count,
    )


def project_point_onto_line(
    point: Point, line_start: Point, line_end: Point
) -> Projection:
    """Orthogonal projection of a point onto a segment, clamped to its ends.

    Returns the projected point and its planar distance from ``line_start``.
    """
    vx = line_end[0] - line_start[0]
    vy = line_end[1] - line_start[1]
    squared_length = vx**2 + vy**2
    if squared_length == 0:
        return Projection((line_start[0], line_start[1]), 0.0)

    dot = (point[0] - line_start[0]) * vx + (point[1] - line_start[1]) * vy
    ratio = max(0.0, min(1.0, dot / squared_length))
    return Projection(
        (line_start[0] + ratio * vx, line_start[1] + ratio * vy),
        ratio * math.sqrt(squared_length),
    )


def line_intersections(
    coords_a: Sequence[Point], coords_b: Sequence[Point]
) -> list[Coordinate]:
    """Crossing points of two polylines.

    Overlapping collinear stretches contribute their end points.
    """
    if len(coords_a) < 2 or len(coords_b) < 2:
        return []

    line_a = ShapelyLineString([(c[0], c[1]) for c in coords_a])
    line_b = ShapelyLineString([(c[0], c[1]) for c in coords_b])
    shared = line_a.intersection(line_b)
    if shared.is_empty:
        return []

    points: list[Coordinate] = []
    parts = list(shared.geoms) if hasattr(shared, "geoms") else [shared]
    for part in parts:
        if part.geom_type == "Point":
            points.append((part.x, part.y))
        elif part.geom_type == "LineString":
            first, *_, last = part.coords
            points.extend([(first[0], first[1]), (last[0], last[1])])
    return points
