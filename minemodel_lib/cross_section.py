# -*- coding: utf-8 -*-
"""Cross-section extraction along a user-drawn line.

Three independent computations feed a section chart:

- block intersections (:func:`calculate_cross_section`), planar distances
  in the line's own coordinate space;
- pit-boundary crossings (:func:`find_pit_intersections`), geodesic
  distances in meters;
- the terrain profile (:func:`minemodel_lib.elevation.generate_elevation_profile`).

:func:`build_cross_section` runs all three and isolates their failures:
one part breaking never prevents the others from rendering.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any
from typing import TypeVar

from geojson import Feature
from geojson import LineString

from minemodel_lib.constants import BLOCK_CORRIDOR_WIDTH
from minemodel_lib.constants import CROSS_SECTION_FALLBACK_COLOR
from minemodel_lib.constants import CROSS_SECTION_PROFILE_SAMPLES
from minemodel_lib.constants import DEFAULT_BLOCK_DIMENSION
from minemodel_lib.constants import DEFAULT_BLOCK_HEIGHT
from minemodel_lib.constants import ELEVATION_CORRIDOR_WIDTH
from minemodel_lib.constants import METERS_PER_DEGREE
from minemodel_lib.constants import PIT_CORRIDOR_WIDTH
from minemodel_lib.constants import UNKNOWN_CATEGORY
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.elevation import generate_elevation_profile
from minemodel_lib.enums import CrossSectionStage
from minemodel_lib.enums import FeatureType
from minemodel_lib.errors import ProcessingWarning
from minemodel_lib.fields import parse_float
from minemodel_lib.fields import resolve_block_fields
from minemodel_lib.geometry import calculate_intersection_points
from minemodel_lib.geometry import geodesic_distance_meters
from minemodel_lib.geometry import line_intersections
from minemodel_lib.geometry import line_intersects_polygon
from minemodel_lib.geometry import planar_distance
from minemodel_lib.geometry import polygon_centroid
from minemodel_lib.geometry import project_point_onto_line
from minemodel_lib.models import BlockProperties
from minemodel_lib.models import BlockSegment
from minemodel_lib.models import Coordinate
from minemodel_lib.models import CrossSectionReport
from minemodel_lib.models import CrossSectionResult
from minemodel_lib.models import PitIntersection
from minemodel_lib.models import PitProfilePoint
from minemodel_lib.models import ProcessedElevationPoint
from minemodel_lib.models import ProjectedBlockSegment
from minemodel_lib.projection import CoordinateConverter

logger = logging.getLogger(__name__)

T = TypeVar("T")

LineInput = Mapping[str, Any] | Sequence[Sequence[float]]


def _line_coordinates(line: LineInput | None) -> list[Coordinate]:
    """Accept a LineString Feature, a bare geometry or a coordinate list."""
    if line is None:
        return []
    if isinstance(line, Mapping):
        geometry = line.get("geometry", line)
        if not geometry:
            return []
        coords = geometry.get("coordinates") or []
    else:
        coords = line
    return [(c[0], c[1]) for c in coords]


def _features(collection: Mapping[str, Any] | None) -> list[Mapping[str, Any]]:
    if not collection:
        return []
    return list(collection.get("features") or [])


# -----------------------------------------------------------------------------
# Block Intersections
# -----------------------------------------------------------------------------


def calculate_cross_section(
    geojson: Mapping[str, Any] | None,
    line_coords: Sequence[Sequence[float]],
) -> CrossSectionResult | None:
    """Intersect block polygons with a section line.

    Distances and widths are planar, measured in the coordinate space of
    the polygons and the line (degrees when both are WGS84). This is only
    accurate for short lines.

    Args:
        geojson: FeatureCollection of block polygons
        line_coords: Section line; only the first two coordinates are used

    Returns:
        Intersected blocks sorted by entry distance, or None when there
        are no features or fewer than two line coordinates.
    """
    features = _features(geojson)
    if not features or len(line_coords) < 2:
        return None

    start = (line_coords[0][0], line_coords[0][1])
    end = (line_coords[1][0], line_coords[1][1])

    blocks: list[BlockSegment] = []
    for feature in features:
        ring = feature["geometry"]["coordinates"][0]
        if not line_intersects_polygon(start, end, ring):
            continue

        intersections = calculate_intersection_points(start, end, ring)
        if len(intersections) < 2:
            continue
        intersections.sort(key=lambda item: item.distance)
        entry, exit_ = intersections[0], intersections[-1]

        props = feature.get("properties") or {}
        elevation = parse_float(props.get("centroid_z")) or 0.0
        centroid = polygon_centroid(ring)
        projected = project_point_onto_line(centroid, start, end)

        blocks.append(
            BlockSegment(
                centroid=(centroid[0], centroid[1], elevation),
                dimensions=(
                    parse_float(props.get("dim_x")) or DEFAULT_BLOCK_DIMENSION,
                    parse_float(props.get("dim_y")) or DEFAULT_BLOCK_DIMENSION,
                    parse_float(props.get("dim_z")) or DEFAULT_BLOCK_HEIGHT,
                ),
                properties=BlockProperties(
                    rock=str(props.get("rock") or UNKNOWN_CATEGORY),
                    color=props.get("color") or CROSS_SECTION_FALLBACK_COLOR,
                ),
                distance=entry.distance,
                width=exit_.distance - entry.distance,
                elevation=elevation,
                projected_point=projected.projected_point,
                entry_point=entry.point,
                exit_point=exit_.point,
            )
        )

    blocks.sort(key=lambda block: block.distance)
    logger.info(
        "Section line crosses %d of %d blocks", len(blocks), len(features)
    )
    return CrossSectionResult(
        blocks=blocks,
        line_length=planar_distance(start, end),
        start_point=start,
        end_point=end,
    )


def calculate_projected_block_intersections(
    blocks: Sequence[Mapping[str, Any]],
    source_projection: str,
    start: Sequence[float],
    end: Sequence[float],
    converter: CoordinateConverter | None = None,
) -> list[ProjectedBlockSegment]:
    """Intersect raw block records with a section line in projection units.

    The WGS84 line endpoints are converted to ``source_projection`` and
    each block footprint is rebuilt as a square of side ``dim_x``. Unlike
    :func:`calculate_cross_section`, distances come out in meters for UTM
    sources.

    Args:
        blocks: Raw block-model records
        source_projection: Projection code of the block centroids
        start: Line start as WGS84 ``(lng, lat)``
        end: Line end as WGS84 ``(lng, lat)``
        converter: Coordinate converter (a new one is created if None)

    Returns:
        Block segments sorted by distance, then elevation.
    """
    if not blocks:
        return []
    if converter is None:
        converter = CoordinateConverter()

    line_start = converter.convert(start, WGS84_CODE, source_projection)
    line_end = converter.convert(end, WGS84_CODE, source_projection)
    fields = resolve_block_fields(blocks)

    segments = []
    for block in blocks:
        x = parse_float(fields.value(block, "centroid_x"))
        y = parse_float(fields.value(block, "centroid_y"))
        z = parse_float(fields.value(block, "centroid_z"))
        if not x or not y or not z:
            continue

        width = parse_float(fields.value(block, "dim_x")) or DEFAULT_BLOCK_DIMENSION
        height = parse_float(fields.value(block, "dim_z")) or DEFAULT_BLOCK_HEIGHT
        half = width / 2
        ring = [
            (x - half, y - half),
            (x + half, y - half),
            (x + half, y + half),
            (x - half, y + half),
            (x - half, y - half),
        ]
        if not line_intersects_polygon(line_start, line_end, ring):
            continue

        intersections = calculate_intersection_points(line_start, line_end, ring)
        if len(intersections) < 2:
            continue
        intersections.sort(key=lambda item: item.distance)

        category = fields.value(block, "category")
        segments.append(
            ProjectedBlockSegment(
                distance=intersections[0].distance,
                width=intersections[-1].distance - intersections[0].distance,
                height=height,
                elevation=z,
                rock=str(category) if category else UNKNOWN_CATEGORY,
                color=block.get("color"),
            )
        )

    segments.sort(key=lambda segment: (segment.distance, segment.elevation))
    return segments


# -----------------------------------------------------------------------------
# Pit Intersections
# -----------------------------------------------------------------------------


def find_pit_intersections(
    pit_collection: Mapping[str, Any] | None,
    line_coords: Sequence[Sequence[float]],
) -> list[PitIntersection]:
    """Crossings of pit-boundary LineStrings with the section line.

    ``distance`` is the Haversine distance in meters from the line start,
    not the planar distance used for blocks.
    """
    features = _features(pit_collection)
    if not features or len(line_coords) < 2:
        return []

    section = [(c[0], c[1]) for c in line_coords]
    origin = section[0]

    intersections = []
    for feature in features:
        coords = feature["geometry"]["coordinates"]
        level = feature["properties"]["level"]
        for point in line_intersections(coords, section):
            intersections.append(
                PitIntersection(
                    point=point,
                    distance=geodesic_distance_meters(point, origin),
                    elevation=level,
                )
            )

    logger.debug("Found %d pit boundary crossings", len(intersections))
    return intersections


def pit_profile_points(
    intersections: Sequence[PitIntersection],
) -> list[PitProfilePoint]:
    """Reduce pit crossings to chart points ordered along the line."""
    points = [
        PitProfilePoint(distance=item.distance, elevation=item.elevation)
        for item in intersections
    ]
    return sorted(points, key=lambda point: point.distance)


# -----------------------------------------------------------------------------
# Corridor Filters
# -----------------------------------------------------------------------------


def filter_blocks_for_cross_section(
    blocks: Sequence[Mapping[str, Any]],
    start: Sequence[float],
    end: Sequence[float],
    corridor_width: float = BLOCK_CORRIDOR_WIDTH,
) -> list[Mapping[str, Any]]:
    """Keep blocks inside the line's bounding box grown by ``corridor_width``.

    ``start``/``end`` are ``(lng, lat)``; the corridor is given in meters
    and turned into degrees at 111 km per degree.
    """
    if not blocks:
        return []

    fields = resolve_block_fields(blocks)
    margin = corridor_width / METERS_PER_DEGREE
    min_x = min(start[0], end[0]) - margin
    max_x = max(start[0], end[0]) + margin
    min_y = min(start[1], end[1]) - margin
    max_y = max(start[1], end[1]) + margin

    filtered = []
    for block in blocks:
        x = parse_float(fields.value(block, "centroid_x"))
        y = parse_float(fields.value(block, "centroid_y"))
        if x is None or y is None:
            continue
        if min_x <= x <= max_x and min_y <= y <= max_y:
            filtered.append(block)

    logger.info("Filtered to %d blocks for cross-section", len(filtered))
    return filtered


def _corridor_offset(
    point: Sequence[float], start: Sequence[float], end: Sequence[float]
) -> tuple[float, float]:
    """Line parameter of the projected point and its offset in meters."""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    squared_length = dx * dx + dy * dy
    if squared_length == 0:
        return 0.0, planar_distance(point, start) * METERS_PER_DEGREE

    t = ((point[0] - start[0]) * dx + (point[1] - start[1]) * dy) / squared_length
    projected = (start[0] + t * dx, start[1] + t * dy)
    return t, planar_distance(point, projected) * METERS_PER_DEGREE


def _elevation_xy(point: Any) -> tuple[float | None, float | None]:
    if isinstance(point, ProcessedElevationPoint):
        return point.lng, point.lat
    x = point.get("x", point.get("lon", point.get("lng")))
    y = point.get("y", point.get("lat"))
    return parse_float(x), parse_float(y)


def filter_elevation_for_cross_section(
    points: Sequence[ProcessedElevationPoint | Mapping[str, Any]],
    start: Sequence[float],
    end: Sequence[float],
    corridor_width: float = ELEVATION_CORRIDOR_WIDTH,
) -> list[ProcessedElevationPoint | Mapping[str, Any]]:
    """Keep elevation points within ``corridor_width`` meters of the line.

    Points projecting more than 10% beyond either end are dropped too.
    """
    if not points:
        return []

    filtered = []
    for point in points:
        x, y = _elevation_xy(point)
        if x is None or y is None:
            continue
        t, offset = _corridor_offset((x, y), start, end)
        if -0.1 <= t <= 1.1 and offset <= corridor_width:
            filtered.append(point)

    logger.info(
        "Filtered %d elevation points to %d for cross-section",
        len(points),
        len(filtered),
    )
    return filtered


def filter_pit_for_cross_section(
    features: Sequence[Mapping[str, Any]],
    start: Sequence[float],
    end: Sequence[float],
    corridor_width: float = PIT_CORRIDOR_WIDTH,
) -> list[Mapping[str, Any]]:
    """Keep pit features whose first vertex lies near the section line.

    The distance is taken to the infinite line, so features beyond the
    line ends are kept as long as they are close to its extension.
    """
    if not features:
        return []

    filtered = []
    for feature in features:
        coords = (feature.get("geometry") or {}).get("coordinates") or []
        if not coords or not isinstance(coords[0], Sequence):
            continue
        _, offset = _corridor_offset(coords[0], start, end)
        if offset <= corridor_width:
            filtered.append(feature)

    logger.info("Filtered to %d pit features", len(filtered))
    return filtered


# -----------------------------------------------------------------------------
# Line Helpers
# -----------------------------------------------------------------------------


def add_point_to_line(
    line_points: Sequence[Sequence[float]], new_point: Sequence[float]
) -> list[Sequence[float]]:
    """Append a drawn point, starting over once the line has two points."""
    if len(line_points) >= 2:
        return [new_point]
    return [*line_points, new_point]


def points_to_geojson_line(points: Sequence[Sequence[float]]) -> Feature | None:
    """Turn ``[lat, lng]`` map clicks into a GeoJSON LineString Feature."""
    if not points or len(points) < 2:
        return None
    return Feature(
        geometry=LineString([(point[1], point[0]) for point in points]),
        properties={"type": FeatureType.CROSS_SECTION_LINE.value},
    )


def geojson_line_to_points(line: Mapping[str, Any] | None) -> list[list[float]]:
    """Inverse of :func:`points_to_geojson_line`: ``[lat, lng]`` pairs."""
    return [[lat, lng] for lng, lat in _line_coordinates(line)]


def calculate_line_distance(points: Sequence[Sequence[float]]) -> float:
    """Geodesic length in meters of a ``[lat, lng]`` polyline."""
    if not points or len(points) < 2:
        return 0.0
    return sum(
        geodesic_distance_meters((a[1], a[0]), (b[1], b[0]))
        for a, b in zip(points, points[1:])
    )


# -----------------------------------------------------------------------------
# Orchestration
# -----------------------------------------------------------------------------


def _run_stage(
    stage: CrossSectionStage,
    func: Callable[[], T],
    fallback: T,
    warnings: list[ProcessingWarning],
) -> T:
    try:
        return func()
    except Exception as e:
        logger.exception("Cross-section %s computation failed", stage.value)
        warnings.append(
            ProcessingWarning(
                stage=stage,
                message=f"Failed to calculate {stage.value}: {e}",
            )
        )
        return fallback


def build_cross_section(
    block_geojson: Mapping[str, Any] | None,
    line: LineInput | None,
    elevation_points: Sequence[ProcessedElevationPoint] | None = None,
    pit_collection: Mapping[str, Any] | None = None,
    sample_count: int = CROSS_SECTION_PROFILE_SAMPLES,
) -> CrossSectionReport:
    """Compute everything a section chart needs.

    Each part runs on its own: if one raises, the error is logged, a
    :class:`ProcessingWarning` is recorded and that part falls back to
    an empty result. This function never raises.

    Args:
        block_geojson: FeatureCollection of block polygons
        line: Section line as a LineString Feature or coordinate list
        elevation_points: Processed terrain points
        pit_collection: FeatureCollection of pit-boundary LineStrings
        sample_count: Number of terrain profile samples

    Returns:
        CrossSectionReport
    """
    warnings: list[ProcessingWarning] = []
    coords = _run_stage(
        CrossSectionStage.BLOCKS, lambda: _line_coordinates(line), [], warnings
    )

    section = None
    if block_geojson is not None:
        section = _run_stage(
            CrossSectionStage.BLOCKS,
            lambda: calculate_cross_section(block_geojson, coords),
            None,
            warnings,
        )

    pit_intersections = []
    if pit_collection is not None:
        pit_intersections = _run_stage(
            CrossSectionStage.PIT,
            lambda: find_pit_intersections(pit_collection, coords),
            [],
            warnings,
        )

    profile = None
    if elevation_points:
        profile = _run_stage(
            CrossSectionStage.ELEVATION,
            lambda: generate_elevation_profile(elevation_points, coords, sample_count),
            None,
            warnings,
        )

    return CrossSectionReport(
        section=section,
        elevation_profile=profile,
        pit_intersections=pit_intersections,
        warnings=warnings,
    )
