# -*- coding: utf-8 -*-
"""Pit-boundary reconstruction from STR point clouds.

A pit STR file is a flat list of points. Consecutive points at the same
elevation belong to the same boundary string; a string is closed when a
point repeats one already seen in the current string. This module
rebuilds those strings as WGS84 LineString features, one or more per
elevation level.

Duplicate detection is exact by default: ``(x, y)`` must match bit for
bit, as the exporting software writes the closing vertex as a copy of the
opening one. Data carrying rounding noise can opt into a tolerance.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any

from geojson import Feature
from geojson import FeatureCollection
from geojson import LineString

from minemodel_lib.constants import GEOJSON_COORDINATE_PRECISION
from minemodel_lib.constants import MAX_SURVEY_POINTS
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.enums import FeatureType
from minemodel_lib.fields import parse_float
from minemodel_lib.models import Coordinate
from minemodel_lib.models import PitPoint
from minemodel_lib.projection import CoordinateConverter

logger = logging.getLogger(__name__)

PitRecord = PitPoint | Mapping[str, Any]


def _xyz(point: PitRecord) -> tuple[Any, Any, Any]:
    if isinstance(point, PitPoint):
        return point.x, point.y, point.z
    return point.get("x"), point.get("y"), point.get("z")


def group_points_by_level(points: Iterable[PitRecord]) -> dict[float, list[Coordinate]]:
    """Group raw points by exact elevation, keeping file order.

    Points with a missing or non-numeric ``x``, ``y`` or ``z`` are dropped.
    Coordinates stay in the source projection.
    """
    levels: dict[float, list[Coordinate]] = {}
    for point in points:
        raw_x, raw_y, raw_z = _xyz(point)
        if raw_x is None or raw_y is None or raw_z is None:
            continue
        x, y, z = parse_float(raw_x), parse_float(raw_y), parse_float(raw_z)
        if x is None or y is None or z is None:
            logger.debug("Skipping non-numeric pit point: %r", point)
            continue
        levels.setdefault(z, []).append((x, y))
    return levels


def _matches(a: Coordinate, b: Coordinate, tolerance: float) -> bool:
    return abs(a[0] - b[0]) <= tolerance and abs(a[1] - b[1]) <= tolerance


def split_level_into_lines(
    coords: Sequence[Coordinate],
    tolerance: float | None = None,
) -> list[list[Coordinate]]:
    """Split one level's points into closed loops and a trailing open chain.

    The points are walked in order. When a point repeats one already in
    the current string, it closes a loop: the point is appended, the loop
    is emitted, and a new string starts. Points left over at the end form
    one open chain. Strings with fewer than two distinct points are
    discarded.

    Args:
        coords: ``(x, y)`` pairs of a single level, in file order
        tolerance: When set, points within this distance on both axes
            count as repeats; when None, only exact repeats do

    Returns:
        List of point lists (closed loops first-to-last, then the open
        remainder if any)
    """
    lines: list[list[Coordinate]] = []
    current: list[Coordinate] = []
    seen: set[Coordinate] = set()

    for coord in coords:
        if tolerance is None:
            is_repeat = coord in seen
        else:
            is_repeat = any(_matches(coord, other, tolerance) for other in current)

        if not is_repeat:
            current.append(coord)
            seen.add(coord)
            continue

        if len(current) > 1:
            lines.append([*current, coord])
        current = []
        seen = set()

    if len(current) > 1:
        lines.append(current)

    return lines


def process_pit_data_to_geojson(
    points: Sequence[PitRecord],
    source_projection: str = WGS84_CODE,
    converter: CoordinateConverter | None = None,
    tolerance: float | None = None,
) -> FeatureCollection:
    """Rebuild pit boundaries as WGS84 LineString features.

    Args:
        points: Pit STR points (:class:`PitPoint` or dicts with x, y, z)
        source_projection: Projection code of the points
        converter: Coordinate converter (a new one is created if None)
        tolerance: Optional repeat-detection tolerance, see
            :func:`split_level_into_lines`

    Returns:
        FeatureCollection of LineStrings with ``properties.level`` and
        ``properties.type == "pit_boundary"``; empty when nothing usable
        remains.
    """
    if not points:
        return FeatureCollection([])

    if converter is None:
        converter = CoordinateConverter()

    levels = group_points_by_level(points)
    if not levels:
        logger.warning("No valid pit data points after cleaning")
        return FeatureCollection([])

    logger.info(
        "Processing %d pit boundary points on %d levels from %s",
        sum(len(coords) for coords in levels.values()),
        len(levels),
        source_projection,
    )

    features: list[Feature] = []
    for level, coords in levels.items():
        for line in split_level_into_lines(coords, tolerance):
            wgs84_line = converter.convert_many(line, source_projection, WGS84_CODE)
            features.append(
                Feature(
                    geometry=LineString(
                        wgs84_line,
                        precision=GEOJSON_COORDINATE_PRECISION,
                    ),
                    properties={
                        "level": level,
                        "type": FeatureType.PIT_BOUNDARY.value,
                    },
                )
            )

    logger.info(
        "Created %d LineString features across %d levels",
        len(features),
        len({feature["properties"]["level"] for feature in features}),
    )
    return FeatureCollection(features)


def sample_pit_points(
    points: Sequence[PitRecord],
    max_points: int = MAX_SURVEY_POINTS,
) -> list[PitRecord]:
    """Stride-sample pit points down to at most ``max_points``.

    Note:
        Sampling can drop the repeated vertex that closes a loop; sampled
        data should only be used for previews.
    """
    if len(points) <= max_points:
        return list(points)
    step = math.ceil(len(points) / max_points)
    return list(points[::step])
