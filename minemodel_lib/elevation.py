# -*- coding: utf-8 -*-
"""Terrain elevation: preprocessing, IDW interpolation and section profiles.

Raw topography records come from STR files or CSV exports with loosely
named columns. :func:`process_elevation_data` normalizes them into
:class:`~minemodel_lib.models.ProcessedElevationPoint` instances carrying
WGS84 ``lng``/``lat``, which is what :func:`interpolate_elevation` and
:func:`generate_elevation_profile` consume.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from minemodel_lib.constants import DEFAULT_PROFILE_SAMPLES
from minemodel_lib.constants import ELEVATION_RANGE_PADDING
from minemodel_lib.constants import IDW_EXACT_MATCH_DISTANCE
from minemodel_lib.constants import IDW_POWER
from minemodel_lib.constants import IDW_SEARCH_RADIUS
from minemodel_lib.constants import MAX_SURVEY_POINTS
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.fields import detect_elevation_fields
from minemodel_lib.fields import parse_float
from minemodel_lib.geometry import geodesic_distance_meters
from minemodel_lib.models import BoundingBox
from minemodel_lib.models import ElevationRange
from minemodel_lib.models import PlanarPoint
from minemodel_lib.models import ProcessedElevationPoint
from minemodel_lib.models import ProfileSample
from minemodel_lib.projection import CoordinateConverter

logger = logging.getLogger(__name__)


def _as_record(point: Mapping[str, Any] | BaseModel) -> Mapping[str, Any]:
    if isinstance(point, BaseModel):
        return point.model_dump()
    return point


def detect_coordinate_fields(
    data: Sequence[Mapping[str, Any] | BaseModel],
) -> tuple[str, str, str]:
    """Detect the ``(lon, lat, elevation)`` column names from the first record."""
    if not data:
        return detect_elevation_fields(None)
    fields = detect_elevation_fields(_as_record(data[0]))
    logger.debug("Detected elevation fields - lon: %s, lat: %s, elev: %s", *fields)
    return fields


def _looks_geographic(x: float, y: float) -> bool:
    return abs(x) <= 180 and abs(y) <= 90


# -----------------------------------------------------------------------------
# Preprocessing
# -----------------------------------------------------------------------------


def filter_elevation_data_by_bbox(
    data: Sequence[Mapping[str, Any]],
    bbox: BoundingBox | None,
    lon_field: str = "lon",
    lat_field: str = "lat",
) -> list[Mapping[str, Any]]:
    """Keep the records whose coordinates fall inside ``bbox``.

    Records with non-numeric coordinates are dropped. A missing box keeps
    everything.
    """
    if not data or bbox is None:
        return list(data)

    filtered = []
    for point in data:
        x = parse_float(point.get(lon_field))
        y = parse_float(point.get(lat_field))
        if x is None or y is None:
            continue
        if bbox.contains(x, y):
            filtered.append(point)

    logger.info(
        "Filtered elevation data from %d to %d points", len(data), len(filtered)
    )
    return filtered


def process_elevation_data(
    data: Sequence[Mapping[str, Any] | BaseModel],
    source_projection: str = WGS84_CODE,
    lon_field: str | None = None,
    lat_field: str | None = None,
    elev_field: str | None = None,
    bbox: BoundingBox | None = None,
    max_points: int = MAX_SURVEY_POINTS,
    converter: CoordinateConverter | None = None,
) -> list[ProcessedElevationPoint]:
    """Normalize raw elevation records to WGS84 points.

    Args:
        data: Raw records (dicts or :class:`ElevationPoint`)
        source_projection: Projection code of the records
        lon_field: Longitude / easting column, detected when None
        lat_field: Latitude / northing column, detected when None
        elev_field: Elevation column, detected when None
        bbox: Optional box, in source units, to crop the records to
        max_points: Above this count the records are stride-sampled
        converter: Coordinate converter (a new one is created if None)

    Returns:
        Processed points. ``(0, 0)`` and non-numeric records are dropped.
        Points whose values already look like degrees are kept as-is even
        when the source projection is UTM.
    """
    if not data:
        logger.warning("No elevation data to process")
        return []

    if converter is None:
        converter = CoordinateConverter()

    records = [_as_record(point) for point in data]
    if lon_field is None or lat_field is None or elev_field is None:
        detected = detect_coordinate_fields(records)
        lon_field = lon_field or detected[0]
        lat_field = lat_field or detected[1]
        elev_field = elev_field or detected[2]

    if bbox is not None:
        records = filter_elevation_data_by_bbox(records, bbox, lon_field, lat_field)

    if len(records) > max_points:
        step = math.ceil(len(records) / max_points)
        logger.info("Sampling elevation data at rate 1/%d", step)
        records = records[::step]

    processed: list[ProcessedElevationPoint] = []
    dropped = 0
    for record in records:
        x = parse_float(record.get(lon_field))
        y = parse_float(record.get(lat_field))
        elevation = parse_float(record.get(elev_field))
        if x is None or y is None or elevation is None or (x == 0 and y == 0):
            dropped += 1
            continue

        if source_projection == WGS84_CODE or _looks_geographic(x, y):
            lng, lat = x, y
        else:
            lng, lat = converter.convert((x, y), source_projection, WGS84_CODE)

        processed.append(
            ProcessedElevationPoint(
                original=PlanarPoint(x=x, y=y),
                lng=lng,
                lat=lat,
                elevation=elevation,
            )
        )

    if dropped:
        logger.warning("Dropped %d invalid elevation points", dropped)
    logger.info("Completed elevation processing: %d points", len(processed))
    return processed


# -----------------------------------------------------------------------------
# Interpolation
# -----------------------------------------------------------------------------


def interpolate_elevation(
    lng: float,
    lat: float,
    points: Iterable[ProcessedElevationPoint],
    power: float = IDW_POWER,
    search_radius: float = IDW_SEARCH_RADIUS,
) -> float | None:
    """Inverse Distance Weighted elevation at ``(lng, lat)``.

    Only points within ``search_radius`` degrees on both axes take part.
    Weights are ``1 / d**power`` with ``d`` the Haversine distance in
    meters. A point closer than ``1e-7`` m wins outright.

    Returns:
        The interpolated elevation, or None when no point is in range.
    """
    nearby = [
        point
        for point in points
        if abs(point.lng - lng) < search_radius and abs(point.lat - lat) < search_radius
    ]

    if not nearby:
        return None
    if len(nearby) == 1:
        return nearby[0].elevation

    weight_sum = 0.0
    value_sum = 0.0
    for point in nearby:
        distance = geodesic_distance_meters((lng, lat), (point.lng, point.lat))
        if distance < IDW_EXACT_MATCH_DISTANCE:
            return point.elevation
        weight = 1 / distance**power
        weight_sum += weight
        value_sum += weight * point.elevation

    return value_sum / weight_sum


def generate_elevation_profile(
    points: Sequence[ProcessedElevationPoint],
    line: Sequence[Sequence[float]],
    sample_count: int = DEFAULT_PROFILE_SAMPLES,
    power: float = IDW_POWER,
    search_radius: float = IDW_SEARCH_RADIUS,
) -> list[ProfileSample]:
    """Sample terrain elevation at equally spaced points along a line.

    Samples are linearly interpolated in lng/lat between the first two
    line coordinates, endpoints included. ``distance`` is the geodesic
    offset from the start in meters.

    Args:
        points: Processed elevation points
        line: WGS84 ``[lng, lat]`` coordinates of the section line
        sample_count: Number of samples
        power: IDW power
        search_radius: IDW search radius, in degrees

    Returns:
        One :class:`ProfileSample` per sample, with ``elevation`` None and
        ``has_data`` False where no point is in range. Empty when there
        are no points or fewer than two line coordinates.
    """
    if not points or len(line) < 2 or sample_count < 1:
        return []

    start, end = line[0], line[1]
    line_length = geodesic_distance_meters(start, end)

    samples = []
    for i in range(sample_count):
        ratio = i / (sample_count - 1) if sample_count > 1 else 0.0
        lng = start[0] + ratio * (end[0] - start[0])
        lat = start[1] + ratio * (end[1] - start[1])
        elevation = interpolate_elevation(lng, lat, points, power, search_radius)
        samples.append(
            ProfileSample(
                lng=lng,
                lat=lat,
                distance=ratio * line_length,
                elevation=elevation,
                has_data=elevation is not None,
            )
        )

    logger.debug(
        "Elevation profile: %d/%d samples with data",
        sum(sample.has_data for sample in samples),
        len(samples),
    )
    return samples


# -----------------------------------------------------------------------------
# Chart Range
# -----------------------------------------------------------------------------


def _block_height(block: Any) -> float:
    height = getattr(block, "height", None)
    if height is None:
        height = block.dimensions[2]
    return height


def get_elevation_range(
    blocks: Iterable[Any],
    profile: Iterable[ProfileSample] | None = None,
    pit_points: Iterable[Any] | None = None,
    padding: float = ELEVATION_RANGE_PADDING,
) -> ElevationRange:
    """Vertical extent of a cross-section chart.

    Blocks contribute their top and bottom faces (``elevation ± height / 2``),
    profile samples and pit points their elevation. The range is padded on
    both sides; without any value it defaults to ``0..100``.
    """
    elevations: list[float] = []
    for block in blocks:
        half = _block_height(block) / 2
        elevations.extend([block.elevation + half, block.elevation - half])

    for sample in profile or ():
        if sample.elevation is not None:
            elevations.append(sample.elevation)

    for point in pit_points or ():
        elevations.append(point.elevation)

    elevations = [value for value in elevations if not math.isnan(value)]
    if not elevations:
        return ElevationRange(min=0, max=100)

    return ElevationRange(min=min(elevations) - padding, max=max(elevations) + padding)
