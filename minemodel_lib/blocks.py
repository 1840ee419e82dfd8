# -*- coding: utf-8 -*-
"""Block model to GeoJSON conversion.

A block model is a list of records, one per block, carrying a centroid,
block extents and one or more category attributes (rock type, grade
bins...). This module turns it into a FeatureCollection of rectangular
footprint polygons in WGS84, colored by the selected attribute.

Pipeline:
- Resolve column synonyms once for the dataset
- Normalize each record (centroid, dimensions, category value)
- Optionally keep only the top block of every (x, y) column
- Assign colors from the unfiltered set of category values
- Build one Polygon feature per block, converting corners to WGS84
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any

import orjson
from geojson import Feature
from geojson import FeatureCollection
from geojson import Polygon

from minemodel_lib.constants import BLOCK_COLOR_PALETTE
from minemodel_lib.constants import BOUNDING_BOX_BUFFER
from minemodel_lib.constants import DEFAULT_ATTRIBUTE_KEY
from minemodel_lib.constants import DEFAULT_BLOCK_DIMENSION
from minemodel_lib.constants import DEFAULT_MAP_ZOOM
from minemodel_lib.constants import DEFAULT_OPACITY
from minemodel_lib.constants import FALLBACK_COLOR
from minemodel_lib.constants import GEOJSON_COORDINATE_PRECISION
from minemodel_lib.constants import MAX_MAP_FEATURES
from minemodel_lib.constants import TOP_ELEVATION_MAP_ZOOM
from minemodel_lib.constants import UNKNOWN_CATEGORY
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.fields import BlockFieldMap
from minemodel_lib.fields import parse_float
from minemodel_lib.fields import resolve_block_fields
from minemodel_lib.models import BlockModelGeoJSONResult
from minemodel_lib.models import BoundingBox
from minemodel_lib.models import Coordinate
from minemodel_lib.projection import CoordinateConverter

logger = logging.getLogger(__name__)

#: Keys attached to normalized records for downstream coloring
ATTRIBUTE_KEY_FIELD = "_attributeKey"
ATTRIBUTE_VALUE_FIELD = "_attributeValue"

CustomColors = Mapping[str, Mapping[str, Any]]


# -----------------------------------------------------------------------------
# Colors
# -----------------------------------------------------------------------------


def palette_color(index: int) -> str:
    """Color of the ``index``-th category, cycling the fixed palette."""
    return BLOCK_COLOR_PALETTE[index % len(BLOCK_COLOR_PALETTE)]


def build_color_mapping(
    values: Iterable[Any],
    custom_colors: CustomColors | None = None,
) -> dict[str, dict[str, Any]]:
    """Assign a color and opacity to every distinct category value.

    Values are numbered by order of first appearance. A value listed in
    ``custom_colors`` uses its ``color`` / ``opacity`` entries; anything
    missing falls back to the palette and :data:`DEFAULT_OPACITY`.

    Args:
        values: Category values (duplicates allowed)
        custom_colors: Optional ``value -> {"color": ..., "opacity": ...}``

    Returns:
        ``value -> {"color": str, "opacity": float}``
    """
    custom_colors = custom_colors or {}
    unique_values = list(dict.fromkeys(str(value) for value in values))

    mapping: dict[str, dict[str, Any]] = {}
    for index, value in enumerate(unique_values):
        custom = custom_colors.get(value) or {}
        mapping[value] = {
            "color": custom.get("color") or palette_color(index),
            "opacity": (
                custom["opacity"]
                if custom.get("opacity") is not None
                else DEFAULT_OPACITY
            ),
        }
    return mapping


# -----------------------------------------------------------------------------
# Geometry
# -----------------------------------------------------------------------------


def build_block_ring(
    centroid_x: float,
    centroid_y: float,
    dim_x: float,
    dim_y: float,
) -> list[Coordinate]:
    """Footprint ring of a block, in the block's own projection.

    Corners are ordered bottom-left, bottom-right, top-right, top-left,
    followed by a copy of bottom-left to close the ring.
    """
    half_x = dim_x / 2
    half_y = dim_y / 2
    bottom_left = (centroid_x - half_x, centroid_y - half_y)
    return [
        bottom_left,
        (centroid_x + half_x, centroid_y - half_y),
        (centroid_x + half_x, centroid_y + half_y),
        (centroid_x - half_x, centroid_y + half_y),
        bottom_left,
    ]


def create_polygons_from_coords_and_dims(
    rows: Sequence[Mapping[str, Any]],
    long_col: str = "centroid_x",
    lat_col: str = "centroid_y",
    width_col: str = "dim_x",
    length_col: str = "dim_y",
    source_projection: str = WGS84_CODE,
    converter: CoordinateConverter | None = None,
) -> FeatureCollection:
    """Create one footprint Polygon feature per row.

    Rows whose position or extents are not numeric are skipped (and
    logged), never zero-filled. Each feature's properties are the row
    itself plus ``id``, the row's index in ``rows``.

    Args:
        rows: Records holding centroid and extent columns
        long_col: Column of the x / easting / longitude centroid
        lat_col: Column of the y / northing / latitude centroid
        width_col: Column of the x extent
        length_col: Column of the y extent
        source_projection: Projection code of the centroids
        converter: Coordinate converter (a new one is created if None)

    Returns:
        GeoJSON FeatureCollection of Polygons in WGS84
    """
    if converter is None:
        converter = CoordinateConverter()

    features: list[Feature] = []
    for index, row in enumerate(rows):
        x = parse_float(row.get(long_col))
        y = parse_float(row.get(lat_col))
        width = parse_float(row.get(width_col))
        length = parse_float(row.get(length_col))

        if x is None or y is None or width is None or length is None:
            logger.warning("Skipping invalid data row at index %d: %r", index, row)
            continue

        ring = build_block_ring(x, y, width, length)
        if source_projection != WGS84_CODE:
            ring = converter.convert_many(ring, source_projection, WGS84_CODE)

        features.append(
            Feature(
                geometry=Polygon(
                    [ring],
                    precision=GEOJSON_COORDINATE_PRECISION,
                ),
                properties={**row, "id": index},
            )
        )

    return FeatureCollection(features)


def remove_duplicate_geometries(collection: Mapping[str, Any]) -> FeatureCollection:
    """Drop features whose coordinates repeat an earlier feature's."""
    unique: dict[bytes, Any] = {}
    for feature in collection.get("features", []):
        key = orjson.dumps(feature["geometry"]["coordinates"])
        unique.setdefault(key, feature)
    return FeatureCollection(list(unique.values()))


def sample_features(
    collection: Mapping[str, Any],
    max_features: int = MAX_MAP_FEATURES,
) -> FeatureCollection:
    """Stride-sample a collection down to at most ``max_features`` features."""
    features = list(collection.get("features", []))
    if len(features) <= max_features:
        return FeatureCollection(features)

    step = math.ceil(len(features) / max_features)
    logger.info(
        "Sampling %d block features with step %d (limit %d)",
        len(features),
        step,
        max_features,
    )
    return FeatureCollection(features[::step])


# -----------------------------------------------------------------------------
# Normalization and Filtering
# -----------------------------------------------------------------------------


def _js_round(value: float) -> int:
    # Halves round up, matching the key convention of the exported data
    return math.floor(value + 0.5)


def normalize_block(
    row: Mapping[str, Any],
    fields: BlockFieldMap,
    attribute_key: str,
) -> dict[str, Any]:
    """Map one raw record onto the logical block fields."""
    category = fields.value(row, "category")
    if category is None or category == "":
        category = UNKNOWN_CATEGORY

    return {
        **row,
        "centroid_x": parse_float(fields.value(row, "centroid_x")),
        "centroid_y": parse_float(fields.value(row, "centroid_y")),
        "centroid_z": parse_float(fields.value(row, "centroid_z")),
        "dim_x": parse_float(fields.value(row, "dim_x")) or DEFAULT_BLOCK_DIMENSION,
        "dim_y": parse_float(fields.value(row, "dim_y")) or DEFAULT_BLOCK_DIMENSION,
        "dim_z": parse_float(fields.value(row, "dim_z")) or DEFAULT_BLOCK_DIMENSION,
        DEFAULT_ATTRIBUTE_KEY: str(category),
        ATTRIBUTE_KEY_FIELD: attribute_key,
        ATTRIBUTE_VALUE_FIELD: str(category),
    }


def normalize_blocks(
    data: Sequence[Mapping[str, Any]],
    attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
) -> list[dict[str, Any]]:
    """Normalize a whole dataset, resolving column synonyms once."""
    if not data:
        return []
    fields = resolve_block_fields(data, attribute_key)
    selected = fields.category or attribute_key
    logger.debug("Resolved block fields: %s", fields)
    return [normalize_block(row, fields, selected) for row in data]


def filter_top_elevation_blocks(
    blocks: Iterable[Mapping[str, Any]],
) -> list[Mapping[str, Any]]:
    """Keep only the highest block of every ``(x, y)`` column.

    Columns are keyed on the integer-rounded centroid. Blocks without a
    numeric ``centroid_x``, ``centroid_y`` or ``centroid_z`` are dropped.
    """
    top_blocks: dict[str, Mapping[str, Any]] = {}
    for block in blocks:
        x = parse_float(block.get("centroid_x"))
        y = parse_float(block.get("centroid_y"))
        z = parse_float(block.get("centroid_z"))
        if x is None or y is None or z is None:
            continue

        key = f"{_js_round(x)}_{_js_round(y)}"
        current = top_blocks.get(key)
        if current is None or z > parse_float(current.get("centroid_z")):
            top_blocks[key] = block

    return list(top_blocks.values())


def create_bounding_box_from_block_model(
    data: Sequence[Mapping[str, Any]],
    buffer: float = BOUNDING_BOX_BUFFER,
) -> BoundingBox | None:
    """Bounding box of the block centroids, grown by ``buffer``.

    Zero and non-numeric coordinates are ignored. Returns None when no
    usable coordinate remains.
    """
    if not data:
        return None

    fields = resolve_block_fields(data)
    xs = [
        x
        for row in data
        if (x := parse_float(fields.value(row, "centroid_x"))) is not None and x != 0
    ]
    ys = [
        y
        for row in data
        if (y := parse_float(fields.value(row, "centroid_y"))) is not None and y != 0
    ]
    if not xs or not ys:
        logger.warning("Could not extract valid coordinates from block model data")
        return None

    return BoundingBox(
        min_x=min(xs) - buffer,
        max_x=max(xs) + buffer,
        min_y=min(ys) - buffer,
        max_y=max(ys) + buffer,
    )


# -----------------------------------------------------------------------------
# Main Conversion Functions
# -----------------------------------------------------------------------------


def process_block_model(
    data: Sequence[Mapping[str, Any]],
    source_projection: str = WGS84_CODE,
    top_elevation_only: bool = False,
    attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
    custom_colors: CustomColors | None = None,
    converter: CoordinateConverter | None = None,
) -> FeatureCollection:
    """Convert block-model records to a colored Polygon FeatureCollection.

    Colors are assigned from the distinct category values of the full,
    unfiltered dataset, so a value keeps its color whether or not
    ``top_elevation_only`` is set.

    Args:
        data: Block-model records
        source_projection: Projection code of the centroids
        top_elevation_only: Keep only the top block of each column
        attribute_key: Category attribute (matched case-insensitively)
        custom_colors: Optional ``value -> {"color", "opacity"}`` overrides
        converter: Coordinate converter (a new one is created if None)

    Returns:
        GeoJSON FeatureCollection of block polygons in WGS84
    """
    normalized = normalize_blocks(data, attribute_key)
    if not normalized:
        return FeatureCollection([])

    selected_key = normalized[0][ATTRIBUTE_KEY_FIELD]
    color_map = build_color_mapping(
        (block[ATTRIBUTE_VALUE_FIELD] for block in normalized),
        custom_colors,
    )

    blocks: list[Mapping[str, Any]] = normalized
    if top_elevation_only:
        blocks = filter_top_elevation_blocks(normalized)
        logger.info(
            "Filtered %d blocks to %d top elevation blocks",
            len(normalized),
            len(blocks),
        )

    rows = []
    for block in blocks:
        row = dict(block)
        value = row.pop(ATTRIBUTE_VALUE_FIELD)
        row.pop(ATTRIBUTE_KEY_FIELD)
        style = color_map.get(
            value, {"color": FALLBACK_COLOR, "opacity": DEFAULT_OPACITY}
        )
        row["color"] = style["color"]
        row["opacity"] = style["opacity"]
        row["selectedAttributeKey"] = selected_key
        row["categoryValue"] = value
        rows.append(row)

    collection = create_polygons_from_coords_and_dims(
        rows,
        "centroid_x",
        "centroid_y",
        "dim_x",
        "dim_y",
        source_projection,
        converter,
    )
    logger.info(
        "Built %d block polygons from %d records (%d categories)",
        len(collection["features"]),
        len(data),
        len(color_map),
    )
    return collection


def block_model_to_geojson(
    data: Sequence[Mapping[str, Any]],
    source_projection: str = WGS84_CODE,
    top_elevation_only: bool = False,
    attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
    custom_colors: CustomColors | None = None,
    *,
    picked_attribute: Mapping[str, Sequence[str]] | None = None,
    converter: CoordinateConverter | None = None,
) -> BlockModelGeoJSONResult:
    """Convert a block model and compute the initial map view.

    Never raises: processing errors are logged and reported through
    ``BlockModelGeoJSONResult.error``.

    Args:
        data: Block-model records
        source_projection: Projection code of the centroids
        top_elevation_only: Keep only the top block of each column
        attribute_key: Category attribute
        custom_colors: Optional color overrides
        picked_attribute: ``attribute -> values`` selection; when given,
            its first key replaces ``attribute_key``
        converter: Coordinate converter

    Returns:
        BlockModelGeoJSONResult
    """
    if picked_attribute:
        attribute_key = next(iter(picked_attribute))
        logger.debug("Using attribute key: %s", attribute_key)

    try:
        collection = process_block_model(
            data,
            source_projection,
            top_elevation_only,
            attribute_key,
            custom_colors,
            converter,
        )
    except Exception as e:
        logger.exception("Error processing block model data")
        return BlockModelGeoJSONResult(
            geo_json_data=None,
            map_center=(0.0, 0.0),
            map_zoom=DEFAULT_MAP_ZOOM,
            is_export_enabled=False,
            error=str(e),
        )

    map_center: tuple[float, float] = (0.0, 0.0)
    features = collection["features"]
    if features:
        ring = features[0]["geometry"]["coordinates"][0]
        if ring:
            # Map libraries expect (lat, lng)
            lng, lat = ring[0][0], ring[0][1]
            map_center = (lat, lng)

    return BlockModelGeoJSONResult(
        geo_json_data=collection,
        map_center=map_center,
        map_zoom=TOP_ELEVATION_MAP_ZOOM if top_elevation_only else DEFAULT_MAP_ZOOM,
        is_export_enabled=len(features) > 0,
    )
