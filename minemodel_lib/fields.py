# -*- coding: utf-8 -*-
"""Column resolution for block-model and elevation records.

Survey exports name the same quantity in many ways (``centroid_x``,
``x``, ``X``, ``easting``...). Each logical field has an ordered list of
candidate column names; the first one present in the dataset wins. The
lookup is done once per dataset, not per row.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from minemodel_lib.constants import DEFAULT_ATTRIBUTE_KEY

#: Logical block field -> candidate column names, by priority
BLOCK_FIELD_CANDIDATES: dict[str, tuple[str, ...]] = {
    "centroid_x": ("centroid_x", "x", "X", "easting", "xc"),
    "centroid_y": ("centroid_y", "y", "Y", "northing", "yc"),
    "centroid_z": ("centroid_z", "z", "Z", "elevation", "zc"),
    "dim_x": ("dim_x", "xinc", "width", "block_size"),
    "dim_y": ("dim_y", "yinc", "length", "block_size"),
    "dim_z": ("dim_z", "zinc", "height", "block_size"),
}

#: Candidate columns for the default category attribute
CATEGORY_CANDIDATES: tuple[str, ...] = ("rock", "rock_type", "material")

#: Candidate columns for elevation points (compared lower-case)
ELEVATION_FIELD_CANDIDATES: dict[str, tuple[str, ...]] = {
    "lon": ("lon", "longitude", "x", "easting", "lng"),
    "lat": ("lat", "latitude", "y", "northing"),
    "elevation": ("z", "elevation", "elev", "height", "alt", "altitude"),
}

#: Geometry / indexing columns that are never offered as category attributes
NON_ATTRIBUTE_KEYS: frozenset[str] = frozenset(
    {
        "centroid_x", "centroid_y", "centroid_z",
        "x", "y", "z",
        "xc", "yc", "zc",
        "dim_x", "dim_y", "dim_z",
        "xinc", "yinc", "zinc",
        "xmorig", "ymorig", "zmorig",
        "x0", "y0", "z0",
        "nx", "ny", "nz",
        "ijk", "ix", "iy", "iz",
    }
)  # fmt: skip


def parse_float(value: Any) -> float | None:
    """Parse a numeric cell, returning None for blanks and non-numbers."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def _collect_keys(rows: Iterable[Mapping[str, Any]], sample_size: int) -> list[str]:
    keys: dict[str, None] = {}
    for index, row in enumerate(rows):
        if index >= sample_size:
            break
        keys.update(dict.fromkeys(row))
    return list(keys)


def pick_field(keys: Iterable[str], candidates: Iterable[str]) -> str | None:
    """Return the first candidate present in ``keys``."""
    available = set(keys)
    for candidate in candidates:
        if candidate in available:
            return candidate
    return None


@dataclass(frozen=True)
class BlockFieldMap:
    """Resolved column names for a block-model dataset."""

    centroid_x: str | None
    centroid_y: str | None
    centroid_z: str | None
    dim_x: str | None
    dim_y: str | None
    dim_z: str | None
    category: str | None

    def value(self, row: Mapping[str, Any], field: str) -> Any:
        column = getattr(self, field)
        if column is None:
            return None
        return row.get(column)


def resolve_block_fields(
    rows: Iterable[Mapping[str, Any]],
    attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
    sample_size: int = 10,
) -> BlockFieldMap:
    """Resolve block-model columns from the first rows of a dataset.

    Args:
        rows: Block-model records
        attribute_key: Category attribute selected by the caller; when it is
            the default ``rock``, the ``rock_type`` / ``material`` synonyms
            are tried too
        sample_size: Number of leading rows scanned for column names

    Returns:
        BlockFieldMap
    """
    keys = _collect_keys(rows, sample_size)
    mapping = {
        name: pick_field(keys, candidates)
        for name, candidates in BLOCK_FIELD_CANDIDATES.items()
    }
    resolved_key = resolve_attribute_key(attribute_key, keys)
    if resolved_key == DEFAULT_ATTRIBUTE_KEY or resolved_key not in keys:
        category = pick_field(keys, (resolved_key, *CATEGORY_CANDIDATES))
    else:
        category = resolved_key
    return BlockFieldMap(category=category, **mapping)


def resolve_attribute_key(attribute_key: str, keys: Iterable[str]) -> str:
    """Match ``attribute_key`` case-insensitively against ``keys``.

    Returns the dataset's spelling of the key, or ``attribute_key``
    unchanged when nothing matches.
    """
    keys = list(keys)
    if attribute_key in keys:
        return attribute_key
    lowered = attribute_key.lower()
    for key in keys:
        if key.lower() == lowered:
            return key
    return attribute_key


def extract_block_attributes(sample_block: Mapping[str, Any]) -> list[str]:
    """List the category attributes of a block record.

    Coordinates and grid-indexing columns are excluded.
    """
    return [key for key in sample_block if key not in NON_ATTRIBUTE_KEYS]


def string_fields_with_unique_values(
    rows: Iterable[Mapping[str, Any]],
) -> dict[str, list[str]]:
    """Collect the distinct values of every string-typed column.

    Values keep their order of first appearance.
    """
    fields: dict[str, dict[str, None]] = {}
    for row in rows:
        for key, value in row.items():
            if isinstance(value, str):
                fields.setdefault(key, {})[value] = None
    return {key: list(values) for key, values in fields.items()}


def detect_elevation_fields(
    sample_row: Mapping[str, Any] | None,
) -> tuple[str, str, str]:
    """Detect the ``(lon, lat, elevation)`` columns of elevation records.

    Matching is case-insensitive; defaults are ``lon``, ``lat`` and ``z``.
    """
    defaults = ("lon", "lat", "z")
    if not sample_row:
        return defaults

    keys = list(sample_row)
    detected = []
    for candidates, default in zip(
        ELEVATION_FIELD_CANDIDATES.values(), defaults, strict=True
    ):
        match = next((key for key in keys if key.lower() in candidates), None)
        detected.append(match or default)
    return detected[0], detected[1], detected[2]
