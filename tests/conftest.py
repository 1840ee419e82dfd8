# -*- coding: utf-8 -*-
"""Pytest configuration and fixtures.

This module provides small synthetic datasets shared by the test modules:
block-model rows, pit-boundary points, elevation points and the
corresponding WGS84 geometries.
"""

from __future__ import annotations

import logging

import pytest

from minemodel_lib.models import PlanarPoint
from minemodel_lib.models import ProcessedElevationPoint
from minemodel_lib.projection import CoordinateConverter

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


# =============================================================================
# Constants
# =============================================================================

UTM_52N = "EPSG:32652"
UTM_50S = "EPSG:32750"

#: Origin of the synthetic WGS84 datasets (lng, lat)
ORIGIN_LNG = 110.0
ORIGIN_LAT = -1.0


# =============================================================================
# Helpers
# =============================================================================


def square_ring(x: float, y: float, size: float) -> list[list[float]]:
    """Closed square ring with its bottom-left corner at ``(x, y)``."""
    return [
        [x, y],
        [x + size, y],
        [x + size, y + size],
        [x, y + size],
        [x, y],
    ]


def block_feature(ring: list[list[float]], **properties) -> dict:
    """Minimal block Polygon feature."""
    return {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [ring]},
        "properties": properties,
    }


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def converter() -> CoordinateConverter:
    """Return a fresh converter (empty cache)."""
    return CoordinateConverter()


@pytest.fixture
def utm_block_rows() -> list[dict]:
    """Two stacked blocks and a neighbour, in UTM zone 52N."""
    return [
        {
            "centroid_x": 500000.0,
            "centroid_y": 1000000.0,
            "centroid_z": 100.0,
            "dim_x": 10.0,
            "dim_y": 10.0,
            "dim_z": 10.0,
            "rock": "ore",
        },
        {
            "centroid_x": 500000.0,
            "centroid_y": 1000000.0,
            "centroid_z": 90.0,
            "dim_x": 10.0,
            "dim_y": 10.0,
            "dim_z": 10.0,
            "rock": "waste",
        },
        {
            "centroid_x": 500010.0,
            "centroid_y": 1000000.0,
            "centroid_z": 100.0,
            "dim_x": 10.0,
            "dim_y": 10.0,
            "dim_z": 10.0,
            "rock": "waste",
        },
    ]


@pytest.fixture
def synonym_block_rows() -> list[dict]:
    """Block rows using alternative column names."""
    return [
        {"X": 10.0, "Y": 20.0, "Z": 5.0, "xinc": 2.0, "yinc": 2.0, "zinc": 1.0,
         "Rock_Type": "granite"},
        {"X": 12.0, "Y": 20.0, "Z": 5.0, "xinc": 2.0, "yinc": 2.0, "zinc": 1.0,
         "Rock_Type": "basalt"},
    ]  # fmt: skip


@pytest.fixture
def pit_square() -> list[dict]:
    """A closed square pit string at level 50 (closing point included)."""
    return [
        {"x": ORIGIN_LNG, "y": ORIGIN_LAT, "z": 50},
        {"x": ORIGIN_LNG + 0.01, "y": ORIGIN_LAT, "z": 50},
        {"x": ORIGIN_LNG + 0.01, "y": ORIGIN_LAT + 0.01, "z": 50},
        {"x": ORIGIN_LNG, "y": ORIGIN_LAT + 0.01, "z": 50},
        {"x": ORIGIN_LNG, "y": ORIGIN_LAT, "z": 50},
    ]


@pytest.fixture
def elevation_grid() -> list[ProcessedElevationPoint]:
    """A 5 x 5 grid of terrain points, 0.0005 degrees apart.

    The elevation rises 1 m per column (eastwards).
    """
    points = []
    for i in range(5):
        for j in range(5):
            lng = ORIGIN_LNG + i * 0.0005
            lat = ORIGIN_LAT + j * 0.0005
            points.append(
                ProcessedElevationPoint(
                    original=PlanarPoint(x=lng, y=lat),
                    lng=lng,
                    lat=lat,
                    elevation=100.0 + i,
                )
            )
    return points


@pytest.fixture
def block_collection() -> dict:
    """Two unit blocks on the x axis (out of order) and one block off it."""
    return {
        "type": "FeatureCollection",
        "features": [
            block_feature(
                square_ring(2.0, 0.0, 1.0),
                rock="waste", color="#b40c0d", centroid_z=90, dim_z=10,
            ),
            block_feature(
                square_ring(0.0, 0.0, 1.0),
                rock="ore", color="#75499c", centroid_z=100, dim_z=10,
            ),
            block_feature(square_ring(0.0, 5.0, 1.0), rock="ore", centroid_z=80),
        ],
    }  # fmt: skip
