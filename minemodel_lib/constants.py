# -*- coding: utf-8 -*-
"""Constants used throughout the minemodel_lib library.

This module centralizes all constant values to ensure consistency
and avoid magic numbers/strings scattered across the codebase.
"""

# -----------------------------------------------------------------------------
# Encodings
# -----------------------------------------------------------------------------

#: Encoding used for JSON / GeoJSON files
JSON_ENCODING = "utf-8"

#: Encoding used when reading CSV and STR survey exports
SURVEY_ENCODING = "utf-8"

# -----------------------------------------------------------------------------
# Coordinate Systems
# -----------------------------------------------------------------------------

#: Geographic WGS84 code; every geometry handed to renderers uses it
WGS84_CODE: str = "EPSG:4326"

#: Supported UTM zone range (inclusive)
UTM_MIN_ZONE: int = 46
UTM_MAX_ZONE: int = 57

#: EPSG prefixes for WGS84 / UTM north and south
UTM_NORTH_EPSG_BASE: int = 32600
UTM_SOUTH_EPSG_BASE: int = 32700

#: Bound of the projection conversion cache
PROJECTION_CACHE_SIZE: int = 5000

#: Decimal places used to build projection cache keys (projected sources)
PROJECTION_CACHE_PRECISION: int = 2

#: Decimal places of cache keys for geographic sources (~1 cm)
GEOGRAPHIC_CACHE_PRECISION: int = 7

#: Decimal precision of generated GeoJSON coordinates
GEOJSON_COORDINATE_PRECISION: int = 7

#: Mean Earth radius used by the Haversine formula (meters)
EARTH_RADIUS_M: float = 6_371_000.0

#: Rough meters per degree, used by corridor filters on WGS84 data
METERS_PER_DEGREE: float = 111_000.0

# -----------------------------------------------------------------------------
# Block Model
# -----------------------------------------------------------------------------

#: Category attribute used when the caller does not pick one
DEFAULT_ATTRIBUTE_KEY: str = "rock"

#: Category value for rows without one
UNKNOWN_CATEGORY: str = "Unknown"

#: Block extent used when a row carries no dimension column
DEFAULT_BLOCK_DIMENSION: float = 12.5

#: Vertical extent used by the cross-section when dim_z is missing
DEFAULT_BLOCK_HEIGHT: float = 1.0

#: Polygon fill opacity when no custom opacity is supplied
DEFAULT_OPACITY: float = 0.7

#: Fallback color when a category has no mapping
FALLBACK_COLOR: str = "#aaaaaa"

#: Color of cross-section blocks without a color property
CROSS_SECTION_FALLBACK_COLOR: str = "#FFFFFF"

#: Fixed categorical palette, cycled by index of first appearance
BLOCK_COLOR_PALETTE: tuple[str, ...] = (
    "#75499c",
    "#b40c0d",
    "#045993",
    "#db6000",
    "#118011",
    "#6d392e",
    "#c059a1",
    "#606060",
    "#9b9c07",
    "#009dad",
    "#8ea6c5",
    "#db9a5a",
    "#78bd6b",
    "#db7876",
    "#a48fb3",
    "#a37c75",
    "#d495b0",
    "#a6a6a6",
    "#b9b96e",
    "#7eb8c2",
)

#: Map zoom for the full block model / for the top-elevation view
DEFAULT_MAP_ZOOM: int = 12
TOP_ELEVATION_MAP_ZOOM: int = 14

#: Buffer added around the block-model bounding box (projection units)
BOUNDING_BOX_BUFFER: float = 50.0

# -----------------------------------------------------------------------------
# Data Volume Thresholds
# -----------------------------------------------------------------------------

#: Maximum block features handed to the map layer
MAX_MAP_FEATURES: int = 5000

#: Maximum pit / elevation points processed before stride sampling
MAX_SURVEY_POINTS: int = 10000

# -----------------------------------------------------------------------------
# Cross Section
# -----------------------------------------------------------------------------

#: Feature type tag for reconstructed pit boundaries
PIT_BOUNDARY_TYPE: str = "pit_boundary"

#: Feature type tag for the user-drawn section line
CROSS_SECTION_LINE_TYPE: str = "cross-section-line"

#: Samples taken along the section line for the terrain profile
DEFAULT_PROFILE_SAMPLES: int = 100
CROSS_SECTION_PROFILE_SAMPLES: int = 500

#: IDW search radius in degrees and weighting power
IDW_SEARCH_RADIUS: float = 0.001
IDW_POWER: float = 2.0

#: Distance below which an IDW source point is an exact match (meters)
IDW_EXACT_MATCH_DISTANCE: float = 1e-7

#: Corridor half-widths (meters) used to pre-filter data around a line
ELEVATION_CORRIDOR_WIDTH: float = 100.0
PIT_CORRIDOR_WIDTH: float = 150.0
BLOCK_CORRIDOR_WIDTH: float = 1000.0

#: Padding applied to the elevation range of a section chart (meters)
ELEVATION_RANGE_PADDING: float = 20.0
