# -*- coding: utf-8 -*-
"""Mining Block Model Library.

A Python library that turns mining survey data (block-model CSVs,
pit-boundary and topography STR files) expressed in UTM or WGS84 into
WGS84 GeoJSON, and extracts cross-section profiles along a line.

Usage:
    from minemodel_lib import CoordinateConverter
    from minemodel_lib import build_cross_section
    from minemodel_lib import process_block_model
    from minemodel_lib import read_block_model_csv

    converter = CoordinateConverter()
    blocks = read_block_model_csv(Path("model.csv"))
    geojson = process_block_model(blocks, "EPSG:32652", converter=converter)

    report = build_cross_section(geojson, [(129.001, -0.995), (129.004, -0.993)])
    for block in report.section.blocks:
        print(block.properties.rock, block.distance, block.width)
"""

__version__ = "0.1.0"

# Constants
from minemodel_lib.constants import BLOCK_COLOR_PALETTE
from minemodel_lib.constants import WGS84_CODE

# Enums
from minemodel_lib.enums import CrossSectionStage
from minemodel_lib.enums import FeatureType
from minemodel_lib.enums import FileFormat
from minemodel_lib.enums import Hemisphere
from minemodel_lib.enums import Severity

# Errors
from minemodel_lib.errors import ConversionError
from minemodel_lib.errors import InvalidCoordinateError
from minemodel_lib.errors import InvalidInputError
from minemodel_lib.errors import MineModelError
from minemodel_lib.errors import ProcessingWarning
from minemodel_lib.errors import UnknownProjectionError

# Models
from minemodel_lib.models import BlockModelGeoJSONResult
from minemodel_lib.models import BlockSegment
from minemodel_lib.models import BoundingBox
from minemodel_lib.models import CrossSectionReport
from minemodel_lib.models import CrossSectionResult
from minemodel_lib.models import ElevationPoint
from minemodel_lib.models import PitIntersection
from minemodel_lib.models import PitPoint
from minemodel_lib.models import ProcessedElevationPoint
from minemodel_lib.models import ProfileSample
from minemodel_lib.models import ProjectionInfo

# Projections
from minemodel_lib.projection import PROJECTIONS
from minemodel_lib.projection import CoordinateConverter
from minemodel_lib.projection import convert_coordinates

# Processing
from minemodel_lib.blocks import block_model_to_geojson
from minemodel_lib.blocks import filter_top_elevation_blocks
from minemodel_lib.blocks import process_block_model
from minemodel_lib.pit import process_pit_data_to_geojson
from minemodel_lib.elevation import generate_elevation_profile
from minemodel_lib.elevation import process_elevation_data
from minemodel_lib.cross_section import build_cross_section
from minemodel_lib.cross_section import calculate_cross_section
from minemodel_lib.cross_section import find_pit_intersections

# I/O
from minemodel_lib.io import read_block_model_csv
from minemodel_lib.io import read_elevation_str
from minemodel_lib.io import read_pit_str

__all__ = [
    # Constants
    "BLOCK_COLOR_PALETTE",
    "WGS84_CODE",
    # Enums
    "CrossSectionStage",
    "FeatureType",
    "FileFormat",
    "Hemisphere",
    "Severity",
    # Errors
    "ConversionError",
    "InvalidCoordinateError",
    "InvalidInputError",
    "MineModelError",
    "ProcessingWarning",
    "UnknownProjectionError",
    # Models
    "BlockModelGeoJSONResult",
    "BlockSegment",
    "BoundingBox",
    "CrossSectionReport",
    "CrossSectionResult",
    "ElevationPoint",
    "PitIntersection",
    "PitPoint",
    "ProcessedElevationPoint",
    "ProfileSample",
    "ProjectionInfo",
    # Projections
    "PROJECTIONS",
    "CoordinateConverter",
    "convert_coordinates",
    # Processing
    "block_model_to_geojson",
    "filter_top_elevation_blocks",
    "process_block_model",
    "process_pit_data_to_geojson",
    "generate_elevation_profile",
    "process_elevation_data",
    "build_cross_section",
    "calculate_cross_section",
    "find_pit_intersections",
    # I/O
    "read_block_model_csv",
    "read_elevation_str",
    "read_pit_str",
]
