# -*- coding: utf-8 -*-
"""Enumerations for mining survey data.

This module contains the enumerations shared by the projection registry,
the GeoJSON builders, the cross-section engine and the file readers.
"""

from enum import Enum

from minemodel_lib.constants import CROSS_SECTION_LINE_TYPE
from minemodel_lib.constants import PIT_BOUNDARY_TYPE


class FileFormat(str, Enum):
    """Survey file formats understood by the readers.

    Attributes:
        BLOCK_MODEL: Block-model CSV export
        PIT: Pit-boundary STR string file
        ELEVATION: Topography / LiDAR STR file
        GEOJSON: GeoJSON output
    """

    BLOCK_MODEL = "block_model"
    PIT = "pit"
    ELEVATION = "elevation"
    GEOJSON = "geojson"

    @classmethod
    def from_extension(cls, ext: str) -> "FileFormat | None":
        """Guess the format from a file extension.

        Args:
            ext: File extension (with or without dot, case-insensitive)

        Returns:
            FileFormat or None if not recognized
        """
        ext_lower = ext.lower().lstrip(".")
        mapping = {
            "csv": cls.BLOCK_MODEL,
            "str": cls.PIT,
            "geojson": cls.GEOJSON,
            "json": cls.GEOJSON,
        }
        return mapping.get(ext_lower)


class Hemisphere(str, Enum):
    """Hemisphere of a UTM zone."""

    NORTH = "N"
    SOUTH = "S"

    @property
    def is_northern(self) -> bool:
        return self is Hemisphere.NORTH


class FeatureType(str, Enum):
    """Values of ``properties.type`` on generated features."""

    PIT_BOUNDARY = PIT_BOUNDARY_TYPE
    CROSS_SECTION_LINE = CROSS_SECTION_LINE_TYPE


class Severity(str, Enum):
    """Severity level for processing warnings.

    Attributes:
        ERROR: A stage produced no result
        WARNING: Non-fatal, partial results are still usable
    """

    ERROR = "error"
    WARNING = "warning"


class CrossSectionStage(str, Enum):
    """Independent sub-computations of a cross section."""

    BLOCKS = "blocks"
    PIT = "pit"
    ELEVATION = "elevation"
