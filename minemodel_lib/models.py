# -*- coding: utf-8 -*-
"""Core data models for mining survey processing.

Input records (pit / elevation points) and the derived cross-section
structures are Pydantic models. Derived models serialize with camelCase
aliases (``model_dump(by_alias=True)``) because that is the shape the
rendering layer consumes.
"""

from __future__ import annotations

from typing import Annotated
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic.alias_generators import to_camel

from minemodel_lib.constants import DEFAULT_MAP_ZOOM
from minemodel_lib.constants import PIT_BOUNDARY_TYPE
from minemodel_lib.errors import ProcessingWarning

Coordinate = tuple[float, float]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Projections
# -----------------------------------------------------------------------------


class ProjectionInfo(BaseModel):
    """A registered coordinate system, as listed to users."""

    code: Annotated[str, Field(pattern=r"^EPSG:\d+$")]
    name: str
    description: str = ""


# -----------------------------------------------------------------------------
# Input Records
# -----------------------------------------------------------------------------


class PitPoint(BaseModel):
    """One row of a pit-boundary STR file.

    The STR format has six positional columns:
    ``interior, x, y, z, none, type``. Only ``x``, ``y`` and ``z`` are
    used for reconstruction; they stay ``None`` when the column is blank.
    """

    interior: int | float | str | None = None
    x: float | None = None
    y: float | None = None
    z: float | None = None
    none: int | float | str | None = None
    type: int | float | str | None = None

    @field_validator("x", "y", "z", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_complete(self) -> bool:
        return self.x is not None and self.y is not None and self.z is not None


class ElevationPoint(BaseModel):
    """One row of a topography STR file, as parsed.

    Note:
        STR rows list northing before easting; they are read into ``lat``
        and ``lon`` respectively, whatever the projection.
    """

    id: int = 1
    lat: float = 0.0
    lon: float = 0.0
    z: float = 0.0
    desc: str = ""


class PlanarPoint(BaseModel):
    x: float
    y: float


class ProcessedElevationPoint(BaseModel):
    """Elevation point with WGS84 coordinates attached."""

    original: PlanarPoint
    lng: float
    lat: float
    elevation: float


class BoundingBox(_CamelModel):
    """Axis-aligned box in source projection units."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


# -----------------------------------------------------------------------------
# Block Model Output
# -----------------------------------------------------------------------------


class BlockModelGeoJSONResult(_CamelModel):
    """Block model rendered for the map layer.

    Attributes:
        geo_json_data: FeatureCollection of block polygons, or None on failure
        map_center: Initial map center as ``[lat, lng]``
        map_zoom: Initial zoom level
        is_export_enabled: True when at least one feature was produced
        error: Error message when processing failed
    """

    geo_json_data: Any = None
    map_center: tuple[float, float] = (0.0, 0.0)
    map_zoom: int = DEFAULT_MAP_ZOOM
    is_export_enabled: bool = False
    error: str | None = None


# -----------------------------------------------------------------------------
# Cross Section Output
# -----------------------------------------------------------------------------


class BlockProperties(BaseModel):
    rock: str
    color: str


class BlockSegment(_CamelModel):
    """A block crossed by the section line.

    ``distance`` and ``width`` are planar, in the section line's
    coordinate space.
    """

    centroid: tuple[float, float, float]
    dimensions: tuple[float, float, float]
    properties: BlockProperties
    distance: float
    width: float
    elevation: float
    projected_point: Coordinate
    entry_point: Coordinate
    exit_point: Coordinate


class ProjectedBlockSegment(_CamelModel):
    """A block crossed by the section line, measured in projection units."""

    distance: float
    width: float
    height: float
    elevation: float
    rock: str
    color: str | None = None


class PitIntersection(_CamelModel):
    """A pit-boundary crossing; ``distance`` is geodesic, in meters."""

    point: Coordinate
    distance: float
    elevation: float
    type: str = PIT_BOUNDARY_TYPE


class PitProfilePoint(_CamelModel):
    distance: float
    elevation: float


class ProfileSample(_CamelModel):
    """One terrain sample along the section line (geodesic distance)."""

    lng: float
    lat: float
    distance: float
    elevation: float | None
    has_data: bool


class ElevationRange(BaseModel):
    min: float
    max: float


class CrossSectionResult(_CamelModel):
    """Blocks intersected by a section line."""

    blocks: list[BlockSegment] = Field(default_factory=list)
    line_length: float
    start_point: Coordinate
    end_point: Coordinate


class CrossSectionReport(_CamelModel):
    """Everything the section chart needs, with partial-failure warnings."""

    section: CrossSectionResult | None = None
    elevation_profile: list[ProfileSample] | None = None
    pit_intersections: list[PitIntersection] = Field(default_factory=list)
    warnings: list[ProcessingWarning] = Field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
