# -*- coding: utf-8 -*-
"""Projection registry and coordinate conversion.

Supported coordinate systems are geographic WGS84 (``EPSG:4326``) and the
WGS84 UTM zones 46 to 57 in both hemispheres (``EPSG:326xx`` north,
``EPSG:327xx`` south).

Conversion is fail-soft by default: an unknown code or a pyproj failure
is logged and the input is returned unchanged so a bad projection never
aborts a render. ``CoordinateConverter(strict=True)`` raises instead.

Output for ``EPSG:4326`` is always ``(longitude, latitude)`` (RFC 7946).
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from collections.abc import Sequence
from typing import Any

from pyproj import CRS
from pyproj import Transformer

from minemodel_lib.constants import GEOGRAPHIC_CACHE_PRECISION
from minemodel_lib.constants import PROJECTION_CACHE_PRECISION
from minemodel_lib.constants import PROJECTION_CACHE_SIZE
from minemodel_lib.constants import UTM_MAX_ZONE
from minemodel_lib.constants import UTM_MIN_ZONE
from minemodel_lib.constants import UTM_NORTH_EPSG_BASE
from minemodel_lib.constants import UTM_SOUTH_EPSG_BASE
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.enums import Hemisphere
from minemodel_lib.errors import InvalidCoordinateError
from minemodel_lib.errors import UnknownProjectionError
from minemodel_lib.models import Coordinate
from minemodel_lib.models import ProjectionInfo

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


def utm_code(zone: int, northern: bool = True) -> str:
    """Build the EPSG code of a WGS84 UTM zone.

    Args:
        zone: UTM zone number (1-60)
        northern: True for the northern hemisphere

    Returns:
        Code such as ``"EPSG:32652"``
    """
    base = UTM_NORTH_EPSG_BASE if northern else UTM_SOUTH_EPSG_BASE
    return f"EPSG:{base + zone}"


def _utm_definition(zone: int, hemisphere: Hemisphere) -> str:
    # Note: pyproj expects "WGS84" (no space) in proj4 strings
    south = "" if hemisphere.is_northern else " +south"
    return f"+proj=utm +zone={zone}{south} +datum=WGS84 +units=m +no_defs"


def _build_definitions() -> dict[str, str]:
    definitions = {WGS84_CODE: "+proj=longlat +datum=WGS84 +no_defs"}
    for zone in range(UTM_MIN_ZONE, UTM_MAX_ZONE + 1):
        for hemisphere in Hemisphere:
            code = utm_code(zone, northern=hemisphere.is_northern)
            definitions[code] = _utm_definition(zone, hemisphere)
    return definitions


#: Projection code -> PROJ4 definition
PROJECTION_DEFINITIONS: dict[str, str] = _build_definitions()


def _build_projection_list() -> list[ProjectionInfo]:
    projections = [
        ProjectionInfo(
            code=WGS84_CODE,
            name=f"WGS84 ({WGS84_CODE})",
            description="Standard GPS coordinates",
        )
    ]
    for hemisphere in Hemisphere:
        for zone in range(UTM_MIN_ZONE, UTM_MAX_ZONE + 1):
            code = utm_code(zone, northern=hemisphere.is_northern)
            projections.append(
                ProjectionInfo(
                    code=code,
                    name=f"UTM Zone {zone}{hemisphere.value} ({code})",
                    description=(
                        f"WGS84 / UTM zone {zone} "
                        f"({'North' if hemisphere.is_northern else 'South'})"
                    ),
                )
            )
    return projections


#: Registered projections, WGS84 first then northern and southern zones
PROJECTIONS: list[ProjectionInfo] = _build_projection_list()


def is_registered(code: str) -> bool:
    return code in PROJECTION_DEFINITIONS


def get_projection_info(code: str) -> ProjectionInfo | None:
    """Look up the display information of a registered projection."""
    for info in PROJECTIONS:
        if info.code == code:
            return info
    return None


# -----------------------------------------------------------------------------
# Converter
# -----------------------------------------------------------------------------


class CoordinateConverter:
    """Converts coordinate pairs between registered projections.

    Results are memoised by ``(from_code, to_code, x, y)`` with ``x`` and
    ``y`` rounded to 2 decimals (7 for WGS84 sources, whose units are
    degrees). The cache is a plain dict bounded at ``cache_size``
    entries; once exceeded, the oldest half (by insertion order) is
    dropped. A miss transforms the exact input; later calls
    sharing its rounded key get that same result back.

    Instances are not thread safe. Use one converter per worker thread.

    Args:
        cache_size: Maximum number of cached conversions
        strict: Raise instead of returning the input unchanged
    """

    def __init__(
        self,
        cache_size: int = PROJECTION_CACHE_SIZE,
        *,
        strict: bool = False,
    ) -> None:
        self.cache_size = cache_size
        self.strict = strict
        self._cache: dict[tuple[str, str, float, float], Coordinate] = {}
        self._transformers: dict[tuple[str, str], Transformer] = {}
        self.hits = 0
        self.misses = 0

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------

    @property
    def cache_info(self) -> dict[str, int]:
        return {
            "size": len(self._cache),
            "max_size": self.cache_size,
            "hits": self.hits,
            "misses": self.misses,
        }

    def clear_cache(self) -> None:
        self._cache.clear()
        self.hits = 0
        self.misses = 0

    def _store(self, key: tuple[str, str, float, float], value: Coordinate) -> None:
        self._cache[key] = value
        if len(self._cache) > self.cache_size:
            evict = len(self._cache) // 2
            for old_key in list(self._cache)[:evict]:
                del self._cache[old_key]
            logger.debug("Projection cache trimmed by %d entries", evict)

    def _get_transformer(self, from_code: str, to_code: str) -> Transformer:
        key = (from_code, to_code)
        if key not in self._transformers:
            self._transformers[key] = Transformer.from_crs(
                CRS.from_proj4(PROJECTION_DEFINITIONS[from_code]),
                CRS.from_proj4(PROJECTION_DEFINITIONS[to_code]),
                always_xy=True,
            )
        return self._transformers[key]

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def _unknown(self, code: str, point: Sequence[float]) -> Coordinate:
        if self.strict:
            raise UnknownProjectionError(code)
        logger.error("Unknown projection: %s", code)
        return (point[0], point[1])

    def convert(
        self,
        point: Sequence[float],
        from_code: str,
        to_code: str,
    ) -> Coordinate:
        """Convert one ``(x, y)`` pair.

        Args:
            point: Coordinates in the source projection
            from_code: Source projection code
            to_code: Target projection code

        Returns:
            Coordinates in the target projection. ``(lng, lat)`` when the
            target is WGS84.

        Raises:
            UnknownProjectionError: strict mode, unregistered code
            InvalidCoordinateError: strict mode, conversion failure
        """
        if point is None or len(point) < 2:
            if self.strict:
                raise InvalidCoordinateError(f"Invalid coordinates: {point!r}")
            logger.error("Invalid coordinates: %r", point)
            return (0.0, 0.0)

        if from_code == to_code:
            return (point[0], point[1])

        if not is_registered(from_code):
            return self._unknown(from_code, point)
        if not is_registered(to_code):
            return self._unknown(to_code, point)

        x, y = float(point[0]), float(point[1])
        precision = (
            GEOGRAPHIC_CACHE_PRECISION
            if from_code == WGS84_CODE
            else PROJECTION_CACHE_PRECISION
        )
        key = (from_code, to_code, round(x, precision), round(y, precision))
        hit = self._cache.get(key)
        if hit is not None:
            self.hits += 1
            return hit

        self.misses += 1
        try:
            out_x, out_y = self._get_transformer(from_code, to_code).transform(x, y)
        except Exception as e:
            if self.strict:
                raise InvalidCoordinateError(
                    f"Failed to convert ({x}, {y}) from {from_code} to {to_code}: {e}"
                ) from e
            logger.exception(
                "Error converting (%s, %s) from %s to %s", x, y, from_code, to_code
            )
            return (point[0], point[1])

        result = (float(out_x), float(out_y))
        self._store(key, result)
        return result

    def convert_many(
        self,
        points: Iterable[Sequence[float]],
        from_code: str,
        to_code: str,
    ) -> list[Coordinate]:
        """Convert a sequence of pairs element-wise."""
        return [self.convert(point, from_code, to_code) for point in points]

    def convert_geojson(
        self,
        geojson: dict[str, Any],
        from_code: str,
        to_code: str,
    ) -> dict[str, Any]:
        """Return a deep copy of a FeatureCollection with Polygon rings converted.

        Only Polygon geometries are converted; other geometries are copied
        unchanged.
        """
        result = copy.deepcopy(geojson)
        for feature in result.get("features", []):
            geometry = feature.get("geometry")
            if not geometry or geometry.get("type") != "Polygon":
                continue
            geometry["coordinates"] = [
                [list(self.convert(coord, from_code, to_code)) for coord in ring]
                for ring in geometry["coordinates"]
            ]
        return result


def convert_coordinates(
    point: Sequence[float],
    from_code: str,
    to_code: str,
    converter: CoordinateConverter | None = None,
) -> Coordinate:
    """Convenience wrapper around :meth:`CoordinateConverter.convert`."""
    if converter is None:
        converter = CoordinateConverter()
    return converter.convert(point, from_code, to_code)
