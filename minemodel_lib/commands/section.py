# -*- coding: utf-8 -*-
"""Cross-section command.

Cuts a block model (and optionally pit boundaries and terrain) along a
straight line given by two WGS84 endpoints, and writes the chart data as
JSON.
"""

import argparse
import logging
from pathlib import Path
from typing import Any

from minemodel_lib.blocks import create_bounding_box_from_block_model
from minemodel_lib.blocks import process_block_model
from minemodel_lib.constants import CROSS_SECTION_PROFILE_SAMPLES
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.cross_section import build_cross_section
from minemodel_lib.cross_section import calculate_projected_block_intersections
from minemodel_lib.cross_section import pit_profile_points
from minemodel_lib.elevation import get_elevation_range
from minemodel_lib.elevation import process_elevation_data
from minemodel_lib.errors import ConversionError
from minemodel_lib.errors import MineModelError
from minemodel_lib.io import read_block_model_csv
from minemodel_lib.io import read_elevation_str
from minemodel_lib.io import read_pit_str
from minemodel_lib.io import write_json
from minemodel_lib.pit import process_pit_data_to_geojson
from minemodel_lib.projection import CoordinateConverter
from minemodel_lib.projection import is_registered

logger = logging.getLogger(__name__)


def compute_section(
    block_path: Path,
    start: tuple[float, float],
    end: tuple[float, float],
    *,
    source_projection: str = WGS84_CODE,
    pit_path: Path | None = None,
    elevation_path: Path | None = None,
    sample_count: int = CROSS_SECTION_PROFILE_SAMPLES,
) -> dict[str, Any]:
    """Compute cross-section chart data from survey files.

    Args:
        block_path: Block-model CSV
        start: Line start as WGS84 ``(lng, lat)``
        end: Line end as WGS84 ``(lng, lat)``
        source_projection: Projection code of the survey files
        pit_path: Optional pit-boundary STR
        elevation_path: Optional topography STR
        sample_count: Number of terrain profile samples

    Returns:
        JSON-ready dict with the section report, the block segments in
        projection units, the pit profile and the chart elevation range.

    Raises:
        ConversionError: If the projection is not supported
        InvalidInputError: If an input file cannot be read
    """
    if not is_registered(source_projection):
        raise ConversionError(f"Unknown projection: `{source_projection}`")

    converter = CoordinateConverter()
    blocks = read_block_model_csv(block_path)
    block_geojson = process_block_model(
        blocks, source_projection, converter=converter
    )

    pit_collection = None
    if pit_path is not None:
        pit_collection = process_pit_data_to_geojson(
            read_pit_str(pit_path), source_projection, converter=converter
        )

    elevation_points = None
    if elevation_path is not None:
        elevation_points = process_elevation_data(
            read_elevation_str(elevation_path),
            source_projection,
            bbox=create_bounding_box_from_block_model(blocks),
            converter=converter,
        )

    report = build_cross_section(
        block_geojson,
        [start, end],
        elevation_points,
        pit_collection,
        sample_count=sample_count,
    )
    for warning in report.warnings:
        logger.warning("%s", warning)

    pit_profile = pit_profile_points(report.pit_intersections)
    section_blocks = report.section.blocks if report.section else []
    elevation_range = get_elevation_range(
        section_blocks, report.elevation_profile, pit_profile
    )

    return {
        **report.model_dump(mode="json", by_alias=True),
        "projectedBlocks": [
            segment.model_dump(by_alias=True)
            for segment in calculate_projected_block_intersections(
                blocks, source_projection, start, end, converter
            )
        ],
        "pitProfile": [point.model_dump(by_alias=True) for point in pit_profile],
        "elevationRange": elevation_range.model_dump(),
    }


def section(args: list[str]) -> int:
    """Entry point for the section command."""
    parser = argparse.ArgumentParser(
        prog="minemodel section",
        description="Extract a cross section along a line through a block model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  minemodel section -b model.csv -p EPSG:32652 \\
      --start 129.001 -0.995 --end 129.004 -0.993
  minemodel section -b model.csv -p EPSG:32652 --pit pit.str --elevation topo.str \\
      --start 129.001 -0.995 --end 129.004 -0.993 -o section.json

Notes:
  - Line endpoints are WGS84 longitude / latitude
  - Block distances in "section" are planar, in degrees; "projectedBlocks"
    are in projection units (meters for UTM)
  - Pit and terrain distances are geodesic, in meters
""",
    )

    parser.add_argument(
        "-b",
        "--block-file",
        type=Path,
        required=True,
        help="Block-model CSV file",
    )
    parser.add_argument(
        "--start",
        type=float,
        nargs=2,
        metavar=("LNG", "LAT"),
        required=True,
        help="Line start point",
    )
    parser.add_argument(
        "--end",
        type=float,
        nargs=2,
        metavar=("LNG", "LAT"),
        required=True,
        help="Line end point",
    )
    parser.add_argument(
        "-p",
        "--projection",
        default=WGS84_CODE,
        help="Source projection code, e.g. EPSG:32652 (default: %(default)s)",
    )
    parser.add_argument(
        "--pit",
        type=Path,
        default=None,
        help="Pit-boundary STR file",
    )
    parser.add_argument(
        "--elevation",
        type=Path,
        default=None,
        help="Topography STR file",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=CROSS_SECTION_PROFILE_SAMPLES,
        help="Number of terrain profile samples (default: %(default)s)",
    )
    parser.add_argument(
        "-o",
        "--output-file",
        type=Path,
        default=None,
        help="Output JSON file path (prints to stdout if not specified)",
    )
    parser.add_argument(
        "--minify",
        action="store_true",
        help="Write compact JSON",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parsed_args = parser.parse_args(args)
    logging.basicConfig(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        data = compute_section(
            parsed_args.block_file,
            tuple(parsed_args.start),
            tuple(parsed_args.end),
            source_projection=parsed_args.projection,
            pit_path=parsed_args.pit,
            elevation_path=parsed_args.elevation,
            sample_count=parsed_args.samples,
        )
        result = write_json(data, parsed_args.output_file, minify=parsed_args.minify)

        if parsed_args.output_file is None:
            print(result)  # noqa: T201

        else:
            logger.info("Cross section written to %s", parsed_args.output_file)

    except MineModelError:
        logger.exception("Cross section failed")
        return 1

    except Exception:
        logger.exception("Unknown Problem ...")
        return 1

    return 0
