# -*- coding: utf-8 -*-
"""GeoJSON export command for block-model and pit-boundary files.

Block-model CSVs become colored Polygon FeatureCollections; pit STR files
become LineString FeatureCollections grouped by bench level.
"""

import argparse
import logging
from pathlib import Path

from minemodel_lib.blocks import process_block_model
from minemodel_lib.constants import DEFAULT_ATTRIBUTE_KEY
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.enums import FileFormat
from minemodel_lib.errors import ConversionError
from minemodel_lib.errors import MineModelError
from minemodel_lib.io import read_block_model_csv
from minemodel_lib.io import read_pit_str
from minemodel_lib.io import write_json
from minemodel_lib.pit import process_pit_data_to_geojson
from minemodel_lib.projection import CoordinateConverter
from minemodel_lib.projection import is_registered

logger = logging.getLogger(__name__)


def convert_to_geojson(
    input_path: Path,
    output_path: Path | None = None,
    *,
    source_projection: str = WGS84_CODE,
    top_elevation_only: bool = False,
    attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
    minify: bool = False,
) -> str:
    """Convert a block-model CSV or pit STR file to GeoJSON.

    Args:
        input_path: ``.csv`` block model or ``.str`` pit boundary file
        output_path: Optional output path (returns string if None)
        source_projection: Projection code of the input coordinates
        top_elevation_only: Keep only the top block of each column
        attribute_key: Category attribute used for block colors
        minify: Omit indentation for compact output

    Returns:
        GeoJSON string

    Raises:
        ConversionError: If the file type or projection is not supported
        InvalidInputError: If the input file cannot be read
    """
    if not is_registered(source_projection):
        raise ConversionError(f"Unknown projection: `{source_projection}`")

    converter = CoordinateConverter()
    match FileFormat.from_extension(input_path.suffix):
        case FileFormat.BLOCK_MODEL:
            collection = process_block_model(
                read_block_model_csv(input_path),
                source_projection,
                top_elevation_only=top_elevation_only,
                attribute_key=attribute_key,
                converter=converter,
            )

        case FileFormat.PIT:
            collection = process_pit_data_to_geojson(
                read_pit_str(input_path),
                source_projection,
                converter=converter,
            )

        case _:
            raise ConversionError(f"Unsupported input file: `{input_path}`")

    logger.debug("Projection cache: %s", converter.cache_info)
    return write_json(collection, output_path, minify=minify)


def geojson(args: list[str]) -> int:
    """Entry point for the geojson command."""
    parser = argparse.ArgumentParser(
        prog="minemodel geojson",
        description="Convert block-model CSV or pit STR files to GeoJSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  minemodel geojson -i model.csv -p EPSG:32652                 # Output to stdout
  minemodel geojson -i model.csv -p EPSG:32652 -o blocks.json  # Output to file
  minemodel geojson -i model.csv -p EPSG:32652 --top-only      # Top blocks only
  minemodel geojson -i pit.str -p EPSG:32750 -o pit.geojson    # Pit boundaries

Notes:
  - Output coordinates are always WGS84 [longitude, latitude]
  - Block-model CSVs are expected to carry two unit rows below the header
""",
    )

    parser.add_argument(
        "-i",
        "--input-file",
        type=Path,
        required=True,
        help="Input file path (.csv block model or .str pit boundary)",
    )
    parser.add_argument(
        "-o",
        "--output-file",
        type=Path,
        default=None,
        help="Output GeoJSON file path (prints to stdout if not specified)",
    )
    parser.add_argument(
        "-p",
        "--projection",
        default=WGS84_CODE,
        help="Source projection code, e.g. EPSG:32652 (default: %(default)s)",
    )
    parser.add_argument(
        "-a",
        "--attribute",
        default=DEFAULT_ATTRIBUTE_KEY,
        help="Block attribute used for coloring (default: %(default)s)",
    )
    parser.add_argument(
        "--top-only",
        action="store_true",
        help="Keep only the highest block of each (x, y) column",
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
        result = convert_to_geojson(
            parsed_args.input_file,
            output_path=parsed_args.output_file,
            source_projection=parsed_args.projection,
            top_elevation_only=parsed_args.top_only,
            attribute_key=parsed_args.attribute,
            minify=parsed_args.minify,
        )

        if parsed_args.output_file is None:
            print(result)  # noqa: T201

        else:
            logger.info(
                "Converted %s -> %s", parsed_args.input_file, parsed_args.output_file
            )

    except MineModelError:
        logger.exception("Conversion failed")
        return 1

    except Exception:
        logger.exception("Unknown Problem ...")
        return 1

    return 0
