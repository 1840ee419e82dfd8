# -*- coding: utf-8 -*-
"""Readers for mining survey files.

Three inputs are supported:

- block-model CSV: a header row followed by two unit / description rows,
  then one block per row;
- pit-boundary STR: headerless rows of ``interior, x, y, z, none, type``;
- topography STR: a title row, then ``id, easting, northing, z[, desc]``
  rows where only ``id == 1`` carries terrain points.

The readers return plain records / models; they do not reproject or
validate geometry. :func:`write_json` serializes results for the CLI.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

import orjson
import pandas as pd
from pydantic import ValidationError

from minemodel_lib.constants import JSON_ENCODING
from minemodel_lib.constants import SURVEY_ENCODING
from minemodel_lib.errors import InvalidInputError
from minemodel_lib.fields import parse_float
from minemodel_lib.models import ElevationPoint
from minemodel_lib.models import PitPoint

logger = logging.getLogger(__name__)

PIT_COLUMNS = ("interior", "x", "y", "z", "none", "type")


def _check_exists(path: Path) -> None:
    if not path.exists():
        raise InvalidInputError(f"Input file not found: {path}")


def _read_str_rows(path: Path, encoding: str) -> list[list[str]]:
    _check_exists(path)
    try:
        with path.open(encoding=encoding, newline="") as f:
            return [
                [cell.strip() for cell in row]
                for row in csv.reader(f)
                if any(cell.strip() for cell in row)
            ]
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InvalidInputError(f"Unable to read STR file `{path}`: {e}") from e


def read_block_model_csv(
    path: Path,
    skip_rows: int = 2,
    *,
    encoding: str = SURVEY_ENCODING,
) -> list[dict[str, Any]]:
    """Read a block-model CSV export.

    Args:
        path: Path to the CSV file
        skip_rows: Number of unit / description rows following the header
        encoding: Character encoding

    Returns:
        One dict per block, missing cells as None

    Raises:
        InvalidInputError: If the file is missing or cannot be parsed
    """
    path = Path(path)
    _check_exists(path)
    try:
        df = pd.read_csv(
            path,
            skiprows=range(1, skip_rows + 1),
            skip_blank_lines=True,
            skipinitialspace=True,
            encoding=encoding,
        )
    except (
        pd.errors.ParserError,
        pd.errors.EmptyDataError,
        UnicodeDecodeError,
    ) as e:
        raise InvalidInputError(f"Unable to parse block model `{path}`: {e}") from e

    df.columns = [str(column).strip() for column in df.columns]
    df = df.astype(object).where(df.notna(), None)
    records = df.to_dict("records")
    logger.info("Read %d block records from %s", len(records), path)
    return records


def read_pit_str(
    path: Path,
    *,
    encoding: str = SURVEY_ENCODING,
) -> list[PitPoint]:
    """Read a pit-boundary STR file.

    Rows with fewer than six columns (string headers, ``END`` markers)
    and rows with non-numeric coordinates are skipped with a warning.

    Raises:
        InvalidInputError: If the file is missing or unreadable
    """
    path = Path(path)
    points: list[PitPoint] = []
    for line_no, row in enumerate(_read_str_rows(path, encoding), start=1):
        if len(row) < len(PIT_COLUMNS):
            logger.warning(
                "Skipping row %d with insufficient columns: %s", line_no, row
            )
            continue
        try:
            points.append(PitPoint(**dict(zip(PIT_COLUMNS, row))))
        except ValidationError:
            logger.warning("Skipping invalid pit row %d: %s", line_no, row)

    logger.info("Read %d pit points from %s", len(points), path)
    return points


def read_elevation_str(
    path: Path,
    *,
    encoding: str = SURVEY_ENCODING,
) -> list[ElevationPoint]:
    """Read a topography STR file.

    The first row (the DTM title) is skipped. Only rows with at least
    four columns and an ``id`` of 1 are kept; unparseable numbers read
    as 0.

    Raises:
        InvalidInputError: If the file is missing or unreadable
    """
    path = Path(path)
    points = []
    for row in _read_str_rows(path, encoding)[1:]:
        if len(row) < 4 or parse_float(row[0]) != 1:
            continue
        points.append(
            ElevationPoint(
                id=1,
                lat=parse_float(row[1]) or 0.0,
                lon=parse_float(row[2]) or 0.0,
                z=parse_float(row[3]) or 0.0,
                desc=row[4] if len(row) >= 5 else "",
            )
        )

    logger.info("Read %d elevation points from %s", len(points), path)
    return points


def write_json(
    data: Any,
    output_path: Path | None = None,
    *,
    minify: bool = False,
) -> str:
    """Serialize ``data`` with orjson, optionally writing it to a file.

    Returns:
        The JSON string
    """
    opts = 0 if minify else orjson.OPT_INDENT_2
    json_str = orjson.dumps(data, option=opts).decode(JSON_ENCODING)

    if output_path:
        output_path.write_text(json_str, encoding=JSON_ENCODING)

    return json_str
