# -*- coding: utf-8 -*-
"""Tests for cross-section extraction."""

import pytest

from minemodel_lib.constants import CROSS_SECTION_FALLBACK_COLOR
from minemodel_lib.constants import CROSS_SECTION_LINE_TYPE
from minemodel_lib.constants import UNKNOWN_CATEGORY
from minemodel_lib.constants import WGS84_CODE
from minemodel_lib.cross_section import add_point_to_line
from minemodel_lib.cross_section import build_cross_section
from minemodel_lib.cross_section import calculate_cross_section
from minemodel_lib.cross_section import calculate_line_distance
from minemodel_lib.cross_section import calculate_projected_block_intersections
from minemodel_lib.cross_section import filter_blocks_for_cross_section
from minemodel_lib.cross_section import filter_elevation_for_cross_section
from minemodel_lib.cross_section import filter_pit_for_cross_section
from minemodel_lib.cross_section import find_pit_intersections
from minemodel_lib.cross_section import geojson_line_to_points
from minemodel_lib.cross_section import pit_profile_points
from minemodel_lib.cross_section import points_to_geojson_line
from minemodel_lib.enums import CrossSectionStage
from minemodel_lib.geometry import geodesic_distance_meters
from minemodel_lib.pit import process_pit_data_to_geojson
from tests.conftest import ORIGIN_LAT
from tests.conftest import ORIGIN_LNG
from tests.conftest import UTM_52N
from tests.conftest import block_feature
from tests.conftest import square_ring

#: Crosses the two blocks lying on the x axis of ``block_collection``
AXIS_LINE = [(-1.0, 0.5), (4.0, 0.5)]

#: Crosses ``pit_square`` through its left and right edges
PIT_LINE = [(ORIGIN_LNG - 0.005, ORIGIN_LAT + 0.005), (ORIGIN_LNG + 0.02, ORIGIN_LAT + 0.005)]  # fmt: skip

#: Crosses the pit, the elevation grid and a block next to the origin
SECTION_LINE = [(ORIGIN_LNG - 0.005, ORIGIN_LAT + 0.001), (ORIGIN_LNG + 0.02, ORIGIN_LAT + 0.001)]  # fmt: skip


def _pit_feature(coords, level=50.0):
    return {
        "type": "Feature",
        "geometry": {"type": "LineString", "coordinates": coords},
        "properties": {"level": level, "type": "pit_boundary"},
    }


class TestCalculateCrossSection:
    """Tests for block intersections."""

    def test_crossed_blocks(self, block_collection):
        """Test entry, exit and ordering of crossed blocks."""
        result = calculate_cross_section(block_collection, AXIS_LINE)

        assert result.line_length == pytest.approx(5.0)
        assert result.start_point == (-1.0, 0.5)
        assert result.end_point == (4.0, 0.5)
        assert [b.properties.rock for b in result.blocks] == ["ore", "waste"]

        ore = result.blocks[0]
        assert ore.distance == pytest.approx(1.0)
        assert ore.width == pytest.approx(1.0)
        assert ore.elevation == 100.0
        assert ore.centroid == (0.5, 0.5, 100.0)
        assert ore.dimensions == (12.5, 12.5, 10.0)
        assert ore.properties.color == "#75499c"
        assert ore.projected_point == pytest.approx((0.5, 0.5))
        assert ore.entry_point == pytest.approx((0.0, 0.5))
        assert ore.exit_point == pytest.approx((1.0, 0.5))

        waste = result.blocks[1]
        assert waste.distance == pytest.approx(3.0)
        assert waste.elevation == 90.0

    def test_single_block_entry_before_exit(self):
        """Test that a crossed block has exactly two ordered crossings."""
        collection = {"features": [block_feature(square_ring(0, 0, 2), rock="ore")]}
        result = calculate_cross_section(collection, [(3.0, 1.0), (-1.0, 1.0)])

        assert len(result.blocks) == 1
        block = result.blocks[0]
        assert block.entry_point == pytest.approx((2.0, 1.0))
        assert block.exit_point == pytest.approx((0.0, 1.0))
        assert block.distance == pytest.approx(1.0)
        assert block.width == pytest.approx(2.0)

    def test_no_intersection(self, block_collection):
        """Test a line missing every block."""
        result = calculate_cross_section(block_collection, [(-1.0, 10.0), (4.0, 10.0)])
        assert result.blocks == []
        assert result.line_length == pytest.approx(5.0)

    def test_start_inside_block(self, block_collection):
        """Test a line starting inside a block."""
        result = calculate_cross_section(block_collection, [(0.5, 0.5), (1.5, 0.5)])
        assert len(result.blocks) == 1
        assert result.blocks[0].distance == 0.0
        assert result.blocks[0].width == pytest.approx(0.5)

    def test_property_fallbacks(self, block_collection):
        """Test default color, height, category and elevation."""
        result = calculate_cross_section(block_collection, [(-1.0, 5.5), (2.0, 5.5)])
        block = result.blocks[0]
        assert block.properties.color == CROSS_SECTION_FALLBACK_COLOR
        assert block.dimensions[2] == 1.0
        assert block.elevation == 80.0

        bare = {"features": [block_feature(square_ring(0, 0, 1))]}
        block = calculate_cross_section(bare, AXIS_LINE).blocks[0]
        assert block.properties.rock == UNKNOWN_CATEGORY
        assert block.elevation == 0.0

    @pytest.mark.parametrize(
        ("collection", "line"),
        [
            (None, AXIS_LINE),
            ({"features": []}, AXIS_LINE),
            ({"features": [block_feature(square_ring(0, 0, 1))]}, AXIS_LINE[:1]),
        ],
    )
    def test_none(self, collection, line):
        """Test that missing features or a short line give None."""
        assert calculate_cross_section(collection, line) is None

    def test_serialization(self, block_collection):
        """Test the camelCase keys consumed by the chart."""
        data = calculate_cross_section(block_collection, AXIS_LINE).model_dump(
            by_alias=True
        )
        assert set(data) == {"blocks", "lineLength", "startPoint", "endPoint"}
        assert {"projectedPoint", "entryPoint", "exitPoint"} <= set(data["blocks"][0])


class TestProjectedBlocks:
    """Tests for calculate_projected_block_intersections."""

    def test_utm_blocks(self, utm_block_rows, converter):
        """Test distances in meters along a line drawn in WGS84."""
        start = converter.convert((499980.0, 1000000.0), UTM_52N, WGS84_CODE)
        end = converter.convert((500030.0, 1000000.0), UTM_52N, WGS84_CODE)

        segments = calculate_projected_block_intersections(
            utm_block_rows, UTM_52N, start, end, converter
        )

        assert len(segments) == 3
        assert [(s.rock, s.elevation) for s in segments] == [
            ("waste", 90.0),
            ("ore", 100.0),
            ("waste", 100.0),
        ]
        assert segments[0].distance == pytest.approx(15.0, abs=1e-3)
        assert segments[0].width == pytest.approx(10.0, abs=1e-3)
        assert segments[0].height == 10.0
        assert segments[2].distance == pytest.approx(25.0, abs=1e-3)

    def test_missing_values_skipped(self, converter):
        """Test that blocks with a missing or zero centroid are skipped."""
        blocks = [
            {"x": 5.0, "y": 5.0, "z": 0.0, "xinc": 2.0},
            {"x": 5.0, "y": None, "z": 1.0, "xinc": 2.0},
            {"x": 5.0, "y": 5.0, "z": 1.0, "xinc": 2.0, "color": "#123456"},
        ]
        segments = calculate_projected_block_intersections(
            blocks, WGS84_CODE, (0.0, 5.0), (10.0, 5.0), converter
        )
        assert len(segments) == 1
        assert segments[0].distance == pytest.approx(4.0)
        assert segments[0].width == pytest.approx(2.0)
        assert segments[0].height == 1.0
        assert segments[0].rock == UNKNOWN_CATEGORY
        assert segments[0].color == "#123456"

    def test_empty(self):
        """Test that no blocks give no segments."""
        segments = calculate_projected_block_intersections([], UTM_52N, (0, 0), (1, 1))
        assert segments == []


class TestPitIntersections:
    """Tests for find_pit_intersections."""

    def test_square(self, pit_square):
        """Test crossings of a square pit string, in meters from the start."""
        collection = process_pit_data_to_geojson(pit_square)
        intersections = find_pit_intersections(collection, PIT_LINE)

        assert len(intersections) == 2
        assert all(item.elevation == 50.0 for item in intersections)
        assert all(item.type == "pit_boundary" for item in intersections)

        profile = pit_profile_points(intersections)
        expected = [
            geodesic_distance_meters((ORIGIN_LNG, ORIGIN_LAT + 0.005), PIT_LINE[0]),
            geodesic_distance_meters((ORIGIN_LNG + 0.01, ORIGIN_LAT + 0.005), PIT_LINE[0]),
        ]  # fmt: skip
        assert [p.distance for p in profile] == pytest.approx(expected, rel=1e-6)
        assert 500 < profile[0].distance < 600

    def test_miss(self, pit_square):
        """Test a line that does not reach the pit."""
        collection = process_pit_data_to_geojson(pit_square)
        line = [(ORIGIN_LNG - 0.02, ORIGIN_LAT), (ORIGIN_LNG - 0.01, ORIGIN_LAT)]
        assert find_pit_intersections(collection, line) == []

    def test_empty(self):
        """Test missing collections and short lines."""
        assert find_pit_intersections(None, PIT_LINE) == []
        assert find_pit_intersections({"features": []}, PIT_LINE) == []
        feature = _pit_feature([[0, 0], [1, 1]])
        assert find_pit_intersections({"features": [feature]}, PIT_LINE[:1]) == []


class TestCorridorFilters:
    """Tests for the cross-section pre-filters."""

    START = (ORIGIN_LNG, ORIGIN_LAT)
    END = (ORIGIN_LNG + 0.01, ORIGIN_LAT)

    def test_blocks(self):
        """Test the buffered bounding box around the line."""
        blocks = [
            {"centroid_x": ORIGIN_LNG + 0.005, "centroid_y": ORIGIN_LAT, "id": 1},
            {"centroid_x": ORIGIN_LNG + 0.05, "centroid_y": ORIGIN_LAT, "id": 2},
            {"centroid_x": ORIGIN_LNG - 0.005, "centroid_y": ORIGIN_LAT, "id": 3},
            {"centroid_x": None, "centroid_y": ORIGIN_LAT, "id": 4},
        ]
        result = filter_blocks_for_cross_section(blocks, self.START, self.END)
        assert [block["id"] for block in result] == [1, 3]

    def test_elevation(self, elevation_grid):
        """Test the offset and overshoot limits."""
        points = [
            {"lon": ORIGIN_LNG + 0.005, "lat": ORIGIN_LAT + 0.0005},
            {"lon": ORIGIN_LNG + 0.005, "lat": ORIGIN_LAT + 0.002},
            {"x": ORIGIN_LNG + 0.0105, "y": ORIGIN_LAT},
            {"lng": ORIGIN_LNG + 0.02, "lat": ORIGIN_LAT},
            {"lon": None, "lat": ORIGIN_LAT},
        ]
        result = filter_elevation_for_cross_section(points, self.START, self.END)
        assert result == [points[0], points[2]]

        kept = filter_elevation_for_cross_section(elevation_grid, self.START, self.END)
        assert len(kept) == 10
        assert all(point.lat < ORIGIN_LAT + 0.001 for point in kept)

    def test_pit(self):
        """Test the distance of the first vertex to the infinite line."""
        features = [
            _pit_feature([[ORIGIN_LNG + 0.05, ORIGIN_LAT + 0.0005], [0, 0]]),
            _pit_feature([[ORIGIN_LNG + 0.005, ORIGIN_LAT + 0.01], [0, 0]]),
            _pit_feature([]),
        ]
        result = filter_pit_for_cross_section(features, self.START, self.END)
        assert result == [features[0]]

    def test_empty(self):
        """Test empty inputs."""
        assert filter_blocks_for_cross_section([], self.START, self.END) == []
        assert filter_elevation_for_cross_section([], self.START, self.END) == []
        assert filter_pit_for_cross_section([], self.START, self.END) == []


class TestLineHelpers:
    """Tests for section line drawing helpers."""

    def test_add_point_to_line(self):
        """Test that a third click starts a new line."""
        line = add_point_to_line([], [1.0, 2.0])
        line = add_point_to_line(line, [3.0, 4.0])
        assert line == [[1.0, 2.0], [3.0, 4.0]]
        assert add_point_to_line(line, [5.0, 6.0]) == [[5.0, 6.0]]

    def test_points_to_geojson_line(self):
        """Test that [lat, lng] clicks become [lng, lat] coordinates."""
        feature = points_to_geojson_line([[ORIGIN_LAT, ORIGIN_LNG], [-0.5, 110.5]])
        assert feature["geometry"]["type"] == "LineString"
        assert feature["geometry"]["coordinates"] == [
            [ORIGIN_LNG, ORIGIN_LAT],
            [110.5, -0.5],
        ]
        assert feature["properties"] == {"type": CROSS_SECTION_LINE_TYPE}
        assert points_to_geojson_line([[0.0, 0.0]]) is None

    def test_geojson_line_to_points(self):
        """Test the inverse conversion."""
        points = [[ORIGIN_LAT, ORIGIN_LNG], [-0.5, 110.5]]
        assert geojson_line_to_points(points_to_geojson_line(points)) == points
        assert geojson_line_to_points(None) == []

    def test_calculate_line_distance(self):
        """Test the geodesic length of a [lat, lng] polyline."""
        one_degree = geodesic_distance_meters((0, 0), (0, 1))
        assert calculate_line_distance([[0, 0], [1, 0]]) == pytest.approx(one_degree)
        assert calculate_line_distance([[0, 0], [1, 0], [2, 0]]) == pytest.approx(
            2 * one_degree
        )
        assert calculate_line_distance([[0, 0]]) == 0.0


class TestBuildCrossSection:
    """Tests for build_cross_section."""

    def test_all_parts(self, elevation_grid, pit_square):
        """Test a section with blocks, pit and terrain."""
        blocks = {
            "features": [
                block_feature(
                    square_ring(ORIGIN_LNG + 0.001, ORIGIN_LAT, 0.002),
                    rock="ore",
                    centroid_z=40,
                )
            ]
        }
        pit = process_pit_data_to_geojson(pit_square)
        report = build_cross_section(
            blocks, SECTION_LINE, elevation_grid, pit, sample_count=10
        )

        assert not report.has_warnings
        assert len(report.section.blocks) == 1
        assert len(report.pit_intersections) == 2
        assert len(report.elevation_profile) == 10
        assert report.elevation_profile[2].has_data
        assert not report.elevation_profile[1].has_data

    def test_line_feature(self, block_collection):
        """Test a LineString Feature as the section line."""
        feature = points_to_geojson_line([[0.5, -1.0], [0.5, 4.0]])
        report = build_cross_section(block_collection, feature)
        assert len(report.section.blocks) == 2

    def test_failing_pit_part(self, block_collection):
        """Test that a broken pit collection does not hide the blocks."""
        broken = {"features": [{"type": "Feature", "geometry": None}]}
        report = build_cross_section(block_collection, AXIS_LINE, None, broken)

        assert len(report.section.blocks) == 2
        assert report.pit_intersections == []
        assert len(report.warnings) == 1
        warning = report.warnings[0]
        assert warning.stage is CrossSectionStage.PIT
        assert warning.message.startswith("Failed to calculate pit")

    def test_failing_block_part(self, pit_square):
        """Test that broken block features do not hide the pit crossings."""
        broken = {"features": [{"type": "Feature", "geometry": {}}]}
        pit = process_pit_data_to_geojson(pit_square)
        report = build_cross_section(broken, PIT_LINE, None, pit)

        assert report.section is None
        assert len(report.pit_intersections) == 2
        assert [w.stage for w in report.warnings] == [CrossSectionStage.BLOCKS]

    def test_missing_parts(self, block_collection):
        """Test that absent inputs are skipped without warnings."""
        report = build_cross_section(None, AXIS_LINE, [], None)
        assert report.section is None
        assert report.elevation_profile is None
        assert report.pit_intersections == []
        assert not report.has_warnings

        report = build_cross_section(block_collection, None)
        assert report.section is None
        assert not report.has_warnings

    def test_serialization(self, block_collection):
        """Test the JSON shape handed to the chart."""
        broken = {"features": [{"type": "Feature", "geometry": None}]}
        report = build_cross_section(block_collection, AXIS_LINE, None, broken)
        data = report.model_dump(mode="json", by_alias=True)

        assert set(data) == {
            "section",
            "elevationProfile",
            "pitIntersections",
            "warnings",
        }
        assert data["warnings"][0]["stage"] == "pit"
        assert data["warnings"][0]["severity"] == "warning"
