"""
Tests for GeoJSON reprojection.
"""

import copy
import logging

import pytest
from pyproj.exceptions import ProjError

from mapstyler.core.crs import transformer as transformer_module
from mapstyler.core.crs.transformer import (
    CoordinateTransformer,
    is_position,
    normalize_to_wgs84,
    reproject_geojson,
)
from mapstyler.models.crs import WGS84, CRSIdentifier

WEB_MERCATOR = CRSIdentifier.from_epsg(3857)
UTM_33N = CRSIdentifier.from_epsg(32633)

# Half the circumference of the Web Mercator sphere
MERCATOR_HALF_WORLD = 20037508.342789244


@pytest.fixture
def mercator_collection():
    """FeatureCollection in EPSG:3857 covering every geometry depth."""
    return {
        "type": "FeatureCollection",
        "crs": {"type": "name", "properties": {"name": "urn:ogc:def:crs:EPSG::3857"}},
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "origin"},
                "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
            },
            {
                "type": "Feature",
                "properties": {"name": "antimeridian"},
                "geometry": {"type": "LineString", "coordinates": [[0.0, 0.0], [MERCATOR_HALF_WORLD, 0.0]]},
            },
            {
                "type": "Feature",
                "properties": {"name": "square"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[0.0, 0.0], [1000.0, 0.0], [1000.0, 1000.0], [0.0, 1000.0], [0.0, 0.0]]],
                },
            },
            {
                "type": "Feature",
                "properties": {"name": "multi"},
                "geometry": {
                    "type": "MultiPolygon",
                    "coordinates": [
                        [[[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 0.0]]],
                        [[[-MERCATOR_HALF_WORLD, 0.0], [-MERCATOR_HALF_WORLD + 10, 0.0], [-MERCATOR_HALF_WORLD, 10.0], [-MERCATOR_HALF_WORLD, 0.0]]],
                    ],
                },
            },
        ],
    }


@pytest.fixture
def wgs84_polygon():
    """Polygon feature near the UTM 33N central meridian."""
    return {
        "type": "Feature",
        "properties": {"pop": 100},
        "geometry": {
            "type": "Polygon",
            "coordinates": [[[14.5, 45.1], [15.5, 45.1], [15.5, 46.2], [14.5, 46.2], [14.5, 45.1]]],
        },
    }


class TestIsPosition:
    """Tests for leaf coordinate detection."""

    def test_valid_positions(self) -> None:
        """Two or more finite numbers form a position."""
        assert is_position([1, 2])
        assert is_position([1.5, -2.5, 300.0])
        assert is_position((0, 0))

    @pytest.mark.parametrize(
        "value",
        [[1], ["1", "2"], [True, 2], [float("nan"), 1.0], [float("inf"), 1.0], None, 5, [[1, 2]]],
    )
    def test_invalid_positions(self, value) -> None:
        """Anything else is not a position."""
        assert not is_position(value)


class TestCoordinateTransformer:
    """Tests for CoordinateTransformer."""

    def test_transform_origin(self) -> None:
        """The Web Mercator origin maps to 0,0."""
        transformer = CoordinateTransformer(WEB_MERCATOR, WGS84)
        lon, lat = transformer.transform(0.0, 0.0)
        assert lon == pytest.approx(0.0, abs=1e-9)
        assert lat == pytest.approx(0.0, abs=1e-9)

    def test_transform_utm_central_meridian(self) -> None:
        """15E on the equator is the UTM 33N false easting."""
        transformer = CoordinateTransformer(WGS84, UTM_33N)
        x, y = transformer.transform(15.0, 0.0)
        assert x == pytest.approx(500000.0, abs=1e-3)
        assert y == pytest.approx(0.0, abs=1e-3)

    def test_transform_position_keeps_elevation(self) -> None:
        """Extra ordinates are carried through untouched."""
        transformer = CoordinateTransformer(WEB_MERCATOR, WGS84)
        result = transformer.transform_position([0.0, 0.0, 123.4])
        assert result[2] == 123.4
        assert len(result) == 3

    def test_transform_position_malformed(self) -> None:
        """Malformed positions are returned unchanged and counted."""
        transformer = CoordinateTransformer(WEB_MERCATOR, WGS84)
        assert transformer.transform_position(["a", "b"]) == ["a", "b"]
        assert transformer.malformed_branches == 1

    def test_transform_position_failure_fails_open(self) -> None:
        """A PROJ failure leaves the position as it was."""

        class FailingTransformer:
            def transform(self, x, y, errcheck=False):
                raise ProjError("tolerance condition error")

        transformer = CoordinateTransformer(WEB_MERCATOR, WGS84)
        transformer._transformer = FailingTransformer()

        position = [1.0, 2.0]
        assert transformer.transform_position(position) is position
        assert transformer.failed_positions == 1

    def test_non_finite_result_fails_open(self) -> None:
        """Non-finite output counts as a failure."""

        class InfiniteTransformer:
            def transform(self, x, y, errcheck=False):
                return float("inf"), 0.0

        transformer = CoordinateTransformer(WEB_MERCATOR, WGS84)
        transformer._transformer = InfiniteTransformer()

        assert transformer.transform_position([1.0, 2.0]) == [1.0, 2.0]
        assert transformer.failed_positions == 1

    def test_geometry_collection(self) -> None:
        """Members of a GeometryCollection are walked."""
        geometry = {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Point", "coordinates": [MERCATOR_HALF_WORLD, 0.0]},
                {"type": "LineString", "coordinates": [[0.0, 0.0], [MERCATOR_HALF_WORLD, 0.0]]},
            ],
        }
        CoordinateTransformer(WEB_MERCATOR, WGS84).transform_geometry(geometry)

        assert geometry["geometries"][0]["coordinates"][0] == pytest.approx(180.0)
        assert geometry["geometries"][1]["coordinates"][1][0] == pytest.approx(180.0)

    def test_unknown_geometry_type(self, caplog) -> None:
        """Unknown geometry types are left alone with a warning."""
        geometry = {"type": "Circle", "coordinates": [1.0, 2.0]}
        with caplog.at_level(logging.WARNING):
            CoordinateTransformer(WEB_MERCATOR, WGS84).transform_geometry(geometry)
        assert geometry["coordinates"] == [1.0, 2.0]
        assert "Circle" in caplog.text


class TestReprojectGeoJSON:
    """Tests for reproject_geojson."""

    def test_identity_returns_input(self, wgs84_polygon) -> None:
        """Same source and target returns the very same document."""
        assert reproject_geojson(wgs84_polygon, WGS84, WGS84) is wgs84_polygon

    def test_identity_for_detected_crs(self, wgs84_polygon) -> None:
        """A document without crs member is already WGS 84."""
        assert normalize_to_wgs84(wgs84_polygon) is wgs84_polygon

    def test_unsupported_source_returns_input(self, wgs84_polygon, caplog) -> None:
        """Unsupported CRSs leave the document as uploaded."""
        document = dict(wgs84_polygon, crs={"type": "name", "properties": {"name": "EPSG:2154"}})
        snapshot = copy.deepcopy(document)

        with caplog.at_level(logging.WARNING):
            result = reproject_geojson(document)

        assert result is document
        assert result == snapshot
        assert "EPSG:2154" in caplog.text

    def test_unsupported_target_returns_input(self, wgs84_polygon) -> None:
        """An unsupported target also leaves the document alone."""
        assert reproject_geojson(wgs84_polygon, WGS84, "EPSG:2154") is wgs84_polygon

    def test_feature_collection(self, mercator_collection) -> None:
        """Every geometry depth is reprojected."""
        result = normalize_to_wgs84(mercator_collection)
        features = result["features"]

        assert features[0]["geometry"]["coordinates"] == pytest.approx([0.0, 0.0], abs=1e-9)
        assert features[1]["geometry"]["coordinates"][1][0] == pytest.approx(180.0)

        ring = features[2]["geometry"]["coordinates"][0]
        assert len(ring) == 5
        assert ring[2][0] == pytest.approx(0.008983, abs=1e-6)
        assert ring[2][1] == pytest.approx(0.008983, abs=1e-6)

        second_polygon = features[3]["geometry"]["coordinates"][1][0]
        assert second_polygon[0][0] == pytest.approx(-180.0)

    def test_properties_preserved(self, mercator_collection) -> None:
        """Only coordinates change."""
        result = normalize_to_wgs84(mercator_collection)
        assert [f["properties"]["name"] for f in result["features"]] == [
            "origin",
            "antimeridian",
            "square",
            "multi",
        ]

    def test_input_not_mutated(self, mercator_collection) -> None:
        """Reprojection works on a copy."""
        snapshot = copy.deepcopy(mercator_collection)
        result = normalize_to_wgs84(mercator_collection)
        assert result is not mercator_collection
        assert mercator_collection == snapshot

    def test_crs_member_removed_for_wgs84(self, mercator_collection) -> None:
        """WGS 84 output drops the legacy crs member."""
        assert "crs" not in normalize_to_wgs84(mercator_collection)

    def test_crs_member_rewritten_for_other_target(self, wgs84_polygon) -> None:
        """Other targets record the new CRS so it is not reprojected twice."""
        result = reproject_geojson(wgs84_polygon, WGS84, UTM_33N)
        assert result["crs"]["properties"]["name"] == "urn:ogc:def:crs:EPSG::32633"

    def test_bare_geometry(self) -> None:
        """Bare geometries are walked directly."""
        geometry = {"type": "Point", "coordinates": [MERCATOR_HALF_WORLD, 0.0]}
        result = reproject_geojson(geometry, "EPSG:3857", "EPSG:4326")
        assert result["coordinates"][0] == pytest.approx(180.0)

    def test_round_trip(self, wgs84_polygon) -> None:
        """WGS 84 -> UTM 33N -> WGS 84 returns the original coordinates."""
        projected = reproject_geojson(wgs84_polygon, WGS84, UTM_33N)
        back = reproject_geojson(projected, UTM_33N, WGS84)

        original = wgs84_polygon["geometry"]["coordinates"][0]
        returned = back["geometry"]["coordinates"][0]
        for (x0, y0), (x1, y1) in zip(original, returned):
            assert x1 == pytest.approx(x0, abs=1e-8)
            assert y1 == pytest.approx(y0, abs=1e-8)

    def test_round_trip_etrs89_utm(self, wgs84_polygon) -> None:
        """Round trip through an ETRS89 zone."""
        projected = reproject_geojson(wgs84_polygon, WGS84, "EPSG:25830")
        back = reproject_geojson(projected, "EPSG:25830", WGS84)
        assert back["geometry"]["coordinates"][0][0] == pytest.approx([14.5, 45.1], abs=1e-7)

    def test_elevation_preserved(self) -> None:
        """Third ordinates survive reprojection."""
        feature = {
            "type": "Feature",
            "properties": {},
            "geometry": {"type": "LineString", "coordinates": [[0.0, 0.0, 10.0], [100.0, 100.0, 20.0]]},
        }
        result = reproject_geojson(feature, WEB_MERCATOR, WGS84)
        assert [p[2] for p in result["geometry"]["coordinates"]] == [10.0, 20.0]

    def test_malformed_coordinates_left_unmodified(self, caplog) -> None:
        """Bad leaves stay as they are while the rest is transformed."""
        collection = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "properties": {}, "geometry": {"type": "Point", "coordinates": ["a", "b"]}},
                {"type": "Feature", "properties": {}, "geometry": {"type": "Point", "coordinates": [MERCATOR_HALF_WORLD, 0.0]}},
                {"type": "Feature", "properties": {}, "geometry": None},
            ],
        }
        with caplog.at_level(logging.WARNING):
            result = reproject_geojson(collection, WEB_MERCATOR, WGS84)

        assert result["features"][0]["geometry"]["coordinates"] == ["a", "b"]
        assert result["features"][1]["geometry"]["coordinates"][0] == pytest.approx(180.0)
        assert result["features"][2]["geometry"] is None
        assert "malformed" in caplog.text

    def test_nesting_mismatch_left_unmodified(self) -> None:
        """A Polygon with LineString nesting is not transformed."""
        feature = {
            "type": "Feature",
            "properties": {},
            "geometry": {"type": "Polygon", "coordinates": [[1.0, 2.0], [3.0, 4.0]]},
        }
        result = reproject_geojson(feature, WEB_MERCATOR, WGS84)
        assert result["geometry"]["coordinates"] == [[1.0, 2.0], [3.0, 4.0]]

    def test_unexpected_error_returns_original(self, mercator_collection, monkeypatch) -> None:
        """Any top-level failure returns the original document."""

        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(transformer_module, "CoordinateTransformer", explode)
        assert normalize_to_wgs84(mercator_collection) is mercator_collection

    def test_unparseable_crs_argument_returns_original(self, wgs84_polygon) -> None:
        """Explicit garbage CRS strings are caught like any other failure."""
        assert reproject_geojson(wgs84_polygon, "garbage", WGS84) is wgs84_polygon
